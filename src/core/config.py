#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, the ``.benchmark_config`` override file,
defaults, and validation.
"""

import os
import re
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Mapping
from pathlib import Path

from .env_loader import read_env_file, get_data_dir, is_truthy
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".benchmark_config"
DB_FILE_NAME = "benchmark_results.db"
JSON_FILE_NAME = "benchmark_latest.json"
LOG_FILE_NAME = "benchmark.log"

QUICK_CPU_TEST_TIME = 5
QUICK_DISK_TEST_SIZE = "256M"

DISK_SIZE_PATTERN = re.compile(r'^\d+[KMGT]?$')

FILE_LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass
class BenchmarkSettings:
    """Bounded parameters for the measurement tools."""
    cpu_test_time: int = 10
    disk_test_size: str = "1G"  # fio size format (e.g. 1G, 512M)
    skip_network: bool = False
    speedtest_server_id: Optional[str] = None  # None = let the tool auto-select
    network_timeout: int = 300


@dataclass
class NotificationSettings:
    """ntfy push notification configuration. Disabled by default."""
    enabled: bool = False
    url: Optional[str] = None
    token: Optional[str] = None
    topic: str = "vps-benchmarks"
    timeout: int = 10

    def is_active(self) -> bool:
        return self.enabled and bool(self.url)


@dataclass
class StorageSettings:
    """Locations of persisted state."""
    data_dir: Path

    @property
    def db_file(self) -> Path:
        return self.data_dir / DB_FILE_NAME

    @property
    def json_file(self) -> Path:
        return self.data_dir / JSON_FILE_NAME

    @property
    def log_file(self) -> Path:
        return self.data_dir / LOG_FILE_NAME

    @property
    def config_file(self) -> Path:
        return self.data_dir / CONFIG_FILE_NAME


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    benchmark: BenchmarkSettings
    notifications: NotificationSettings
    storage: StorageSettings
    app: ApplicationConfig = field(default_factory=ApplicationConfig)
    quick_mode: bool = False

    def with_quick_mode(self) -> 'Config':
        """Return a copy with reduced test durations and sizes."""
        benchmark = replace(
            self.benchmark,
            cpu_test_time=QUICK_CPU_TEST_TIME,
            disk_test_size=QUICK_DISK_TEST_SIZE
        )
        return replace(self, benchmark=benchmark, quick_mode=True)


class ConfigManager:
    """Manages application configuration with validation and file loading."""

    def __init__(self, data_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            data_dir: Directory with the config file and persisted state
                (defaults to $BENCHMARK_HOME or the project root)
            environ: Environment mapping (defaults to os.environ)
        """
        self._config: Optional[Config] = None
        self._data_dir = Path(data_dir) if data_dir else get_data_dir()
        self._environ = environ if environ is not None else os.environ
        self._file_values: Dict[str, str] = {}
        self._load_config_file()

    def _load_config_file(self) -> None:
        """Load override values from the .benchmark_config file."""
        config_path = self._data_dir / CONFIG_FILE_NAME
        try:
            self._file_values = read_env_file(config_path)
        except UnicodeDecodeError as e:
            raise ConfigurationError([f"{config_path} is not valid UTF-8 text: {e}"])
        except OSError as e:
            logger.error(f"Error loading config file {config_path}: {e}")
            self._file_values = {}
            return

        if self._file_values:
            logger.info(f"Loading configuration from {config_path}")

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Environment variables take precedence over the config file."""
        if key in self._environ:
            return self._environ[key]
        return self._file_values.get(key, default)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force rebuilding configuration from the environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables and the config file."""
        problems = []

        def as_int(key: str, default: str) -> int:
            raw = self._get(key, default)
            try:
                return int(str(raw).strip())
            except ValueError:
                problems.append(f"{key} must be an integer, got '{raw}'")
                return int(default)

        benchmark = BenchmarkSettings(
            cpu_test_time=as_int('CPU_TEST_TIME', '10'),
            disk_test_size=(self._get('DISK_TEST_SIZE', '1G') or '1G').strip().upper(),
            skip_network=is_truthy(self._get('SKIP_NETWORK', '0')),
            speedtest_server_id=(self._get('SPEEDTEST_SERVER_ID') or '').strip() or None,
            network_timeout=as_int('NETWORK_TIMEOUT', '300')
        )

        notifications = NotificationSettings(
            enabled=is_truthy(self._get('NTFY_ENABLED', '0')),
            url=(self._get('NTFY_URL') or '').strip() or None,
            token=(self._get('NTFY_TOKEN') or '').strip() or None,
            topic=(self._get('NTFY_TOPIC', 'vps-benchmarks') or 'vps-benchmarks').strip()
        )

        app = ApplicationConfig(
            log_level=(self._get('LOG_LEVEL', 'INFO') or 'INFO').upper(),
            verbose_logging=is_truthy(self._get('VERBOSE_LOGGING', 'false'))
        )

        config = Config(
            benchmark=benchmark,
            notifications=notifications,
            storage=StorageSettings(data_dir=self._data_dir),
            app=app
        )

        self._validate_config(config, problems)
        return config

    def _validate_config(self, config: Config, problems: list) -> None:
        """Validate configuration values."""
        errors = list(problems)

        if config.benchmark.cpu_test_time < 1:
            errors.append("CPU_TEST_TIME must be at least 1 second")

        if not DISK_SIZE_PATTERN.match(config.benchmark.disk_test_size):
            errors.append(f"DISK_TEST_SIZE must use fio size format (e.g. 1G, 512M), got '{config.benchmark.disk_test_size}'")

        if config.benchmark.network_timeout < 1:
            errors.append("NETWORK_TIMEOUT must be at least 1 second")

        if config.benchmark.speedtest_server_id and not config.benchmark.speedtest_server_id.isdigit():
            errors.append("SPEEDTEST_SERVER_ID must be numeric")

        if config.notifications.enabled:
            url = config.notifications.url
            if url and not url.startswith(('http://', 'https://')):
                errors.append("NTFY_URL must start with http:// or https://")
            if not config.notifications.topic or '/' in config.notifications.topic:
                errors.append("NTFY_TOPIC must be a non-empty name without '/'")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ConfigurationError(errors)

        logger.debug("Configuration validation passed")

    def update_logging(self, verbose: bool = False) -> None:
        """
        Configure logging based on current configuration.

        Applies the configured level to the root logger and attaches the
        append-only benchmark log file handler (once).
        """
        config = self.get_config()

        numeric_level = logging.DEBUG if verbose else getattr(logging, config.app.log_level)
        root = logging.getLogger()
        root.setLevel(numeric_level)

        if config.app.verbose_logging or verbose:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        # Update existing console handlers
        for handler in root.handlers:
            if isinstance(handler, logging.FileHandler):
                continue
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter(format_str, datefmt=LOG_DATE_FORMAT))

        log_file = config.storage.log_file
        already_attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve()
            for h in root.handlers
        )
        if already_attached:
            return

        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            logger.warning(f"Cannot open log file {log_file}: {e}")
            return

        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root.addHandler(file_handler)


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()
