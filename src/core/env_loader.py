#!/usr/bin/env python3
"""
Environment variable loader with KEY=VALUE file support.

Reads the optional ``.env`` file and the ``.benchmark_config`` override file.
Both use the same shell-style KEY=VALUE format.
"""

import os
from pathlib import Path
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def read_env_file(env_path: Path) -> Dict[str, str]:
    """
    Parse a KEY=VALUE file into a dictionary.

    Blank lines and ``#`` comments are skipped, a leading ``export`` is
    tolerated and matching surrounding quotes are removed.

    Args:
        env_path: Path to the file

    Returns:
        Parsed variables (empty if the file does not exist)
    """
    env_path = Path(env_path)
    if not env_path.exists():
        logger.debug(f"No config file found at {env_path}")
        return {}

    values: Dict[str, str] = {}
    with open(env_path, 'r', encoding='utf-8') as f:
        lines = f.readlines()

    for line_num, line in enumerate(lines, 1):
        line = line.strip()

        # Skip empty lines and comments
        if not line or line.startswith('#'):
            continue

        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        # Parse KEY=VALUE format
        if '=' not in line:
            logger.warning(f"Invalid config format at {env_path.name}:{line_num}: {line}")
            continue

        key, value = line.split('=', 1)
        key = key.strip()
        value = value.strip()

        # Remove quotes if present
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        values[key] = value

    logger.debug(f"Read {len(values)} variables from {env_path}")
    return values


def load_env_file(env_file_path: str = ".env") -> None:
    """
    Load environment variables from a project-root .env file if it exists.

    Variables already set in the environment take precedence.
    """
    env_path = PROJECT_ROOT / env_file_path

    try:
        values = read_env_file(env_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error loading .env file {env_path}: {e}")
        return

    loaded_count = 0
    for key, value in values.items():
        if key not in os.environ:
            os.environ[key] = value
            loaded_count += 1
            logger.debug(f"Loaded {key} from .env")
        else:
            logger.debug(f"Skipped {key} (already in environment)")

    if loaded_count:
        logger.info(f"Loaded {loaded_count} variables from {env_path}")


def is_truthy(value: Optional[str]) -> bool:
    """Interpret shell-style flag values ("1", "true", "yes")."""
    return bool(value) and value.strip().lower() in TRUE_VALUES


def get_data_dir() -> Path:
    """Directory holding the database, latest JSON, log and config file."""
    override = os.environ.get('BENCHMARK_HOME')
    if override:
        return Path(override).expanduser().resolve()
    return PROJECT_ROOT


# Auto-load .env file when module is imported
load_env_file()
