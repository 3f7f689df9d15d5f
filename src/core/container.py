#!/usr/bin/env python3
"""
Dependency Injection Container

Wires the benchmark pipeline (collector, store, comparison, formatter,
notifier) in one place so commands and tests can swap collaborators.
"""

import logging
from typing import Any, Dict, Callable, TypeVar, Optional
from functools import wraps
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Simple dependency injection container with singleton and factory services."""

    def __init__(self):
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service created once on first use.

        Args:
            service_name: Unique name for the service
            factory: Function that creates the service instance
        """
        with self._lock:
            if not getattr(factory, '_is_singleton', False):
                factory = singleton(factory)
            self._factories[service_name] = factory
            # Drop any cached instance so the new factory takes effect
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """Register a service created anew on every ``get``."""
        with self._lock:
            self._factories[service_name] = factory

    def register_instance(self, service_name: str, instance: T) -> None:
        """Register a pre-built instance (used by tests to inject fakes)."""
        with self._lock:
            self._singletons[service_name] = instance

    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.

        Raises:
            KeyError: If service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        if service_name not in self._factories:
            raise KeyError(f"Service '{service_name}' not registered")

        with self._lock:
            factory = self._factories[service_name]

            if getattr(factory, '_is_singleton', False):
                if service_name not in self._singletons:
                    self._singletons[service_name] = factory()
                    logger.debug(f"Created singleton instance for '{service_name}'")
                return self._singletons[service_name]

            logger.debug(f"Created new instance for '{service_name}'")
            return factory()

    def clear(self) -> None:
        """Clear all registered services and instances."""
        with self._lock:
            for instance in self._singletons.values():
                close = getattr(instance, 'close', None)
                if callable(close):
                    close()
            self._factories.clear()
            self._singletons.clear()


def singleton(factory_func: Callable[[], T]) -> Callable[[], T]:
    """
    Decorator to mark a factory function as singleton.

    Usage:
        @singleton
        def create_run_store():
            return RunStore(...)
    """
    @wraps(factory_func)
    def wrapper():
        return factory_func()

    wrapper._is_singleton = True
    return wrapper


# Global container instance
_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get global container instance (thread-safe singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    def create_config():
        from core.config import get_config
        return get_config()

    def create_tool_runner():
        from core.benchmarks import ToolRunner
        return ToolRunner()

    def create_tool_inventory():
        from core.benchmarks import ToolInventory
        return ToolInventory()

    def create_metric_collector():
        from core.benchmarks import MetricCollector, select_network_dialect
        config = container.get('config')
        runner = container.get('tool_runner')
        return MetricCollector(
            runner=runner,
            work_dir=config.storage.data_dir,
            network_dialect=select_network_dialect(runner)
        )

    def create_system_info_reader():
        from core.benchmarks import SystemInfoReader
        return SystemInfoReader(container.get('tool_runner'))

    def create_connection_manager():
        from core.database import ConnectionManager
        config = container.get('config')
        return ConnectionManager(config.storage.db_file)

    def create_run_store():
        from core.database import RunStore
        return RunStore(container.get('connection_manager'))

    def create_comparison_engine():
        from core.comparison import ComparisonEngine
        return ComparisonEngine()

    def create_report_formatter():
        from core.formatters import ReportFormatter
        return ReportFormatter()

    def create_notifier():
        from integrations.ntfy_notifier import NtfyNotifier
        config = container.get('config')
        return NtfyNotifier(config.notifications)

    container.register_singleton('config', create_config)
    container.register_singleton('tool_runner', create_tool_runner)
    container.register_singleton('tool_inventory', create_tool_inventory)
    container.register_singleton('metric_collector', create_metric_collector)
    container.register_singleton('system_info_reader', create_system_info_reader)
    container.register_singleton('connection_manager', create_connection_manager)
    container.register_singleton('run_store', create_run_store)
    container.register_singleton('notifier', create_notifier)

    # Stateless, cheap to build
    container.register_factory('comparison_engine', create_comparison_engine)
    container.register_factory('report_formatter', create_report_formatter)

    logger.debug("Default services registered in container")

