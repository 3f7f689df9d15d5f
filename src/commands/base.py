#!/usr/bin/env python3
"""
Base command class for the modular command architecture.

Provides common functionality and interface that all commands inherit.
Uses dependency injection for better testability and maintainability.
"""

import logging
from abc import ABC, abstractmethod
from typing import List
from argparse import Namespace

from core.container import get_container
from core.exceptions import BenchmarkError, ConfigurationError, DatabaseError, FatalBenchmarkError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130
EXIT_TERMINATED = 143


class BaseCommand(ABC):
    """
    Base class for all command endpoints.

    Exposes the pipeline services held by the dependency injection
    container and maps failures to process exit codes.
    """

    def __init__(self, container=None):
        """
        Initialize base command with dependency injection container.

        Args:
            container: Optional container instance. If None, uses global container.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container or get_container()

    @property
    def config(self):
        """Get configuration from container."""
        return self._container.get('config')

    @property
    def tool_inventory(self):
        return self._container.get('tool_inventory')

    @property
    def system_info_reader(self):
        return self._container.get('system_info_reader')

    @property
    def collector(self):
        return self._container.get('metric_collector')

    @property
    def run_store(self):
        return self._container.get('run_store')

    @property
    def comparison_engine(self):
        return self._container.get('comparison_engine')

    @property
    def formatter(self):
        return self._container.get('report_formatter')

    @property
    def notifier(self):
        return self._container.get('notifier')

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Execute the command with given subcommand and arguments.

        Args:
            subcommand: The specific action to perform
            args: Parsed command line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        """Public methods other than the base interface."""
        methods = []
        for attr_name in dir(type(self)):
            if attr_name.startswith('_') or attr_name in ('execute', 'get_available_subcommands', 'handle_error'):
                continue
            if callable(getattr(type(self), attr_name)):
                methods.append(attr_name)
        return methods

    def handle_error(self, error: BaseException, context: str = "") -> int:
        """
        Standard error handling for commands.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            Appropriate exit code
        """
        error_msg = f"{context}: {error}" if context else str(error)

        if isinstance(error, KeyboardInterrupt):
            self.logger.warning("Interrupted by user")
            return EXIT_INTERRUPTED

        if isinstance(error, (FatalBenchmarkError, ConfigurationError, DatabaseError)):
            # Expected failure modes: message and context are enough
            self.logger.error(error_msg)
            self.logger.debug(f"Error details: {error.to_dict()}")
            return EXIT_FATAL

        if isinstance(error, BenchmarkError):
            self.logger.error(error_msg)
            return EXIT_FATAL

        self.logger.error(error_msg, exc_info=True)
        return EXIT_FATAL
