#!/usr/bin/env python3
"""
Standardized exception hierarchy for the host benchmark tracker.

Errors fall into three groups:

- Fatal: environment problems that make the whole run meaningless
  (required tool missing, disk full during the disk test). They abort the run.
- Degraded: a single measurement failed. Absorbed by the collector, the
  metric becomes unavailable and the run continues.
- Best-effort: notification delivery. Logged only.
"""

from typing import Optional, Dict, Any


class BenchmarkError(Exception):
    """Base exception for all benchmark tracker errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Fatal errors
class FatalBenchmarkError(BenchmarkError):
    """Unrecoverable environment problem; aborts the run with a non-zero exit."""
    pass


class MissingToolError(FatalBenchmarkError):
    """Required benchmarking tool is not installed."""

    def __init__(self, tool_name: str, install_hint: Optional[str] = None):
        message = f"Missing required tool: {tool_name}"
        if install_hint:
            message += f" (install with: {install_hint})"

        context = {
            'tool_name': tool_name,
            'install_hint': install_hint
        }
        super().__init__(message, context=context)


class DiskSpaceExhaustedError(FatalBenchmarkError):
    """Disk test ran out of space on the target device."""

    def __init__(self, test_size: str, job_name: str):
        message = f"Not enough disk space for FIO test ({test_size})"
        context = {
            'test_size': test_size,
            'job_name': job_name
        }
        super().__init__(message, context=context)


# Degraded measurement errors
class MeasurementError(BenchmarkError):
    """A single measurement could not be taken; the metric becomes unavailable."""
    pass


class ToolExecutionError(MeasurementError):
    """Measurement tool could not be run or exited with an error."""

    def __init__(self, tool_name: str, reason: str, exit_code: Optional[int] = None):
        message = f"{tool_name} failed: {reason}"
        context = {
            'tool_name': tool_name,
            'reason': reason,
            'exit_code': exit_code
        }
        super().__init__(message, context=context)


class MetricParseError(MeasurementError):
    """Tool output did not contain a usable value."""

    def __init__(self, metric_name: str, detail: str):
        message = f"Could not parse {metric_name}: {detail}"
        context = {
            'metric_name': metric_name,
            'detail': detail
        }
        super().__init__(message, context=context)


# Database-related exceptions
class DatabaseError(BenchmarkError):
    """Base exception for historical store errors."""
    pass


class DatabaseOperationError(DatabaseError):
    """Database operation failed."""

    def __init__(self, operation: str, table: str, original_error: Exception):
        message = f"Database {operation} failed on table {table}"
        context = {
            'operation': operation,
            'table': table,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Notification-related exceptions
class NotificationError(BenchmarkError):
    """Base exception for notification errors."""
    pass


class NotificationChannelError(NotificationError):
    """Notification channel unavailable or failed."""

    def __init__(self, channel: str, operation: str, original_error: Exception):
        message = f"Notification {operation} failed for channel {channel}"
        context = {
            'channel': channel,
            'operation': operation,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Configuration-related exceptions
class ConfigurationError(BenchmarkError):
    """Configuration is invalid."""

    def __init__(self, problems: list):
        message = f"Configuration validation failed: {'; '.join(problems)}"
        context = {'problems': list(problems)}
        super().__init__(message, context=context)
