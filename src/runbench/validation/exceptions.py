"""
Exception types and error handling helpers.

This module holds the configuration-level ValidationError, the harness error
taxonomy used to classify skipped iterations and readings, and the logging
helpers used to report errors consistently across the application.
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    A ValidationError is the only fatal error of a benchmark run: it is raised
    before any variant is launched.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class HarnessError(Exception):
    """Base class for failures raised inside the benchmark harness."""

    reason = "harness_error"

    def __init__(self, message: str, variant_id: Optional[str] = None):
        super().__init__(message)
        self.variant_id = variant_id


class LaunchFailure(HarnessError):
    """The variant command could not be spawned (missing binary, permission)."""

    reason = "launch_failure"


class DetectionTimeout(HarnessError):
    """The variant process never appeared or disappeared within the bound."""

    reason = "detection_timeout"


class SampleReadFailure(HarnessError):
    """An OS process query returned output that could not be parsed."""

    reason = "sample_read_failure"


class EmptySeriesFailure(HarnessError):
    """A series finished with zero valid readings."""

    reason = "empty_series"


class ProcessIdentityConflict(HarnessError):
    """A process matching the variant pattern was running before the benchmark."""

    reason = "process_identity_conflict"


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()["logger"]

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    """Handle subprocess-related errors."""
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI-level error and exit the interpreter."""
    exit_code = kwargs.pop("exit_code", 1)
    kwargs.pop("include_traceback", None)

    severity = kwargs.pop("severity", ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    import sys
    sys.exit(exit_code)
