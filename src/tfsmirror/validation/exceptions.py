"""
Exception types and error handling helpers.

This module defines the error taxonomy used across the package and a small set
of helpers that log errors consistently before optionally re-raising them.
"""

import logging
import sys
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


class MirrorError(Exception):
    """Base class for errors raised while mirroring a build."""


class ConfigurationError(MirrorError):
    """
    Raised when required identifiers or settings cannot be resolved.

    Fatal to build creation; the caller must not start a build against a
    facade that was never constructed.
    """


class NotFoundError(ConfigurationError):
    """Raised when a named remote object (project, build definition) does not exist."""

    def __init__(self, kind: str, identifier: Any):
        super().__init__(f"Could not find the {kind}: {identifier}")
        self.kind = kind
        self.identifier = identifier


class TransportError(MirrorError):
    """Raised when a remote call fails (network, authentication, server error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(MirrorError):
    """
    Exception raised when a configuration value fails validation.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


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
    effective_logger = logger or globals()['logger']

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


def handle_remote_error(error: Exception, context: str, **kwargs) -> None:
    """Handle errors raised by calls to the remote build service."""
    handle_error(error, f"remote {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors by logging them and exiting."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
