"""
Exception taxonomy and error reporting helpers.

Configuration problems are the only fatal errors. Everything that goes wrong
while a build is launched or running is reported through ``handle_error`` and
never escapes the build supervisor.
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


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the base type for every configuration-time problem.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ConfigError(ValidationError):
    """Invalid or missing configuration at startup. Prevents the coordinator from starting."""


class ProcessLaunchError(RuntimeError):
    """The external toolchain could not be started."""

    def __init__(self, command: Union[str, list], cause: Optional[BaseException] = None):
        display = command if isinstance(command, str) else " ".join(command)
        message = f"could not launch '{display}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.command = command
        self.cause = cause


class BuildFailure(RuntimeError):
    """The external toolchain exited with a non-success code."""

    def __init__(self, code: int, generation: Optional[int] = None):
        if generation is None:
            message = f"Build failed with code {code}"
        else:
            message = f"Build #{generation} failed with code {code}"
        super().__init__(message)
        self.code = code
        self.generation = generation


class SupersededExit(Exception):
    """
    Exit of a build that is no longer the current one.

    Only used inside the build supervisor to short-circuit exit handling.
    """

    def __init__(self, generation: int, current_generation: int, code: Optional[int]):
        super().__init__(
            f"Build #{generation} exited with code {code} after being superseded "
            f"by build #{current_generation}"
        )
        self.generation = generation
        self.current_generation = current_generation
        self.code = code


class InvalidTransitionError(RuntimeError):
    """Illegal state transition requested on a build process."""


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


def handle_build_error(error: Exception, context: str, **kwargs) -> None:
    """Handle errors raised while launching or observing a build."""
    kwargs.setdefault("reraise", False)
    handle_error(error, f"build {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors and exit."""
    exit_code = kwargs.pop('exit_code', 1)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
