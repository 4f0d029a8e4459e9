"""
Validation and error handling for the rebuildwatch package.

This module provides the exception taxonomy, input validation and
consistent error reporting across the application.
"""

from .exceptions import (
    BuildFailure,
    ConfigError,
    ErrorSeverity,
    InvalidTransitionError,
    ProcessLaunchError,
    SupersededExit,
    ValidationError,
    handle_build_error,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_command,
    validate_directory_exists,
    validate_enum_choice,
    validate_path_exists,
    validate_positive_integer,
    validate_string_list,
)

__all__ = [
    # Exceptions
    "BuildFailure",
    "ConfigError",
    "ErrorSeverity",
    "InvalidTransitionError",
    "ProcessLaunchError",
    "SupersededExit",
    "ValidationError",
    # Error handling
    "handle_build_error",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_command",
    "validate_directory_exists",
    "validate_enum_choice",
    "validate_path_exists",
    "validate_positive_integer",
    "validate_string_list",
]
