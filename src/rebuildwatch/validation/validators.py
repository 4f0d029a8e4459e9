"""
Simple value validators used by the configuration layer.
"""

import os
import shlex
from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    # bool is an int subclass; true/false in TOML is never a valid count
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Returns:
        Validated path string

    Raises:
        ValidationError: If path doesn't exist
    """
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_directory_exists(path: Union[str, Path], field_name: str = "directory") -> Path:
    """Validate that a path exists and is a directory."""
    validate_path_exists(path, field_name)
    if not os.path.isdir(str(path)):
        raise ValidationError(
            f"{field_name} is not a directory: {path}",
            field_name=field_name,
            value=str(path)
        )
    return Path(path)


def validate_string_list(
    value: Any,
    field_name: str = "value",
    allow_empty: bool = False
) -> List[str]:
    """
    Validate a list of non-empty strings.

    Args:
        value: Value to validate
        field_name: Name of the field being validated
        allow_empty: Whether an empty list is acceptable

    Returns:
        Validated list of strings

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, list):
        raise ValidationError(
            f"{field_name} must be a list of strings, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    if not value and not allow_empty:
        raise ValidationError(
            f"{field_name} must not be empty",
            field_name=field_name,
            value=value
        )
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(
                f"{field_name} entries must be non-empty strings, got {item!r}",
                field_name=field_name,
                value=value
            )
    return [item.strip() for item in value]


def validate_command(command: Any, field_name: str = "command") -> Union[str, List[str]]:
    """
    Validate a build command.

    A command is either a non-empty argv list, executed directly, or a
    non-empty string, executed through the shell.

    Raises:
        ValidationError: If the command is empty or malformed
    """
    if isinstance(command, list):
        return validate_string_list(command, field_name=field_name)

    if not isinstance(command, str) or not command.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string or list of strings",
            field_name=field_name,
            value=command
        )

    try:
        shlex.split(command)
    except ValueError as e:
        raise ValidationError(
            f"{field_name} has invalid shell syntax: {e}",
            field_name=field_name,
            value=command
        )
    return command.strip()


def validate_enum_choice(
    value: Any,
    choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Returns:
        Validated choice, in the casing used by ``choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in choices:
            raise ValidationError(
                f"{field_name} must be one of {choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return choices[lower_choices.index(lower_value)]
