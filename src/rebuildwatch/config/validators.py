"""
Configuration validation utilities.

Each section of config.toml is validated by its own function and turned
into the matching model. Root existence is not checked here; the watch
source does that when it is configured.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import BuildConfig, LoggingConfig, ReloadConfig, WatchRule
from ..validation import (
    ValidationError,
    validate_command,
    validate_enum_choice,
    validate_positive_integer,
    validate_string_list,
)
from .loader import resolve_path

logger = logging.getLogger(__name__)

DEFAULT_BUILD_COMMAND = ["wasm-pack", "build", "--target", "web", "--release"]
DEFAULT_SOURCE_ROOTS = ["src-rust"]
DEFAULT_SOURCE_PATTERNS = ["*.rs"]
DEFAULT_MANIFEST_PATTERNS = ["Cargo.toml", "Cargo.lock"]

RELOAD_SINKS = ["log", "touch"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def validate_watch_config(watch_data: Dict[str, Any], base_dir: Path) -> WatchRule:
    """
    Validate and create a WatchRule from the `[watch]` section.

    Args:
        watch_data: Raw watch configuration from TOML
        base_dir: Directory relative paths are resolved against

    Returns:
        Validated WatchRule instance

    Raises:
        ValidationError: If validation fails
    """
    project_root_value = watch_data.get("project_root", ".")
    if not isinstance(project_root_value, str) or not project_root_value.strip():
        raise ValidationError(
            "watch.project_root must be a non-empty string",
            field_name="watch.project_root",
            value=project_root_value,
        )
    project_root = resolve_path(project_root_value, base_dir)

    source_roots = validate_string_list(
        watch_data.get("source_roots", DEFAULT_SOURCE_ROOTS),
        field_name="watch.source_roots",
    )
    source_patterns = validate_string_list(
        watch_data.get("source_patterns", DEFAULT_SOURCE_PATTERNS),
        field_name="watch.source_patterns",
    )
    manifest_patterns = validate_string_list(
        watch_data.get("manifest_patterns", DEFAULT_MANIFEST_PATTERNS),
        field_name="watch.manifest_patterns",
        allow_empty=True,
    )
    ignore_patterns = validate_string_list(
        watch_data.get("ignore_patterns", []),
        field_name="watch.ignore_patterns",
        allow_empty=True,
    )

    # Source roots are relative to the project root, not to the config file.
    resolved_roots = []
    for root in source_roots:
        resolved = resolve_path(root, project_root)
        if resolved not in resolved_roots:
            resolved_roots.append(resolved)

    return WatchRule(
        project_root=project_root,
        source_roots=tuple(resolved_roots),
        source_patterns=tuple(source_patterns),
        manifest_patterns=tuple(manifest_patterns),
        ignore_patterns=tuple(ignore_patterns),
    )


def validate_build_config(build_data: Dict[str, Any]) -> BuildConfig:
    """
    Validate and create a BuildConfig from the `[build]` section.

    Raises:
        ValidationError: If validation fails
    """
    command = validate_command(
        build_data.get("command", DEFAULT_BUILD_COMMAND),
        field_name="build.command",
    )

    success_code = validate_positive_integer(
        build_data.get("success_code", 0),
        min_value=0,
        max_value=255,
        field_name="build.success_code",
    )

    shell_executable = build_data.get("shell_executable")
    if shell_executable is not None:
        if not isinstance(shell_executable, str) or not shell_executable.strip():
            raise ValidationError(
                "build.shell_executable must be a non-empty string",
                field_name="build.shell_executable",
                value=shell_executable,
            )
        if not isinstance(command, str):
            logger.warning(
                "build.shell_executable is ignored because build.command is a list"
            )

    waiter_threads = validate_positive_integer(
        build_data.get("waiter_threads", 4),
        min_value=1,
        max_value=64,
        field_name="build.waiter_threads",
    )

    thread_name_prefix = build_data.get("thread_name_prefix", "BuildWaiter")
    if not isinstance(thread_name_prefix, str) or not thread_name_prefix.strip():
        raise ValidationError(
            "build.thread_name_prefix must be a non-empty string",
            field_name="build.thread_name_prefix",
            value=thread_name_prefix,
        )

    history_size = validate_positive_integer(
        build_data.get("history_size", 20),
        min_value=0,
        max_value=10000,
        field_name="build.history_size",
    )

    return BuildConfig(
        command=command,
        success_code=success_code,
        shell_executable=shell_executable,
        waiter_threads=waiter_threads,
        thread_name_prefix=thread_name_prefix.strip(),
        history_size=history_size,
    )


def validate_reload_config(reload_data: Dict[str, Any], base_dir: Path) -> ReloadConfig:
    """
    Validate and create a ReloadConfig from the `[reload]` section.

    Raises:
        ValidationError: If the sink is unknown or the touch sink has no file
    """
    sink = validate_enum_choice(
        reload_data.get("sink", "log"),
        choices=RELOAD_SINKS,
        field_name="reload.sink",
        case_sensitive=False,
    )

    touch_file: Optional[Path] = None
    touch_value = reload_data.get("touch_file")
    if touch_value:
        if not isinstance(touch_value, str):
            raise ValidationError(
                "reload.touch_file must be a string",
                field_name="reload.touch_file",
                value=touch_value,
            )
        touch_file = resolve_path(touch_value, base_dir)

    if sink == "touch" and touch_file is None:
        raise ValidationError(
            "reload.touch_file must be set when reload.sink is 'touch'",
            field_name="reload.touch_file",
        )

    return ReloadConfig(sink=sink, touch_file=touch_file)


def validate_logging_config(logging_data: Dict[str, Any]) -> LoggingConfig:
    level = validate_enum_choice(
        logging_data.get("level", "INFO"),
        choices=LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )
    return LoggingConfig(level=level)
