"""
Configuration data models.

This module contains the configuration structures for the watched source
tree, the toolchain invocation, the reload sink and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class WatchRule:
    """
    Paths and patterns that decide which filesystem changes warrant a rebuild.

    Created once at startup and never modified afterwards.
    """

    # Directory the manifest patterns and relative event paths are resolved against.
    project_root: Path
    # Directories watched recursively for source changes.
    source_roots: Tuple[Path, ...]
    # Globs matched against a source file's name or its root-relative path (e.g. "*.rs").
    source_patterns: Tuple[str, ...]
    # Globs matched against the project-relative path (e.g. "Cargo.toml", "Cargo.lock").
    manifest_patterns: Tuple[str, ...] = ()
    # Globs that are never relevant, checked against the project-relative path.
    ignore_patterns: Tuple[str, ...] = ()

    @property
    def roots(self) -> Tuple[Path, ...]:
        """Every directory that must exist for the rule to be usable."""
        return (self.project_root,) + tuple(self.source_roots)


@dataclass
class BuildConfig:
    """
    Configuration for the external toolchain invocation, loaded from `[build]`.
    """

    # Argv list (run directly) or a string (run through the shell).
    command: Union[str, List[str]]
    # Exit code that counts as a successful build.
    success_code: int = 0
    # Shell used when `command` is a string. None means the platform default.
    shell_executable: Optional[str] = None
    # Threads available for blocking on process exit.
    waiter_threads: int = 4
    thread_name_prefix: str = "BuildWaiter"
    # Number of finished builds kept for introspection.
    history_size: int = 20

    @property
    def uses_shell(self) -> bool:
        return isinstance(self.command, str)

    @property
    def display_command(self) -> str:
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


@dataclass
class ReloadConfig:
    """
    Configuration for the reload sink, loaded from `[reload]`.
    """

    # "log" or "touch".
    sink: str = "log"
    # Trigger file rewritten by the "touch" sink.
    touch_file: Optional[Path] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    watch: WatchRule
    build: BuildConfig
    reload: ReloadConfig = field(default_factory=ReloadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    # Where the configuration was loaded from, if it came from a file.
    source_path: Optional[Path] = None
