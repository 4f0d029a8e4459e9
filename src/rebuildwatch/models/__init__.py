"""
Data models for the rebuild coordinator.

Configuration Models:
- Watched paths and relevance patterns
- Toolchain invocation settings
- Reload sink and logging settings

Runtime Models:
- Build process lifecycle and state machine
"""

from .config import AppConfig, BuildConfig, LoggingConfig, ReloadConfig, WatchRule
from .runtime import BuildProcess, BuildState

__all__ = [
    # Configuration
    "AppConfig",
    "BuildConfig",
    "LoggingConfig",
    "ReloadConfig",
    "WatchRule",
    # Runtime
    "BuildProcess",
    "BuildState",
]
