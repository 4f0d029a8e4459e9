"""
rebuildwatch: incremental native-module rebuilds for interactive development.

The package watches a source tree, reruns an external compiler toolchain
when relevant files change, and tells a live development session to reload
after each successful build.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Watch rules, build settings and build process state
- validation: Exception taxonomy and error reporting
- watching: Filesystem change classification
- orchestration: Build supervision and coordination
- reload: Reload notification sinks
- cli: Standalone command-line host

Usage:
    From command line:
        rebuildwatch --config conf/config.toml

    Embedded in a development server:
        from rebuildwatch import RebuildCoordinator, CallbackReloadSink, get_config
        coordinator = RebuildCoordinator(get_config(), reload_sink=CallbackReloadSink(send_full_reload))
        await coordinator.run()
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .orchestration import BuildSupervisor, ProcessManager, RebuildCoordinator
from .watching import RelevanceClass, WatchSource
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    BuildConfig,
    BuildProcess,
    BuildState,
    ReloadConfig,
    WatchRule,
)

# Reload sinks
from .reload import (
    CallbackReloadSink,
    LoggingReloadSink,
    ReloadSink,
    TouchFileReloadSink,
)

# Errors
from .validation import (
    BuildFailure,
    ConfigError,
    ProcessLaunchError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "BuildSupervisor",
    "ProcessManager",
    "RebuildCoordinator",
    "RelevanceClass",
    "WatchSource",
    "main_cli",
    # Models
    "AppConfig",
    "BuildConfig",
    "BuildProcess",
    "BuildState",
    "ReloadConfig",
    "WatchRule",
    # Reload sinks
    "CallbackReloadSink",
    "LoggingReloadSink",
    "ReloadSink",
    "TouchFileReloadSink",
    # Errors
    "BuildFailure",
    "ConfigError",
    "ProcessLaunchError",
    "ValidationError",
]
