"""
Configuration management for the rebuildwatch package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    build_app_config,
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import (
    load_main_config,
    load_toml_file,
    resolve_path,
)
from .validators import (
    validate_build_config,
    validate_logging_config,
    validate_reload_config,
    validate_watch_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "build_app_config",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "resolve_path",
    "validate_watch_config",
    "validate_build_config",
    "validate_reload_config",
    "validate_logging_config",
]
