"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
Configuration is load-time only; a running coordinator never re-reads it.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import ConfigError, ErrorSeverity, ValidationError, handle_config_error
from .loader import load_main_config
from .validators import (
    validate_build_config,
    validate_logging_config,
    validate_reload_config,
    validate_watch_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default location of the configuration file, relative to the repository root.
# The CLI overrides this with --config.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears the cached configuration so the next get_config() call loads
    from the new location.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def build_app_config(
    config_data: Dict[str, Any],
    base_dir: Path,
    source_path: Optional[Path] = None,
) -> AppConfig:
    """
    Validate raw configuration data and assemble an AppConfig.

    Args:
        config_data: Parsed configuration, shaped like config.toml
        base_dir: Directory relative paths are resolved against
        source_path: File the data was read from, if any

    Raises:
        ValidationError: If any section fails validation
    """
    watch_rule = validate_watch_config(config_data.get("watch", {}), base_dir)
    build_config = validate_build_config(config_data.get("build", {}))
    reload_config = validate_reload_config(config_data.get("reload", {}), base_dir)
    logging_config = validate_logging_config(config_data.get("logging", {}))

    return AppConfig(
        watch=watch_rule,
        build=build_config,
        reload=reload_config,
        logging=logging_config,
        source_path=source_path,
    )


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration from a TOML file.

    Raises:
        ConfigError: If the file is missing, malformed or invalid
    """
    try:
        config_data = load_main_config(config_path)
        app_config = build_app_config(
            config_data, base_dir=config_path.parent.resolve(), source_path=config_path
        )
        logger.info(
            f"Loaded configuration: project root {app_config.watch.project_root}, "
            f"{len(app_config.watch.source_roots)} source roots, "
            f"command '{app_config.build.display_command}'"
        )
        return app_config

    except OSError as e:
        # Missing file, a directory, or a file we may not read
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger
        )
        raise ConfigError(str(e), value=str(config_path)) from e
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger
        )
        if isinstance(e, ConfigError):
            raise
        field_name = getattr(e, "field_name", None)
        raise ConfigError(str(e), field_name=field_name) from e


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        ConfigError: If the configuration cannot be loaded or validated
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "project_root": str(_CONFIG.watch.project_root) if _CONFIG else None,
        "command": _CONFIG.build.display_command if _CONFIG else None,
        "reload_sink": _CONFIG.reload.sink if _CONFIG else None,
    }
