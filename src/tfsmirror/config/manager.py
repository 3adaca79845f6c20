"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import apply_transport_environment, load_main_config
from .validators import (
    validate_build_record_config,
    validate_server_config,
    validate_shipping_config,
    validate_transport_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default path to the configuration file, relative to the repository root.
# Overridden by the CLI's --config option or by tests.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next ``get_config()`` reloads
    from the new path.

    Args:
        config_path: Path to the config.toml file
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


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the complete application configuration.

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    try:
        data = load_main_config(config_path)

        server_config = validate_server_config(data.get("server", {}))
        shipping_config = validate_shipping_config(data.get("shipping", {}))
        build_config = validate_build_record_config(data.get("build", {}))
        transport_config = validate_transport_config(
            apply_transport_environment(data.get("transport", {}))
        )

        app_config = AppConfig(
            server=server_config,
            shipping=shipping_config,
            build=build_config,
            transport=transport_config,
        )

        logger.info(
            f"Loaded configuration for {server_config.url} "
            f"(project '{server_config.project}', definition {server_config.build_definition})"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
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
        "server_url": _CONFIG.server.url if _CONFIG else None,
    }
