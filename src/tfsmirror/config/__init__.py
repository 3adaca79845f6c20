"""
Configuration management for the tfsmirror package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file and the environment, with singleton
pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

from .loader import (
    TRANSPORT_ENV_VARS,
    apply_transport_environment,
    load_main_config,
    load_toml_file,
)
from .validators import (
    validate_build_record_config,
    validate_server_config,
    validate_shipping_config,
    validate_transport_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "TRANSPORT_ENV_VARS",
    "apply_transport_environment",
    "load_main_config",
    "load_toml_file",
    "validate_build_record_config",
    "validate_server_config",
    "validate_shipping_config",
    "validate_transport_config",
]
