"""
Configuration file loading utilities.

This module handles the low-level loading of the TOML configuration file and
the environment variables that override transport settings.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

# Environment variables consulted for the [transport] table.
TRANSPORT_ENV_VARS = {
    "proxy_url": "TFSMIRROR_PROXY_URL",
    "keystore_path": "TFSMIRROR_KEYSTORE_PATH",
    "trust_store_type": "TFSMIRROR_TRUST_STORE_TYPE",
    "trust_manager_algorithm": "TFSMIRROR_TRUST_MANAGER_ALGORITHM",
    "security_protocol": "TFSMIRROR_SECURITY_PROTOCOL",
}


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load the main configuration file (config.toml).

    Args:
        config_path: Path to the config.toml file

    Returns:
        Parsed configuration data
    """
    return load_toml_file(config_path, "main configuration file")


def apply_transport_environment(
    transport_data: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Overlay transport settings found in the environment on the [transport] table.

    Empty environment values are ignored.

    Args:
        transport_data: Raw [transport] table from the config file
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        A new dictionary with the environment values applied
    """
    env = os.environ if environ is None else environ
    merged = dict(transport_data)
    for key, env_name in TRANSPORT_ENV_VARS.items():
        value = env.get(env_name, "").strip()
        if value:
            logger.debug(f"Transport setting '{key}' taken from ${env_name}")
            merged[key] = value
    return merged


def read_password(env_name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the password stored in the named environment variable, if any."""
    env = os.environ if environ is None else environ
    value = env.get(env_name)
    return value if value else None
