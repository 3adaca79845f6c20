"""
Validation and error handling for the tfsmirror package.

This module provides the error taxonomy, consistent error handling helpers
and the input validators used by the configuration layer.
"""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    MirrorError,
    NotFoundError,
    TransportError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_remote_error,
)

from .validators import (
    validate_enum_choice,
    validate_env_var_name,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_server_url,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "ErrorSeverity",
    "MirrorError",
    "NotFoundError",
    "TransportError",
    "ValidationError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_remote_error",
    # Validators
    "validate_enum_choice",
    "validate_env_var_name",
    "validate_non_empty_string",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_server_url",
]
