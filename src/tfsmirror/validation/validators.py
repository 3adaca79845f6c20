"""
Validation functions for configuration values.
"""

import re
from typing import Any, List, Optional
from urllib.parse import urlparse

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a non-blank string and return it stripped."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value.strip()


def validate_server_url(url: Any, field_name: str = "server_url") -> str:
    """
    Validate a collection-level server URL.

    Args:
        url: URL to validate
        field_name: Name of the field being validated

    Returns:
        The URL without a trailing slash

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL
    """
    url_str = validate_non_empty_string(url, field_name=field_name)
    parsed = urlparse(url_str)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            f"{field_name} must be an absolute http(s) URL: {url_str}",
            field_name=field_name,
            value=url
        )
    return url_str.rstrip("/")


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value"
) -> str:
    """
    Validate that a value is one of the allowed choices (case-insensitive).

    Returns:
        The matching choice as spelled in ``valid_choices``

    Raises:
        ValidationError: If the value is not a valid choice
    """
    if isinstance(value, str):
        for choice in valid_choices:
            if value.strip().lower() == choice.lower():
                return choice
    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got {value}",
        field_name=field_name,
        value=value
    )


def validate_env_var_name(name: Any, field_name: str = "env_var") -> str:
    """Validate that a value looks like an environment variable name."""
    name_str = validate_non_empty_string(name, field_name=field_name)
    if not re.match(r'^[A-Za-z_][A-Za-z0-9_]*$', name_str):
        raise ValidationError(
            f"{field_name} is not a valid environment variable name: {name_str}",
            field_name=field_name,
            value=name
        )
    return name_str
