"""
Configuration validation utilities.

This module turns the raw TOML tables into validated configuration models.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from ..models.config import (
    BuildRecordConfig,
    ServerConfig,
    ShippingConfig,
    TransportConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_env_var_name,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_server_url,
)
from .loader import read_password

logger = logging.getLogger(__name__)

SECURITY_PROTOCOLS = ["TLS", "TLSv1.2", "TLSv1.3"]
TRUST_STORE_TYPES = ["PEM"]


def validate_server_config(
    server_data: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None
) -> ServerConfig:
    """
    Validate the [server] table and resolve the password from the environment.

    Args:
        server_data: Raw [server] table
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated ServerConfig instance

    Raises:
        ValidationError: If a value is missing or invalid
    """
    url = validate_server_url(server_data.get("url"), field_name="server.url")
    username = validate_non_empty_string(
        server_data.get("username"), field_name="server.username"
    )
    project = validate_non_empty_string(
        server_data.get("project"), field_name="server.project"
    )
    build_definition = validate_positive_integer(
        server_data.get("build_definition"),
        min_value=1,
        field_name="server.build_definition",
    )
    password_env = validate_env_var_name(
        server_data.get("password_env", "TFSMIRROR_PASSWORD"),
        field_name="server.password_env",
    )

    password = read_password(password_env, environ)
    if password is None:
        raise ValidationError(
            f"Password environment variable ${password_env} is not set",
            field_name="server.password_env",
            value=password_env,
        )

    return ServerConfig(
        url=url,
        username=username,
        password=password,
        project=project,
        build_definition=build_definition,
        password_env=password_env,
    )


def validate_shipping_config(shipping_data: Dict[str, Any]) -> ShippingConfig:
    """
    Validate the [shipping] table.

    Raises:
        ValidationError: If a value is out of range
    """
    defaults = ShippingConfig()
    return ShippingConfig(
        interval_seconds=validate_positive_float(
            shipping_data.get("interval_seconds", defaults.interval_seconds),
            min_value=0.01,
            max_value=60.0,
            field_name="shipping.interval_seconds",
        ),
        batch_size=validate_positive_integer(
            shipping_data.get("batch_size", defaults.batch_size),
            min_value=1,
            max_value=10000,
            field_name="shipping.batch_size",
        ),
        shutdown_timeout=validate_positive_float(
            shipping_data.get("shutdown_timeout", defaults.shutdown_timeout),
            min_value=0.1,
            max_value=600.0,
            field_name="shipping.shutdown_timeout",
        ),
        queue_capacity=validate_positive_integer(
            shipping_data.get("queue_capacity", defaults.queue_capacity),
            min_value=0,
            field_name="shipping.queue_capacity",
        ),
    )


def validate_build_record_config(build_data: Dict[str, Any]) -> BuildRecordConfig:
    """Validate the [build] table."""
    defaults = BuildRecordConfig()
    return BuildRecordConfig(
        job_record_name=validate_non_empty_string(
            build_data.get("job_record_name", defaults.job_record_name),
            field_name="build.job_record_name",
        ),
        worker_name=validate_non_empty_string(
            build_data.get("worker_name", defaults.worker_name),
            field_name="build.worker_name",
        ),
        queue_name=validate_non_empty_string(
            build_data.get("queue_name", defaults.queue_name),
            field_name="build.queue_name",
        ),
    )


def validate_transport_config(transport_data: Dict[str, Any]) -> TransportConfig:
    """
    Validate the [transport] table (after environment overrides are applied).

    Raises:
        ValidationError: If a value is invalid
    """
    defaults = TransportConfig()

    proxy_url = transport_data.get("proxy_url")
    if proxy_url:
        proxy_url = validate_server_url(proxy_url, field_name="transport.proxy_url")

    keystore_path = transport_data.get("keystore_path") or None

    return TransportConfig(
        api_version=validate_non_empty_string(
            str(transport_data.get("api_version", defaults.api_version)),
            field_name="transport.api_version",
        ),
        timeout_seconds=validate_positive_float(
            transport_data.get("timeout_seconds", defaults.timeout_seconds),
            min_value=1.0,
            max_value=600.0,
            field_name="transport.timeout_seconds",
        ),
        proxy_url=proxy_url or None,
        keystore_path=keystore_path,
        trust_store_type=validate_enum_choice(
            transport_data.get("trust_store_type", defaults.trust_store_type),
            valid_choices=TRUST_STORE_TYPES,
            field_name="transport.trust_store_type",
        ),
        trust_manager_algorithm=validate_non_empty_string(
            transport_data.get("trust_manager_algorithm", defaults.trust_manager_algorithm),
            field_name="transport.trust_manager_algorithm",
        ),
        security_protocol=validate_enum_choice(
            transport_data.get("security_protocol", defaults.security_protocol),
            valid_choices=SECURITY_PROTOCOLS,
            field_name="transport.security_protocol",
        ),
    )
