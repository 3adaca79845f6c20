"""
Configuration data models.

This module contains the configuration structures for the remote server, the
log-shipping pipeline, the mirrored build records and the HTTP transport.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ServerConfig:
    """
    Connection and target settings for the remote service, from the ``[server]`` table.
    """

    # Collection-level URL (e.g., "https://example.visualstudio.com/DefaultCollection").
    url: str
    # User name for basic authentication.
    username: str
    # Password or personal access token. Never written to config files; read
    # from the environment variable named by ``password_env``.
    password: str
    # Team project name or id that owns the build definition.
    project: str
    # Numeric id of the build definition builds are queued against.
    build_definition: int
    password_env: str = "TFSMIRROR_PASSWORD"

    def __repr__(self) -> str:
        return (
            f"ServerConfig(url={self.url!r}, username={self.username!r}, "
            f"project={self.project!r}, build_definition={self.build_definition})"
        )


@dataclass
class ShippingConfig:
    """Settings for the log-shipping pipeline, from the ``[shipping]`` table."""

    interval_seconds: float = 1.0
    batch_size: int = 100
    shutdown_timeout: float = 30.0
    # 0 means unbounded.
    queue_capacity: int = 0


@dataclass
class BuildRecordConfig:
    """Labels used for the mirrored timeline records, from the ``[build]`` table."""

    job_record_name: str = "Local Build"
    worker_name: str = "tfsmirror"
    queue_name: str = "LocalMirrorQueue"


@dataclass
class TransportConfig:
    """
    Settings for the HTTP transport, from the ``[transport]`` table and the environment.
    """

    api_version: str = "2.0"
    timeout_seconds: float = 30.0
    proxy_url: Optional[str] = None
    # Path to a PEM bundle of trusted certificates.
    keystore_path: Optional[str] = None
    trust_store_type: str = "PEM"
    trust_manager_algorithm: str = "PKIX"
    # Minimum protocol to negotiate: "TLS", "TLSv1.2" or "TLSv1.3".
    security_protocol: str = "TLS"


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    server: ServerConfig
    shipping: ShippingConfig = field(default_factory=ShippingConfig)
    build: BuildRecordConfig = field(default_factory=BuildRecordConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
