"""
Factory for creating validated remote build-service clients.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from ..models.config import ServerConfig, TransportConfig
from ..validation import TransportError
from .base import RemoteBuildService
from .rest_client import RestBuildService

logger = logging.getLogger(__name__)

_HOSTED_SUFFIXES = ("visualstudio.com", ".tfsallin.net", "dev.azure.com")


def is_hosted_instance(url: str) -> bool:
    """
    Best guess whether a URL points at a hosted service rather than an on-premise server.

    Only used for diagnostics; never relied upon for behavior.
    """
    host = (urlparse(url).hostname or "").lower()
    return host.endswith(_HOSTED_SUFFIXES)


def create_validated_service(
    url: str,
    username: str,
    password: str,
    transport_config: Optional[TransportConfig] = None,
    **client_kwargs,
) -> RemoteBuildService:
    """
    Create a REST client and check that it can talk to the server.

    The client is validated by listing projects; if that call returns
    without raising, the credentials and connection are usable.

    Args:
        url: Collection-level server URL
        username: User name for basic authentication
        password: Password or personal access token
        transport_config: Proxy, TLS and timeout settings
        **client_kwargs: Passed through to RestBuildService

    Returns:
        A working RemoteBuildService

    Raises:
        TransportError: If the server cannot be reached or rejects the credentials
    """
    kind = "hosted service" if is_hosted_instance(url) else "on-premise server"
    logger.info(f"Connecting to {kind} at {url} as {username}")

    service = RestBuildService(url, username, password, transport_config, **client_kwargs)
    try:
        projects = service.get_projects()
    except TransportError as e:
        service.close()
        if e.status_code in (401, 403):
            raise TransportError(
                f"Server at {url} rejected the credentials for {username}",
                status_code=e.status_code,
            ) from e
        raise

    logger.debug(f"Connection validated, {len(projects)} projects visible")
    return service


def create_service_from_config(
    server: ServerConfig, transport: Optional[TransportConfig] = None, **client_kwargs
) -> RemoteBuildService:
    """Create a validated client from the loaded configuration."""
    return create_validated_service(
        server.url, server.username, server.password, transport, **client_kwargs
    )
