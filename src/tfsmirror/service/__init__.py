"""
Remote build-service clients.

This module provides the abstract RemoteBuildService surface the build mirror
depends on, its REST implementation over httpx, and a factory that builds
validated clients from configuration.
"""

from .base import RemoteBuildService
from .factory import create_service_from_config, create_validated_service, is_hosted_instance
from .rest_client import RestBuildService, build_ssl_context

__all__ = [
    "RemoteBuildService",
    "RestBuildService",
    "build_ssl_context",
    "create_service_from_config",
    "create_validated_service",
    "is_hosted_instance",
]
