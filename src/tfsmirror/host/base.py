"""
Shared pieces of the host integration.
"""

import logging
from typing import Any, Callable, Optional

from ..facade.factory import BuildFacadeFactory
from ..models.config import AppConfig, BuildRecordConfig, ServerConfig, TransportConfig
from ..models.local import LocalBuildContext
from ..service.base import RemoteBuildService

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[ServerConfig, TransportConfig], RemoteBuildService]
FacadeFactoryConstructor = Callable[[RemoteBuildService, BuildRecordConfig], BuildFacadeFactory]

BUILD_ID_VARIABLE_PREFIX = "TfsBuildId"


def build_id_variable(local_build: LocalBuildContext) -> str:
    """Name of the build variable carrying the remote build id of a local build."""
    return f"{BUILD_ID_VARIABLE_PREFIX}{local_build.number}"


class HostIntegration:
    """
    Base for host-side components that need a remote client and a facade factory.

    Both collaborators are injected; nothing here decides which concrete
    service implementation is used.
    """

    def __init__(
        self,
        config: Optional[AppConfig],
        service_factory: ServiceFactory,
        facade_factory: FacadeFactoryConstructor = BuildFacadeFactory,
    ):
        self.config = config
        self.service_factory = service_factory
        self.facade_factory = facade_factory
        self.service: Optional[RemoteBuildService] = None

    def _get_facade_factory(self) -> BuildFacadeFactory:
        if self.service is None:
            self.service = self.service_factory(self.config.server, self.config.transport)
        return self.facade_factory(self.service, self.config.build)

    def close(self) -> None:
        """Release the remote client, if one was created."""
        if self.service is not None:
            try:
                self.service.close()
            except Exception as e:
                logger.debug(f"Error closing remote client: {e}")
            self.service = None


def write_quietly(stream: Any, message: str) -> None:
    """Write a message into the build output, ignoring any failure."""
    if stream is None:
        return
    try:
        stream.write(message.encode("utf-8"))
    except Exception as e:
        logger.error(f"Failed to write to build output: {e}")
