"""
Build wrapper: queue the remote build and decorate the build output.

When the build starts, the wrapper queues a remote build container, marks it
(and its records) as started and wraps the build's output stream in a
RemoteConsoleLogAppender so every line is mirrored to the remote console.
"""

import logging
from typing import BinaryIO, Optional

from ..facade.build_facade import BuildFacade
from ..models.local import LocalBuildContext
from ..shipping import PendingLogQueue, RemoteConsoleLogAppender
from .base import HostIntegration, build_id_variable, write_quietly

logger = logging.getLogger(__name__)


class BuildWrapper(HostIntegration):
    """
    Creates the remote build for a local build and decorates its output.
    """

    facade: Optional[BuildFacade] = None

    def start_remote_build(
        self, local_build: LocalBuildContext, stream: Optional[BinaryIO] = None
    ) -> Optional[BuildFacade]:
        """
        Queue a remote build for the local build and mark it as started.

        The remote build id is recorded in the local build's variables.
        Failures are logged and reported inline in ``stream``.

        Returns:
            The facade of the started build, or None if nothing was queued
        """
        if self.config is None:
            msg = "Remote build server is not configured, do not decorate the output logger.\n"
            logger.info(msg.strip())
            write_quietly(stream, msg)
            return None

        server = self.config.server
        facade = None
        try:
            facade = self._get_facade_factory().create_build_on_tfs(
                server.project, server.build_definition, local_build
            )
        except Exception as e:
            msg = f"Failed to queue a build on the remote service with exception: {e}\n"
            logger.error(msg.strip(), exc_info=True)
            write_quietly(stream, msg)

        if facade is None:
            msg = "Build is not queued on the remote service, no log will be sent to the remote service.\n"
            logger.info(msg.strip())
            write_quietly(stream, msg)
            return None

        self.facade = facade
        remote_id = facade.get_remote_build_id()
        local_build.variables[build_id_variable(local_build)] = str(remote_id)
        logger.info(f"Queued remote build {remote_id} for {local_build.display_name}")

        try:
            facade.start_build()
            facade.start_all_task_records()
        except Exception as e:
            msg = f"Failed to mark the remote build as started: {e}\n"
            logger.error(msg.strip(), exc_info=True)
            write_quietly(stream, msg)
        return facade

    def decorate_output(
        self,
        local_build: LocalBuildContext,
        stream: BinaryIO,
        close_delegate: bool = True,
    ) -> BinaryIO:
        """
        Queue a remote build and return the stream the build should write to.

        Failures are reported inline in the build output and the original
        stream is returned, so the local build always proceeds.

        Args:
            local_build: The local build being started
            stream: The build's original binary output stream
            close_delegate: Whether closing the returned appender closes ``stream``

        Returns:
            A started RemoteConsoleLogAppender, or ``stream`` itself when no
            remote build could be queued
        """
        facade = self.start_remote_build(local_build, stream)
        if facade is None:
            return stream

        shipping = self.config.shipping
        appender = RemoteConsoleLogAppender(
            stream,
            facade,
            interval=shipping.interval_seconds,
            batch_size=shipping.batch_size,
            shutdown_timeout=shipping.shutdown_timeout,
            log_queue=PendingLogQueue(shipping.queue_capacity),
            close_delegate=close_delegate,
        )
        appender.start()
        return appender
