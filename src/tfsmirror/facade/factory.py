"""
Factory for creating build facades.

A facade is obtained either by queueing a new remote build container for the
local build, or by reattaching to one queued earlier (for example by a
previous step of the same local build running in another process).
"""

import json
import logging
from typing import Callable, List, Optional

from ..models.config import BuildRecordConfig
from ..models.local import LocalBuildContext
from ..models.remote import (
    AgentQueue,
    Build,
    DefinitionRef,
    ProjectRef,
    QueueOptions,
)
from ..scm import resolve_branch
from ..service.base import RemoteBuildService
from ..validation import ErrorSeverity, NotFoundError, handle_remote_error
from .build_facade import BuildFacade, BuildStateFacade

logger = logging.getLogger(__name__)

FacadeConstructor = Callable[
    [Build, LocalBuildContext, RemoteBuildService, BuildRecordConfig], BuildFacade
]


class BuildFacadeFactory:
    """
    Creates BuildFacade instances bound to a remote build.

    Args:
        service: Client of the remote build service
        record_config: Labels for records, worker and the fallback queue
        facade_class: Callable constructing the facade (defaults to BuildStateFacade)
    """

    def __init__(
        self,
        service: RemoteBuildService,
        record_config: Optional[BuildRecordConfig] = None,
        facade_class: FacadeConstructor = BuildStateFacade,
    ):
        self.service = service
        self.record_config = record_config or BuildRecordConfig()
        self.facade_class = facade_class

    def create_build_on_tfs(
        self,
        project_id: str,
        build_definition_id: int,
        local_build: LocalBuildContext,
    ) -> BuildFacade:
        """
        Queue a remote build container for the local build and attach to it.

        Args:
            project_id: Name or id of the remote team project
            build_definition_id: Id of the build definition to queue against
            local_build: The local build being mirrored

        Returns:
            A facade bound to the newly queued build

        Raises:
            NotFoundError: If the project or build definition does not exist
            TransportError: If any remote call fails
        """
        if local_build is None:
            raise ValueError("local_build is required")

        try:
            project = self.service.get_project(project_id)
            if project is None:
                raise NotFoundError("project", project_id)

            definition = self.service.get_definition(project.id, build_definition_id)
            if definition is None:
                raise NotFoundError("build definition", build_definition_id)

            queues = self.service.get_queues()
            if not queues:
                logger.info(f"Creating {self.record_config.queue_name} on the remote service")
                queues = self._create_queue()

            build = self._create_build_container(project, definition, queues[0], local_build)
            queued_build = self.service.queue_build(build, ignore_warnings=True)
        except Exception as e:
            handle_remote_error(
                error=e,
                context="queueing build",
                severity=ErrorSeverity.ERROR,
                reraise=True,
                logger=logger,
            )
            raise

        plan_id = queued_build.orchestration_plan.plan_id if queued_build.orchestration_plan else None
        logger.info(f"Queued remote build {queued_build.id} with plan id {plan_id}")

        return self.facade_class(queued_build, local_build, self.service, self.record_config)

    def get_build_on_tfs(self, build_id: int, local_build: LocalBuildContext) -> BuildFacade:
        """
        Reattach to a remote build queued earlier.

        Args:
            build_id: Id of the remote build
            local_build: The local build being mirrored

        Returns:
            A facade bound to the existing build
        """
        build = self.service.get_build(build_id)
        return self.facade_class(build, local_build, self.service, self.record_config)

    def _create_queue(self) -> List[AgentQueue]:
        return [self.service.create_queue(self.record_config.queue_name)]

    def _create_build_container(
        self,
        project: ProjectRef,
        definition: DefinitionRef,
        queue: AgentQueue,
        local_build: LocalBuildContext,
    ) -> Build:
        return Build(
            project=project,
            definition=definition,
            queue=queue,
            parameters=json.dumps({"build.config": self.record_config.worker_name}),
            demands=[],
            queue_options=QueueOptions.DO_NOT_RUN,
            source_branch=resolve_branch(local_build.source_control),
        )
