"""
Abstract base class for remote build-service implementations.

This module defines the RemoteBuildService abstract base class, the object-level
get/update surface the build mirror needs from the remote build-orchestration
service. Implementations own the wire format, authentication and TLS concerns;
the facade and factory only ever see these operations.

The interface covers:
- Builds: fetch, update and queue
- Orchestration plans and their timelines
- Timeline records: fetch and batch update
- Log streams: create and append, plus the live console feed
- Projects, build definitions and agent queues needed to queue a build
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.remote import (
    AgentQueue,
    Build,
    DefinitionRef,
    LogRef,
    OrchestrationPlan,
    ProjectRef,
    TimelineRecord,
)


class RemoteBuildService(ABC):
    """Abstract RPC surface of the remote build-orchestration service."""

    def close(self) -> None:
        """Release any connection resources. The default does nothing."""

    @abstractmethod
    def get_build(self, build_id: int) -> Build:
        """
        Fetch a build by id.

        Args:
            build_id: Id of the remote build

        Returns:
            The current state of the build
        """

    @abstractmethod
    def update_build(self, build: Build) -> Build:
        """
        Submit a modified build (PATCH semantics).

        Args:
            build: Build previously fetched and then modified

        Returns:
            The build as stored by the service
        """

    @abstractmethod
    def get_plan(self, project_id: str, plan_id: str) -> OrchestrationPlan:
        """Fetch the orchestration plan a build is bound to."""

    @abstractmethod
    def get_timeline_records(
        self, project_id: str, plan_id: str, timeline_id: str
    ) -> Optional[List[TimelineRecord]]:
        """
        Fetch all records of a timeline.

        Returns:
            The records, or None/empty when the timeline has none yet
        """

    @abstractmethod
    def update_timeline_records(
        self,
        project_id: str,
        plan_id: str,
        timeline_id: str,
        records: Sequence[TimelineRecord],
    ) -> List[TimelineRecord]:
        """
        Submit a batch of records, replacing stored records by id.

        Returns:
            The records as stored by the service
        """

    @abstractmethod
    def create_log(self, project_id: str, plan_id: str, path: str) -> LogRef:
        """
        Create a log stream under a plan.

        Args:
            path: Path hint for the new log

        Returns:
            The log reference returned by the service
        """

    @abstractmethod
    def post_console_lines(
        self,
        project_id: str,
        plan_id: str,
        timeline_id: str,
        record_id: str,
        lines: Sequence[str],
    ) -> None:
        """Post lines to the live console feed of a timeline record."""

    @abstractmethod
    def append_log(self, project_id: str, plan_id: str, log_id: int, content: bytes) -> None:
        """Append raw bytes to a log stream."""

    @abstractmethod
    def get_projects(self) -> List[ProjectRef]:
        """List the team projects visible to the caller."""

    @abstractmethod
    def get_project(self, project: str) -> Optional[ProjectRef]:
        """
        Fetch a team project by name or id.

        Returns:
            The project, or None if it does not exist
        """

    @abstractmethod
    def get_definitions(self, project_id: str) -> List[DefinitionRef]:
        """List the build definitions of a project."""

    @abstractmethod
    def get_definition(self, project_id: str, definition_id: int) -> Optional[DefinitionRef]:
        """
        Fetch a build definition.

        Returns:
            The definition, or None if it does not exist
        """

    @abstractmethod
    def get_queues(self) -> List[AgentQueue]:
        """List the agent queues."""

    @abstractmethod
    def create_queue(self, name: str) -> AgentQueue:
        """Create an agent queue with the given name."""

    @abstractmethod
    def queue_build(self, build: Build, ignore_warnings: bool = True) -> Build:
        """
        Queue a new build.

        Args:
            build: Descriptor of the build to queue
            ignore_warnings: Whether to queue despite validation warnings

        Returns:
            The queued build, including its id and orchestration plan
        """
