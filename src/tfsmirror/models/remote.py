"""
Remote build-service data models.

This module contains the objects exchanged with the remote build-orchestration
service: builds, orchestration plans, timeline records, log references and the
project/definition/queue references needed to queue a build.

Every model converts to and from the service's camelCase JSON shape through
``to_dict()`` and ``from_dict()``. Fields that are ``None`` are omitted from
``to_dict()`` so that updates only carry what was set, and keys the model does
not know about are preserved in ``extra`` and sent back unchanged.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

E = TypeVar("E", bound=Enum)


class RecordState(str, Enum):
    """Lifecycle state of a timeline record."""
    PENDING = "pending"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"


class BuildStatus(str, Enum):
    """Status of a remote build container."""
    NONE = "none"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLING = "cancelling"
    POSTPONED = "postponed"
    NOT_STARTED = "notStarted"


class BuildResult(str, Enum):
    """Final result of a remote build container."""
    NONE = "none"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"
    FAILED = "failed"
    CANCELED = "canceled"


class TaskResult(str, Enum):
    """Final result of a timeline record."""
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_ISSUES = "succeededWithIssues"
    FAILED = "failed"
    CANCELED = "canceled"
    SKIPPED = "skipped"
    ABANDONED = "abandoned"


class QueueOptions(str, Enum):
    """Options passed along when queueing a build."""
    NONE = "none"
    DO_NOT_RUN = "doNotRun"


JOB_RECORD_TYPE = "Job"
TASK_RECORD_TYPE = "Task"

_FRACTION = re.compile(r"\.(\d{6})\d+")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the service (up to 7 fractional digits)."""
    if not value:
        return None
    normalized = _FRACTION.sub(lambda m: "." + m.group(1), value)
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    return datetime.fromisoformat(normalized)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_enum(enum_cls: Type[E], value: Any) -> Optional[Union[E, str]]:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        # Values introduced by newer server versions are kept verbatim.
        return value


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _split_extra(data: Dict[str, Any], known: set) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key not in known}


@dataclass
class ProjectRef:
    """Reference to a team project."""

    id: str
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectRef":
        return cls(id=data["id"], name=data.get("name"))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"id": self.id, "name": self.name})


@dataclass
class DefinitionRef:
    """Reference to a build definition."""

    id: int
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DefinitionRef":
        return cls(id=int(data["id"]), name=data.get("name"))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"id": self.id, "name": self.name})


@dataclass
class AgentQueue:
    """An agent pool queue builds can be queued on."""

    name: str
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentQueue":
        return cls(name=data.get("name", ""), id=data.get("id"))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"id": self.id, "name": self.name})


@dataclass
class LogRef:
    """Identifies an append-only remote log stream."""

    id: int
    path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogRef":
        return cls(id=int(data["id"]), path=data.get("path"))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"id": self.id, "path": self.path})


@dataclass
class TimelineReference:
    """Reference to a (nested) timeline, as found in a record's ``details``."""

    id: str
    change_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineReference":
        return cls(id=data["id"], change_id=data.get("changeId"))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"id": self.id, "changeId": self.change_id})


@dataclass
class OrchestrationPlan:
    """The execution plan a build is bound to. Holds the timeline id."""

    plan_id: str
    timeline_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrchestrationPlan":
        timeline = data.get("timeline") or {}
        return cls(plan_id=data["planId"], timeline_id=timeline.get("id"))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"planId": self.plan_id}
        if self.timeline_id is not None:
            data["timeline"] = {"id": self.timeline_id}
        return data


_RECORD_KEYS = {
    "id", "type", "name", "state", "parentId", "order", "log", "startTime",
    "finishTime", "result", "workerName", "details",
}


@dataclass
class TimelineRecord:
    """A node in a build timeline: one Job or Task with state, timing and a log."""

    id: str
    type: str
    name: Optional[str] = None
    state: Optional[Union[RecordState, str]] = None
    parent_id: Optional[str] = None
    order: Optional[int] = None
    log: Optional[LogRef] = None
    start_time: Optional[datetime] = None
    finish_time: Optional[datetime] = None
    result: Optional[Union[TaskResult, str]] = None
    worker_name: Optional[str] = None
    details: Optional[TimelineReference] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineRecord":
        log = data.get("log")
        details = data.get("details")
        return cls(
            id=data["id"],
            type=data.get("type", ""),
            name=data.get("name"),
            state=_parse_enum(RecordState, data.get("state")),
            parent_id=data.get("parentId"),
            order=data.get("order"),
            log=LogRef.from_dict(log) if log else None,
            start_time=parse_timestamp(data.get("startTime")),
            finish_time=parse_timestamp(data.get("finishTime")),
            result=_parse_enum(TaskResult, data.get("result")),
            worker_name=data.get("workerName"),
            details=TimelineReference.from_dict(details) if details else None,
            extra=_split_extra(data, _RECORD_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(_compact({
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "state": _enum_value(self.state),
            "parentId": self.parent_id,
            "order": self.order,
            "log": self.log.to_dict() if self.log else None,
            "startTime": format_timestamp(self.start_time),
            "finishTime": format_timestamp(self.finish_time),
            "result": _enum_value(self.result),
            "workerName": self.worker_name,
            "details": self.details.to_dict() if self.details else None,
        }))
        return data


_BUILD_KEYS = {
    "id", "project", "definition", "queue", "orchestrationPlan", "status",
    "result", "startTime", "finishTime", "sourceBranch", "sourceVersion",
    "parameters", "demands", "queueOptions",
}


@dataclass
class Build:
    """A remote build container."""

    id: Optional[int] = None
    project: Optional[ProjectRef] = None
    definition: Optional[DefinitionRef] = None
    queue: Optional[AgentQueue] = None
    orchestration_plan: Optional[OrchestrationPlan] = None
    status: Optional[Union[BuildStatus, str]] = None
    result: Optional[Union[BuildResult, str]] = None
    start_time: Optional[datetime] = None
    finish_time: Optional[datetime] = None
    source_branch: Optional[str] = None
    source_version: Optional[str] = None
    parameters: Optional[str] = None
    demands: Optional[List[Any]] = None
    queue_options: Optional[Union[QueueOptions, str]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Build":
        project = data.get("project")
        definition = data.get("definition")
        queue = data.get("queue")
        plan = data.get("orchestrationPlan")
        return cls(
            id=data.get("id"),
            project=ProjectRef.from_dict(project) if project else None,
            definition=DefinitionRef.from_dict(definition) if definition else None,
            queue=AgentQueue.from_dict(queue) if queue else None,
            orchestration_plan=OrchestrationPlan.from_dict(plan) if plan else None,
            status=_parse_enum(BuildStatus, data.get("status")),
            result=_parse_enum(BuildResult, data.get("result")),
            start_time=parse_timestamp(data.get("startTime")),
            finish_time=parse_timestamp(data.get("finishTime")),
            source_branch=data.get("sourceBranch"),
            source_version=data.get("sourceVersion"),
            parameters=data.get("parameters"),
            demands=data.get("demands"),
            queue_options=_parse_enum(QueueOptions, data.get("queueOptions")),
            extra=_split_extra(data, _BUILD_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(_compact({
            "id": self.id,
            "project": self.project.to_dict() if self.project else None,
            "definition": self.definition.to_dict() if self.definition else None,
            "queue": self.queue.to_dict() if self.queue else None,
            "orchestrationPlan": (
                self.orchestration_plan.to_dict() if self.orchestration_plan else None
            ),
            "status": _enum_value(self.status),
            "result": _enum_value(self.result),
            "startTime": format_timestamp(self.start_time),
            "finishTime": format_timestamp(self.finish_time),
            "sourceBranch": self.source_branch,
            "sourceVersion": self.source_version,
            "parameters": self.parameters,
            "demands": self.demands,
            "queueOptions": _enum_value(self.queue_options),
        }))
        return data


@dataclass(frozen=True)
class RemoteBuildRef:
    """Identifies a remote build container: build id, plan id and project id."""

    build_id: int
    plan_id: str
    project_id: str

    @classmethod
    def from_build(cls, build: Build) -> "RemoteBuildRef":
        """
        Extract the identifiers of a build returned by the service.

        Raises:
            ValueError: If the build lacks an id, a project or an orchestration plan
        """
        if build.id is None or build.project is None or build.orchestration_plan is None:
            raise ValueError(
                f"Build {build.id} is missing its id, project or orchestration plan"
            )
        return cls(
            build_id=int(build.id),
            plan_id=build.orchestration_plan.plan_id,
            project_id=build.project.id,
        )
