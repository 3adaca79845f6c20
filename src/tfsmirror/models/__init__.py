"""
Data models for the build mirror.

Remote Models:
- Builds, orchestration plans and project/definition/queue references
- Timeline records, timeline references and log stream references
- Status, result and state enumerations used by the remote service

Local Models:
- The local build being mirrored and its outcome

Configuration Models:
- Server, shipping, record-label and transport settings
"""

from .config import AppConfig, BuildRecordConfig, ServerConfig, ShippingConfig, TransportConfig
from .local import LocalBuildContext, LocalResult
from .remote import (
    JOB_RECORD_TYPE,
    TASK_RECORD_TYPE,
    AgentQueue,
    Build,
    BuildResult,
    BuildStatus,
    DefinitionRef,
    LogRef,
    OrchestrationPlan,
    ProjectRef,
    QueueOptions,
    RecordState,
    RemoteBuildRef,
    TaskResult,
    TimelineRecord,
    TimelineReference,
)

__all__ = [
    # Configuration
    "AppConfig",
    "BuildRecordConfig",
    "ServerConfig",
    "ShippingConfig",
    "TransportConfig",
    # Local
    "LocalBuildContext",
    "LocalResult",
    # Remote
    "JOB_RECORD_TYPE",
    "TASK_RECORD_TYPE",
    "AgentQueue",
    "Build",
    "BuildResult",
    "BuildStatus",
    "DefinitionRef",
    "LogRef",
    "OrchestrationPlan",
    "ProjectRef",
    "QueueOptions",
    "RecordState",
    "RemoteBuildRef",
    "TaskResult",
    "TimelineRecord",
    "TimelineReference",
]
