"""
Remote build facade.

This module maps the local build lifecycle onto the remote build, its
orchestration plan, timeline records and log streams.

Components:
- BuildFacade: lifecycle operations the host calls
- BuildStateFacade: implementation over a RemoteBuildService
- BuildFacadeFactory: queues a new remote build or reattaches to one
"""

from .build_facade import BuildFacade, BuildStateFacade
from .factory import BuildFacadeFactory
from .results import to_build_result, to_task_result

__all__ = [
    "BuildFacade",
    "BuildFacadeFactory",
    "BuildStateFacade",
    "to_build_result",
    "to_task_result",
]
