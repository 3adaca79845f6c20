"""
Mapping of local build outcomes onto remote results.

Both mappings are total and checked in order: success first, then aborted,
and every other value (failure, unstable, not built, unknown) is a failure.
"""

from typing import Any

from ..models.local import LocalResult
from ..models.remote import BuildResult, TaskResult


def to_build_result(local_result: Any) -> BuildResult:
    """Map a local outcome to the remote build result vocabulary."""
    if local_result == LocalResult.SUCCESS:
        return BuildResult.SUCCEEDED
    if local_result == LocalResult.ABORTED:
        return BuildResult.CANCELED
    return BuildResult.FAILED


def to_task_result(local_result: Any) -> TaskResult:
    """Map a local outcome to the remote timeline-record result vocabulary."""
    if local_result == LocalResult.SUCCESS:
        return TaskResult.SUCCEEDED
    if local_result == LocalResult.ABORTED:
        return TaskResult.CANCELED
    return TaskResult.FAILED
