"""
Local build data models.

This module describes the local build being mirrored: its identity, its
current outcome and the source-control collaborator that can answer branch and
revision queries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LocalResult(str, Enum):
    """Outcome of the local build, in order of decreasing health."""
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"


@dataclass
class LocalBuildContext:
    """
    The local build whose lifecycle is mirrored on the remote service.
    """

    # Name of the local project or job (e.g., "my-service").
    project_name: str
    # Sequential number of this build of the project.
    number: int
    # Current outcome. Read when the build is finished, so it may be updated
    # at any time before that.
    result: Optional[Any] = None
    # Optional collaborator implementing BranchProvider and/or RevisionProvider.
    source_control: Optional[Any] = None
    # Variables exported by this build for later steps (e.g., the remote build id).
    variables: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return f"{self.project_name} #{self.number}"
