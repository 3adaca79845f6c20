"""
Source-control capabilities used to report branch and revision.
"""

from .base import (
    UNDETERMINED,
    BranchProvider,
    RevisionProvider,
    resolve_branch,
    resolve_revision,
)
from .git import GitSourceControl

__all__ = [
    "UNDETERMINED",
    "BranchProvider",
    "RevisionProvider",
    "GitSourceControl",
    "resolve_branch",
    "resolve_revision",
]
