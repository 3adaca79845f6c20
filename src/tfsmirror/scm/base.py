"""
Source-control capabilities.

Source-control integrations expose what they know about the build through two
optional capabilities. A collaborator may implement either, both or neither;
a missing capability, an empty answer or a failing query all resolve to
``UNDETERMINED``.
"""

import logging
from typing import Any, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

UNDETERMINED = "undetermined"


@runtime_checkable
class BranchProvider(Protocol):
    """Answers which source branch (or branch spec) the build is for."""

    def current_branch(self) -> Optional[str]:
        ...


@runtime_checkable
class RevisionProvider(Protocol):
    """Answers which source revision the build actually built."""

    def current_revision(self) -> Optional[str]:
        ...


def resolve_branch(source_control: Any) -> str:
    """
    Return the source branch to report for a build.

    A branch spec of ``**`` (any branch) is reported as ``any``.
    """
    if not isinstance(source_control, BranchProvider):
        return UNDETERMINED
    try:
        branch = source_control.current_branch()
    except Exception as e:
        logger.warning(f"Retrieving the source branch failed: {e}")
        return UNDETERMINED

    branch = (branch or "").strip()
    if not branch:
        return UNDETERMINED
    if branch == "**":
        return "any"
    return branch


def resolve_revision(source_control: Any) -> str:
    """Return the source revision to report for a build."""
    if not isinstance(source_control, RevisionProvider):
        return UNDETERMINED
    try:
        revision = source_control.current_revision()
    except Exception as e:
        logger.warning(f"Retrieving the source revision failed: {e}")
        return UNDETERMINED

    revision = (revision or "").strip()
    return revision or UNDETERMINED
