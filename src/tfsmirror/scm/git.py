"""
Git source-control integration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..system import run_command

logger = logging.getLogger(__name__)


class GitSourceControl:
    """
    Branch and revision provider for a git working copy.

    When branch specs are configured (as a job that builds ``main`` and
    ``release/*`` would have), they are reported as the branch, joined with
    ``", "``. Otherwise the checked-out branch is used.
    """

    def __init__(self, repo_dir: Path, branch_specs: Optional[Sequence[str]] = None):
        self.repo_dir = Path(repo_dir)
        self.branch_specs: List[str] = [spec for spec in (branch_specs or []) if spec]

    def current_branch(self) -> Optional[str]:
        if self.branch_specs:
            return ", ".join(self.branch_specs)

        branch = self._git("rev-parse", "--abbrev-ref", "HEAD")
        # A detached checkout has no branch name.
        if branch == "HEAD":
            return None
        return branch

    def current_revision(self) -> Optional[str]:
        return self._git("rev-parse", "HEAD")

    def _git(self, *args: str) -> Optional[str]:
        return_code, stdout, stderr = run_command(["git", *args], cwd=self.repo_dir)
        if return_code != 0:
            logger.debug(f"git {' '.join(args)} failed in {self.repo_dir}: {stderr.strip()}")
            return None
        return stdout.strip() or None
