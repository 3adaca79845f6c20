"""
Orchestration of a mirrored local build.
"""

from .build_runner import INTERRUPTED_EXIT_CODE, BuildRunner, result_for_exit_code

__all__ = ["BuildRunner", "INTERRUPTED_EXIT_CODE", "result_for_exit_code"]
