"""
Host integration for mirroring a local build.

Components:
- BuildWrapper: queues the remote build and decorates the build output
- BuildNotifier: reattaches to the remote build and reports the outcome
"""

from .base import BUILD_ID_VARIABLE_PREFIX, build_id_variable, write_quietly
from .notifier import BuildNotifier
from .wrapper import BuildWrapper

__all__ = [
    "BUILD_ID_VARIABLE_PREFIX",
    "BuildNotifier",
    "BuildWrapper",
    "build_id_variable",
    "write_quietly",
]
