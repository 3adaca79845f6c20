"""
System interaction utilities for the tfsmirror package.
"""

from .commands import run_command

__all__ = [
    "run_command",
]
