"""
Console log shipping.

This module intercepts the build's output stream and ships completed lines to
the remote build in ordered batches from a single background worker.
"""

from .appender import RemoteConsoleLogAppender, ShippingConstants
from .line_stream import LineTransformationStream, strip_annotations
from .queue import PendingLogQueue

__all__ = [
    "LineTransformationStream",
    "PendingLogQueue",
    "RemoteConsoleLogAppender",
    "ShippingConstants",
    "strip_annotations",
]
