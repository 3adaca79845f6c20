"""
Queue of console lines waiting to be shipped.
"""

import queue
from typing import List, Optional


class PendingLogQueue:
    """
    FIFO queue of log lines shared by one producer and one consumer.

    Unbounded by default. With a positive ``capacity`` the queue is bounded
    and ``offer()`` reports failure instead of blocking when it is full.
    """

    def __init__(self, capacity: int = 0):
        self.capacity = capacity
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=max(capacity, 0))

    def offer(self, line: str) -> bool:
        """Add a line without blocking. Returns False if the queue is full."""
        try:
            self._queue.put_nowait(line)
        except queue.Full:
            return False
        return True

    def poll(self) -> Optional[str]:
        """Remove and return the oldest line, or None if the queue is empty."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[str]:
        """Remove and return every queued line, oldest first."""
        lines = []
        while True:
            line = self.poll()
            if line is None:
                return lines
            lines.append(line)

    def is_empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()
