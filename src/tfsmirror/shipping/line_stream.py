"""
Line-oriented binary stream decorator.

This module provides a writable byte stream that splits whatever is written
to it into lines and hands each completed line to ``eol()``, plus the helper
that strips console rendering annotations from a line.
"""

import re
from typing import Union

# Hidden console notes: ESC[8m "ha:" <payload> ESC[0m
_CONSOLE_NOTE = re.compile(r"\x1b\[8mha:.*?\x1b\[0m", re.DOTALL)
# ANSI CSI escape sequences (colors, cursor movement, ...)
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")


def strip_annotations(text: str) -> str:
    """Remove embedded console notes and ANSI escape sequences from a line."""
    return _ANSI_ESCAPE.sub("", _CONSOLE_NOTE.sub("", text))


class LineTransformationStream:
    """
    Writable byte stream that calls ``eol()`` once per completed line.

    Lines passed to ``eol()`` include their trailing ``b"\\n"``. A trailing
    partial line is passed on ``force_eol()``, which ``close()`` calls.
    Subclasses implement ``eol()``.
    """

    def __init__(self):
        self._buffer = bytearray()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return True

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        if self._closed:
            raise ValueError("I/O operation on closed stream")

        chunk = bytes(data)
        start = 0
        while True:
            newline = chunk.find(b"\n", start)
            if newline < 0:
                break
            if self._buffer:
                self._buffer.extend(chunk[start:newline + 1])
                line = bytes(self._buffer)
                self._buffer.clear()
            else:
                line = chunk[start:newline + 1]
            self.eol(line)
            start = newline + 1

        self._buffer.extend(chunk[start:])
        return len(chunk)

    def force_eol(self) -> None:
        """Hand any buffered partial line to ``eol()``."""
        if self._buffer:
            line = bytes(self._buffer)
            self._buffer.clear()
            self.eol(line)

    def eol(self, line: bytes) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        if self._closed:
            return
        self.force_eol()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
