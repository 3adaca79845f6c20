"""
Remote console log appender.

This module decorates the build's output stream: every byte written still
reaches the original destination, and every completed line is also queued and
shipped to the remote build in batches by a single background worker.

Delivery order equals write order because there is exactly one producer path
into the queue and exactly one worker draining it.
"""

import logging
import threading
from typing import BinaryIO, List, Optional

from ..facade.build_facade import BuildFacade
from .line_stream import LineTransformationStream, strip_annotations
from .queue import PendingLogQueue

logger = logging.getLogger(__name__)


class ShippingConstants:
    """Default schedule, batch size and shutdown bound of the appender."""

    # Fixed delay between delivery runs (seconds)
    DELIVERY_INTERVAL = 1.0
    # Maximum number of lines per append_job_log call during scheduled runs
    BATCH_SIZE = 100
    # Maximum time close() waits for an in-flight run (seconds)
    SHUTDOWN_TIMEOUT = 30.0


class RemoteConsoleLogAppender(LineTransformationStream):
    """
    Output stream decorator shipping console lines to a BuildFacade.

    Example:
        appender = RemoteConsoleLogAppender(sys.stdout.buffer, facade, close_delegate=False)
        appender.start()
        try:
            appender.write(b"compiling...\\n")
        finally:
            appender.close()
    """

    def __init__(
        self,
        delegate: BinaryIO,
        facade: BuildFacade,
        interval: float = ShippingConstants.DELIVERY_INTERVAL,
        batch_size: int = ShippingConstants.BATCH_SIZE,
        shutdown_timeout: float = ShippingConstants.SHUTDOWN_TIMEOUT,
        log_queue: Optional[PendingLogQueue] = None,
        close_delegate: bool = True,
    ):
        """
        Initialize the appender.

        Args:
            delegate: The original binary output destination
            facade: Sink whose ``append_job_log`` receives the batches
            interval: Delay between delivery runs in seconds
            batch_size: Maximum lines per delivery call during scheduled runs
            shutdown_timeout: Maximum seconds ``close()`` waits for the worker
            log_queue: Queue of pending lines (unbounded if not given)
            close_delegate: Whether ``close()`` also closes the delegate
        """
        super().__init__()
        self.delegate = delegate
        self.facade = facade
        self.interval = interval
        self.batch_size = batch_size
        self.shutdown_timeout = shutdown_timeout
        self.logs = log_queue if log_queue is not None else PendingLogQueue()
        self.close_delegate = close_delegate

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        logger.info("Initialized remote console log appender")

    def eol(self, line: bytes) -> None:
        self.on_line(line)

    def on_line(self, raw: bytes) -> None:
        """
        Write a completed line through to the delegate and queue it for shipping.

        Args:
            raw: The line as written, including its line terminator
        """
        self.delegate.write(raw)

        line = strip_annotations(raw.decode("utf-8", errors="replace")).strip()
        if not self.logs.offer(line):
            logger.warning(
                f"Failed to add log line: {line} to queue, is the logger rolling too fast?"
            )

    def start(self) -> None:
        """Start the delivery worker."""
        if self._thread is not None:
            logger.warning("Remote console log appender already started")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._delivery_loop,
            name="RemoteLogAppender",
            daemon=True,
        )
        self._thread.start()
        logger.info("Remote console log appender started")

    def flush(self) -> None:
        self.delegate.flush()

    def close(self) -> None:
        """
        Flush and close the output, stop the worker and ship what is left.

        Waits at most ``shutdown_timeout`` seconds for an in-flight delivery
        run. If the worker stopped in time, any remaining lines are shipped
        as one final batch. Otherwise the remaining lines are abandoned.
        """
        if self.closed:
            return

        self._closed = True
        try:
            self.force_eol()
            self.delegate.flush()
            if self.close_delegate:
                self.delegate.close()
        finally:
            self._shutdown_delivery()

    def deliver_pending(self) -> int:
        """
        Drain the queue into batches of at most ``batch_size`` lines.

        Returns:
            Number of lines handed to the facade
        """
        delivered = 0
        lines: List[str] = []

        while True:
            line = self.logs.poll()
            if line is None:
                break
            lines.append(line)

            if len(lines) >= self.batch_size:
                self.facade.append_job_log(lines)
                delivered += len(lines)
                lines = []

        if lines:
            self.facade.append_job_log(lines)
            delivered += len(lines)

        return delivered

    def _delivery_loop(self) -> None:
        while not self._stop_event.wait(timeout=self.interval):
            try:
                self.deliver_pending()
            except Exception as e:
                logger.error(f"Error while shipping console log: {e}", exc_info=True)

    def _shutdown_delivery(self) -> None:
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=self.shutdown_timeout)
            if self._thread.is_alive():
                logger.warning(
                    f"Log appender took more than {self.shutdown_timeout:g} seconds to complete, "
                    f"log may be incomplete on remote console."
                )
                return
            logger.info("Log delivery worker has stopped.")

        if not self.logs.is_empty():
            remaining = self.logs.drain()
            logger.info(f"Append {len(remaining)} remaining logs.")
            self.facade.append_job_log(remaining)
