"""
Closeable entry channel for live consumption.

Design:
- One producer side (put/close), one consuming owner (iteration)
- Close is a sentinel queued after pending entries, so consumers drain first
- Cancel is immediate: the consumer stops at its next poll, pending entries are dropped
"""

import logging
import queue
import threading
from typing import Iterator

from venue_occupancy.core.entry import Entry

logger = logging.getLogger(__name__)

_CLOSED = object()


class EventChannel:
    """
    Unbounded (or bounded) queue of live entries with a completion signal.

    Usage:
        channel = EventChannel()
        channel.put(entry)      # producer thread
        channel.close()         # producer signals completion

        for entry in channel:   # consumer thread, ends after close or cancel
            ...
    """

    def __init__(self, maxsize: int = 0, poll_interval: float = 0.1) -> None:
        """
        Initialize the channel.

        Args:
            maxsize: Queue bound (0 = unbounded)
            poll_interval: Seconds between cancellation checks while idle
        """
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._poll_interval = poll_interval
        self._closed = threading.Event()
        self._cancelled = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def put(self, entry: Entry) -> None:
        """
        Enqueue an entry for the consumer.

        Raises:
            RuntimeError: If the channel has been closed
        """
        if self._closed.is_set():
            raise RuntimeError("Cannot put on a closed channel")
        self._queue.put(entry)

    def close(self) -> None:
        """Signal completion; queued entries are still delivered."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(_CLOSED)
        logger.debug("Channel closed")

    def cancel(self) -> None:
        """Stop the consumer as soon as possible, dropping pending entries."""
        self._cancelled.set()
        logger.debug("Channel cancelled")

    def __iter__(self) -> Iterator[Entry]:
        while not self._cancelled.is_set():
            try:
                item = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue

            if item is _CLOSED:
                return
            if self._cancelled.is_set():
                return
            yield item
