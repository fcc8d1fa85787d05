"""Bounded row channel between the staging producer and consumer.

The channel is a fixed-capacity FIFO. ``put`` blocks while it is full,
iteration blocks while it is empty, and ``close`` ends iteration once
queued items are drained. A producer error passed to ``close`` is
re-raised on the consumer side. Setting the cancel event makes both
sides raise ``MrfCancelledError`` at their next wait.
"""

from __future__ import annotations

import queue
import threading
from typing import Generic, Iterator, TypeVar

from core.constants import CHANNEL_POLL_INTERVAL_SECONDS, DEFAULT_CHANNEL_CAPACITY
from core.errors import MrfCancelledError, MrfStagingError

T = TypeVar("T")


class _Closed:
    """End-of-stream marker, optionally carrying the producer error."""

    def __init__(self, error: BaseException | None) -> None:
        self.error = error


class BoundedRowChannel(Generic[T]):
    """Blocking FIFO with close and cancellation semantics."""

    def __init__(
        self,
        capacity: int = DEFAULT_CHANNEL_CAPACITY,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"channel capacity must be positive, got {capacity}")
        self._queue: queue.Queue[object] = queue.Queue(maxsize=capacity)
        self._cancel_event = cancel_event or threading.Event()
        self._closed = False
        self._aborted = threading.Event()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event

    def put(self, item: T) -> None:
        """Enqueue one item, blocking while the channel is full.

        Raises:
            MrfStagingError: If the channel was already closed.
            MrfCancelledError: If cancellation is requested while waiting.
        """
        if self._closed:
            raise MrfStagingError("Cannot put onto a closed row channel.")
        self._put_waiting(item)

    def close(self, error: BaseException | None = None) -> None:
        """Mark end of stream, optionally propagating a producer failure.

        Closing twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._put_waiting(_Closed(error))
        except MrfStagingError:
            # Cancelled or aborted; the consumer is no longer reading.
            return

    def cancel(self) -> None:
        """Request cancellation of both sides."""
        self._cancel_event.set()

    def abort(self) -> None:
        """Stop the producer after the consumer has failed."""
        self._aborted.set()

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self._get_waiting()
            if isinstance(item, _Closed):
                if item.error is not None:
                    raise item.error
                return
            yield item  # type: ignore[misc]

    def _put_waiting(self, item: object) -> None:
        """Block until ``item`` is queued, checking cancel and abort on each poll."""
        while True:
            self._raise_if_cancelled()
            if self._aborted.is_set():
                raise MrfStagingError("Row channel consumer stopped; producer halted.")
            try:
                self._queue.put(item, timeout=CHANNEL_POLL_INTERVAL_SECONDS)
                return
            except queue.Full:
                continue

    def _get_waiting(self) -> object:
        """Block until an item is available, checking cancel on each poll."""
        while True:
            self._raise_if_cancelled()
            try:
                return self._queue.get(timeout=CHANNEL_POLL_INTERVAL_SECONDS)
            except queue.Empty:
                continue

    def _raise_if_cancelled(self) -> None:
        """Raise ``MrfCancelledError`` once the cancel event is set."""
        if self._cancel_event.is_set():
            raise MrfCancelledError("Staging was cancelled before the row stream completed.")
