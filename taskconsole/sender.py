"""A bounded event channel from the instrumentation layer to the aggregator."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from typing import Any, TypeVar

from .events import Shared

S = TypeVar("S")


class ChannelClosed(Exception):
    """The event channel is closed and holds no more events."""


class EventSender:
    """Sends events into a bounded buffer, counting those that do not fit.

    When the remaining capacity falls to ``flush_under_capacity`` or below,
    a flush is requested through the shared state.
    """

    def __init__(
        self,
        capacity: int,
        shared: Shared | None = None,
        flush_under_capacity: int | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("event buffer capacity must be positive")
        self.max_capacity = capacity
        self.shared = shared if shared is not None else Shared()
        # Conservatively, start to trigger a flush when half the channel is full.
        self.flush_under_capacity = (
            capacity // 2 if flush_under_capacity is None else flush_under_capacity
        )
        self._buffer: deque[Any] = deque()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def capacity(self) -> int:
        """Number of events that can still be buffered."""
        with self._lock:
            return self.max_capacity - len(self._buffer)

    def _send(self, dropped: str, make_event: Callable[[], tuple[Any, S]]) -> tuple[bool, S | None]:
        sent = False
        stats = None
        with self._lock:
            if self._closed:
                pass
            elif len(self._buffer) >= self.max_capacity:
                self.shared.add_dropped(dropped)
            else:
                event, stats = make_event()
                self._buffer.append(event)
                sent = True
            remaining = self.max_capacity - len(self._buffer)
        if remaining <= self.flush_under_capacity:
            self.shared.flush.trigger()
        return sent, stats

    def send_stats(self, dropped: str, make_event: Callable[[], tuple[Any, S]]) -> S | None:
        """Send the event built by ``make_event`` and return its stats.

        ``make_event`` is only called when there is room. Returns None if the
        channel is closed or full; a full channel counts the event against
        the ``dropped`` counter.
        """
        _, stats = self._send(dropped, make_event)
        return stats

    def send_metadata(self, dropped: str, event: Any) -> bool:
        """Send ``event``; return whether it was sent."""
        sent, _ = self._send(dropped, lambda: (event, None))
        return sent

    def drain(self) -> list[Any]:
        """Remove and return all buffered events.

        Raises ChannelClosed once the channel is closed and empty.
        """
        with self._lock:
            if self._closed and not self._buffer:
                raise ChannelClosed("event channel closed")
            events = list(self._buffer)
            self._buffer.clear()
            return events

    def close(self) -> None:
        """Stop accepting events; buffered ones can still be drained."""
        with self._lock:
            self._closed = True

    def __repr__(self) -> str:
        return (
            f"EventSender(tx=<...>, capacity={self.capacity()}, "
            f"max_capacity={self.max_capacity}, shared={self.shared!r})"
        )