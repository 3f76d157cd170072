"""Events sent from the instrumentation layer to the aggregator, and shared state."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Union

from .proto import Field, Location, Metadata

DROPPED_COUNTERS = ("tasks", "async_ops", "resources")


@dataclass(frozen=True)
class MetadataRegistered:
    """A new callsite was registered."""

    metadata: Metadata


@dataclass(frozen=True)
class TaskSpawned:
    """A task was spawned."""

    id: int
    metadata: Metadata
    stats: Any
    fields: list[Field] = field(default_factory=list)
    location: Location | None = None


@dataclass(frozen=True)
class ResourceCreated:
    """A resource was created."""

    id: int
    parent_id: int | None
    metadata: Metadata
    concrete_type: str
    kind: Any
    location: Location | None
    is_internal: bool
    stats: Any


@dataclass(frozen=True)
class PollOpEvent:
    """A poll operation was invoked on a resource."""

    metadata: Metadata
    resource_id: int
    op_name: str
    async_op_id: int
    task_id: int
    is_ready: bool


@dataclass(frozen=True)
class AsyncOpCreated:
    """An async operation on a resource was started."""

    id: int
    parent_id: int | None
    resource_id: int
    metadata: Metadata
    source: str
    stats: Any


Event = Union[MetadataRegistered, TaskSpawned, ResourceCreated, PollOpEvent, AsyncOpCreated]


class Flush:
    """Signals the aggregator that the event buffer should be drained."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._triggered = False
        self.should_flush = threading.Event()

    def trigger(self) -> bool:
        """Request a flush; return False if one was already requested."""
        with self._lock:
            if self._triggered:
                return False
            self._triggered = True
        self.should_flush.set()
        return True

    def has_flushed(self) -> None:
        """Record that the buffer has been flushed."""
        with self._lock:
            self._triggered = False

    def is_triggered(self) -> bool:
        with self._lock:
            return self._triggered

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for a flush request, consuming it; return whether one arrived."""
        notified = self.should_flush.wait(timeout)
        if notified:
            self.should_flush.clear()
        return notified


class Shared:
    """State shared between the instrumentation layer and the aggregator."""

    def __init__(self) -> None:
        self.flush = Flush()
        self._lock = threading.Lock()
        self._dropped = dict.fromkeys(DROPPED_COUNTERS, 0)

    def _check(self, counter: str) -> None:
        if counter not in self._dropped:
            raise KeyError(f"unknown dropped-event counter: {counter!r}")

    def add_dropped(self, counter: str, count: int = 1) -> None:
        """Count ``count`` events of kind ``counter`` as dropped."""
        self._check(counter)
        with self._lock:
            self._dropped[counter] += count

    def dropped(self, counter: str) -> int:
        self._check(counter)
        with self._lock:
            return self._dropped[counter]

    def take_dropped(self, counter: str) -> int:
        """Return the number of dropped events and reset the counter to zero."""
        self._check(counter)
        with self._lock:
            count = self._dropped[counter]
            self._dropped[counter] = 0
            return count

    def __repr__(self) -> str:
        with self._lock:
            counts = dict(self._dropped)
        return f"Shared(flush_triggered={self.flush.is_triggered()}, dropped={counts})"


@dataclass
class EventCounts:
    """Count of events received in one aggregator drain cycle."""

    async_resource_op: int = 0
    metadata: int = 0
    poll_op: int = 0
    resource: int = 0
    spawn: int = 0

    def update(self, event: Event) -> None:
        """Count ``event`` according to its type."""
        if isinstance(event, AsyncOpCreated):
            self.async_resource_op += 1
        elif isinstance(event, MetadataRegistered):
            self.metadata += 1
        elif isinstance(event, PollOpEvent):
            self.poll_op += 1
        elif isinstance(event, ResourceCreated):
            self.resource += 1
        elif isinstance(event, TaskSpawned):
            self.spawn += 1
        else:
            raise TypeError(f"not an aggregator event: {event!r}")

    def total(self) -> int:
        return self.async_resource_op + self.metadata + self.poll_op + self.resource + self.spawn