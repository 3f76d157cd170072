"""Recording of task lifecycle events to a newline-delimited JSON file."""

from __future__ import annotations

import json
import logging
import os
import queue
import sys
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import IO, Any, ClassVar, Union

from .proto import Field, ValueKind

log = logging.getLogger(__name__)

# The currently understood version of the recording format. Increase it
# whenever the format has a breaking change.
DATA_FORMAT_VERSION = 1

_NANOS_PER_SEC = 1_000_000_000


@dataclass(frozen=True)
class WakeOp:
    """A waker operation performed on a task."""

    WAKE: ClassVar[str] = "Wake"
    WAKE_BY_REF: ClassVar[str] = "WakeByRef"
    CLONE: ClassVar[str] = "Clone"
    DROP: ClassVar[str] = "Drop"

    op: str
    self_wake: bool = False

    def __post_init__(self) -> None:
        if self.op not in (self.WAKE, self.WAKE_BY_REF, self.CLONE, self.DROP):
            raise ValueError(f"unknown waker operation: {self.op!r}")
        if self.self_wake and not self.is_wake():
            raise ValueError(f"{self.op} cannot be a self-wake")

    @classmethod
    def wake(cls, self_wake: bool = False) -> WakeOp:
        return cls(cls.WAKE, self_wake)

    @classmethod
    def wake_by_ref(cls, self_wake: bool = False) -> WakeOp:
        return cls(cls.WAKE_BY_REF, self_wake)

    @classmethod
    def clone(cls) -> WakeOp:
        return cls(cls.CLONE)

    @classmethod
    def drop(cls) -> WakeOp:
        return cls(cls.DROP)

    def is_wake(self) -> bool:
        """Return True for ``Wake`` and ``WakeByRef`` operations."""
        return self.op in (self.WAKE, self.WAKE_BY_REF)

    def with_self_wake(self, self_wake: bool) -> WakeOp:
        """Return a copy with ``self_wake`` set; non-wake operations are unchanged."""
        if not self.is_wake():
            return self
        return replace(self, self_wake=self_wake)

    def to_json(self) -> Any:
        """The JSON form: a bare name, or a name mapped to its fields."""
        if self.is_wake():
            return {self.op: {"self_wake": self.self_wake}}
        return self.op


@dataclass(frozen=True)
class SpawnEvent:
    """A task was spawned. ``at`` is nanoseconds since the Unix epoch."""

    id: int
    at: int
    fields: list[Field] = field(default_factory=list)


@dataclass(frozen=True)
class EnterEvent:
    """A span was entered. ``at`` is nanoseconds since the Unix epoch."""

    id: int
    at: int


@dataclass(frozen=True)
class ExitEvent:
    """A span was exited. ``at`` is nanoseconds since the Unix epoch."""

    id: int
    at: int


@dataclass(frozen=True)
class CloseEvent:
    """A span was closed. ``at`` is nanoseconds since the Unix epoch."""

    id: int
    at: int


@dataclass(frozen=True)
class WakerEvent:
    """A waker operation happened. ``at`` is nanoseconds since the Unix epoch."""

    id: int
    op: WakeOp
    at: int


RecordEvent = Union[SpawnEvent, EnterEvent, ExitEvent, CloseEvent, WakerEvent]


def _system_time(at: int) -> dict[str, int]:
    if isinstance(at, bool) or not isinstance(at, int):
        raise TypeError(f"timestamp must be integer nanoseconds, got {at!r}")
    if at < 0:
        raise ValueError("timestamp must not be before the Unix epoch")
    secs, nanos = divmod(at, _NANOS_PER_SEC)
    return {"secs_since_epoch": secs, "nanos_since_epoch": nanos}


def _serialize_field(item: Field) -> dict[str, Any]:
    if item.name is None:
        raise ValueError("field has no name")
    if not isinstance(item.name, str):
        raise ValueError("fields named by metadata index cannot be recorded")
    if item.value is None:
        raise ValueError(f"field {item.name!r} has no value")
    value = item.value
    if value.kind in (ValueKind.STR, ValueKind.DEBUG, ValueKind.BOOL):
        return {"name": item.name, "value": value.value}
    return {"name": item.name, "value": int(value.value)}


def serialize_fields(fields: Iterable[Field]) -> list[dict[str, Any]]:
    """Convert task fields to their JSON form: a list of name/value objects."""
    return [_serialize_field(item) for item in fields]


def event_to_json(event: RecordEvent) -> dict[str, Any]:
    """Convert a recorded event to its JSON form, tagged by event type."""
    if isinstance(event, SpawnEvent):
        return {
            "Spawn": {
                "id": event.id,
                "at": _system_time(event.at),
                "fields": serialize_fields(event.fields),
            }
        }
    if isinstance(event, WakerEvent):
        return {
            "Waker": {
                "id": event.id,
                "op": event.op.to_json(),
                "at": _system_time(event.at),
            }
        }
    tags = {EnterEvent: "Enter", ExitEvent: "Exit", CloseEvent: "Close"}
    tag = tags.get(type(event))
    if tag is None:
        raise TypeError(f"not a recordable event: {event!r}")
    return {tag: {"id": event.id, "at": _system_time(event.at)}}


def _write_line(file: IO[str], value: Any) -> None:
    file.write(json.dumps(value, separators=(",", ":"), ensure_ascii=False))
    file.write("\n")


_STOP = object()


class Recorder:
    """Writes events to a file from a background thread.

    The file starts with a header line holding the format version, followed
    by one JSON object per event.
    """

    QUEUE_CAPACITY = 4096

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = path
        file = open(path, "w", encoding="utf-8")
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=self.QUEUE_CAPACITY)
        self._lock = threading.Lock()
        self._closed = False
        self._worker = threading.Thread(
            target=self._run,
            args=(file,),
            name="console/subscriber/recorder/io",
            daemon=True,
        )
        try:
            self._worker.start()
        except BaseException:
            file.close()
            raise

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, item: Any) -> bool:
        while True:
            if not self._worker.is_alive():
                return False
            try:
                self._queue.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue

    def record(self, event: RecordEvent) -> None:
        """Queue ``event`` for writing."""
        with self._lock:
            closed = self._closed
        if closed or not self._put(event):
            print("event recorder thread has terminated!", file=sys.stderr)

    def close(self) -> None:
        """Write out all queued events and close the file."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._put(_STOP)
        self._worker.join()

    def __enter__(self) -> Recorder:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _run(self, file: IO[str]) -> None:
        try:
            with file:
                _write_line(file, {"v": DATA_FORMAT_VERSION})
                file.flush()
                stop = False
                while not stop:
                    item = self._queue.get()
                    if item is _STOP:
                        break
                    _write_line(file, event_to_json(item))
                    # drain any additional events that are ready now
                    while True:
                        try:
                            item = self._queue.get_nowait()
                        except queue.Empty:
                            break
                        if item is _STOP:
                            stop = True
                            break
                        _write_line(file, event_to_json(item))
                    file.flush()
                log.debug("event stream ended; flushing file")
        except Exception as error:  # the worker must report, not crash silently
            print(f"event recorder failed: {error}", file=sys.stderr)