"""Registries of callsites of interest, and callsite classification."""

from __future__ import annotations

import threading
from enum import Enum

from .proto import Metadata

SPAWN_SPAN_NAME = "runtime.spawn"
LEGACY_SPAWN_SPAN = ("task", "tokio::task")
WAKER_EVENT_TARGETS = ("runtime::waker", "tokio::task::waker")
RESOURCE_SPAN_NAME = "runtime.resource"
ASYNC_OP_SPAN_NAME = "runtime.resource.async_op"
ASYNC_OP_POLL_SPAN_NAME = "runtime.resource.async_op.poll"
POLL_OP_EVENT_TARGET = "runtime::resource::poll_op"
RESOURCE_STATE_UPDATE_EVENT_TARGET = "runtime::resource::state_update"
ASYNC_OP_STATE_UPDATE_EVENT_TARGET = "runtime::resource::async_op::state_update"


class Callsites:
    """A set of callsites, compared by identity.

    Up to ``max_callsites`` entries live in a fast list; further ones spill
    over into a dictionary.
    """

    def __init__(self, max_callsites: int) -> None:
        if max_callsites < 0:
            raise ValueError("max_callsites must not be negative")
        self.max_callsites = max_callsites
        self._slots: list[Metadata] = []
        self._spill: dict[int, Metadata] = {}
        self._lock = threading.Lock()

    def insert(self, callsite: Metadata) -> None:
        """Add ``callsite`` unless it is already present."""
        with self._lock:
            if self._contains(callsite):
                return
            if len(self._slots) < self.max_callsites:
                self._slots.append(callsite)
            else:
                self._spill[id(callsite)] = callsite

    def _contains(self, callsite: Metadata) -> bool:
        if any(cs is callsite for cs in self._slots):
            return True
        return self._spill.get(id(callsite)) is callsite

    def contains(self, callsite: Metadata) -> bool:
        with self._lock:
            return self._contains(callsite)

    def __contains__(self, callsite: object) -> bool:
        return self.contains(callsite)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._slots) + len(self._spill)

    @property
    def spilled(self) -> int:
        """Number of callsites held in the overflow set."""
        return len(self._spill)

    def __repr__(self) -> str:
        return (
            f"Callsites(len={len(self)}, max_callsites={self.max_callsites}, "
            f"spilled={self.spilled})"
        )


class CallsiteKind(Enum):
    """The role a callsite plays for the console."""

    SPAWN = "spawn"
    WAKER = "waker"
    RESOURCE = "resource"
    ASYNC_OP = "async_op"
    ASYNC_OP_POLL = "async_op_poll"
    POLL_OP = "poll_op"
    RESOURCE_STATE_UPDATE = "resource_state_update"
    ASYNC_OP_STATE_UPDATE = "async_op_state_update"
    OTHER = "other"

    @property
    def dropped_counter(self) -> str:
        """Name of the dropped-event counter events of this kind count against."""
        if self in (CallsiteKind.RESOURCE, CallsiteKind.RESOURCE_STATE_UPDATE):
            return "resources"
        if self in (
            CallsiteKind.ASYNC_OP,
            CallsiteKind.ASYNC_OP_POLL,
            CallsiteKind.POLL_OP,
            CallsiteKind.ASYNC_OP_STATE_UPDATE,
        ):
            return "async_ops"
        return "tasks"


def classify_callsite(name: str, target: str) -> CallsiteKind:
    """Classify a callsite by its name and target; the first matching rule wins."""
    if name == SPAWN_SPAN_NAME or (name, target) == LEGACY_SPAWN_SPAN:
        return CallsiteKind.SPAWN
    if target in WAKER_EVENT_TARGETS:
        return CallsiteKind.WAKER
    if name == RESOURCE_SPAN_NAME:
        return CallsiteKind.RESOURCE
    if name == ASYNC_OP_SPAN_NAME:
        return CallsiteKind.ASYNC_OP
    if name == ASYNC_OP_POLL_SPAN_NAME:
        return CallsiteKind.ASYNC_OP_POLL
    if target == POLL_OP_EVENT_TARGET:
        return CallsiteKind.POLL_OP
    if target == RESOURCE_STATE_UPDATE_EVENT_TARGET:
        return CallsiteKind.RESOURCE_STATE_UPDATE
    if target == ASYNC_OP_STATE_UPDATE_EVENT_TARGET:
        return CallsiteKind.ASYNC_OP_STATE_UPDATE
    return CallsiteKind.OTHER