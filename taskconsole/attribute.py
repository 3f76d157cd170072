"""Resource and async-op attributes updated by state-update events."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from enum import Enum

from .proto import I64_MAX, I64_MIN, U64_MAX, Attribute, Field, FieldValue, ValueKind

log = logging.getLogger(__name__)


class UpdateOp(Enum):
    """How a numeric update combines with the current value."""

    ADD = "add"
    OVERRIDE = "override"
    SUB = "sub"


@dataclass
class Update:
    """A single attribute update carried by a state-update event."""

    field: Field
    op: UpdateOp | None = None
    unit: str | None = None

    def to_attribute(self) -> Attribute:
        """Build a fresh attribute from this update."""
        return Attribute(field=dataclasses.replace(self.field), unit=self.unit)


class Attributes:
    """Attributes keyed by the updating span id and the field name."""

    def __init__(self) -> None:
        self._attributes: dict[tuple[Hashable, str | int], Attribute] = {}

    def values(self) -> Iterator[Attribute]:
        return iter(self._attributes.values())

    def __len__(self) -> int:
        return len(self._attributes)

    def update(self, id: Hashable, update: Update) -> None:
        """Apply ``update`` for span ``id``, creating the attribute if new."""
        name = update.field.name
        if name is None:
            log.warning("field missing name, skipping: %r", update.field)
            return
        key = (id, name)
        existing = self._attributes.get(key)
        if existing is None:
            self._attributes[key] = update.to_attribute()
        else:
            update_attribute(existing, update)


_INT_RANGES = {
    ValueKind.U64: (0, U64_MAX),
    ValueKind.I64: (I64_MIN, I64_MAX),
}


def update_attribute(attribute: Attribute, update: Update) -> None:
    """Apply ``update`` to ``attribute`` in place.

    Values of the same kind replace each other; numeric values combine
    according to the update's op, saturating at the type's bounds.
    Mismatched kinds are logged and left unchanged.
    """
    current = attribute.field.value if attribute.field is not None else None
    incoming = update.field.value
    if current is None or incoming is None or current.kind is not incoming.kind:
        log.warning("attribute %r cannot be updated by update %r", current, incoming)
        return

    kind = current.kind
    if kind not in _INT_RANGES:
        attribute.field.value = incoming
        return

    if update.op is None:
        log.warning("numeric attribute update %r needs to have an op field", update.field.name)
        return
    low, high = _INT_RANGES[kind]
    if update.op is UpdateOp.ADD:
        result = min(current.value + incoming.value, high)
    elif update.op is UpdateOp.SUB:
        result = max(current.value - incoming.value, low)
    else:
        result = incoming.value
    attribute.field.value = FieldValue(kind, result)