"""Wire-level data types: metadata, locations, fields and attributes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class Level(Enum):
    """Verbosity level of a span or event."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


class Kind(Enum):
    """Whether a callsite describes a span or an event."""

    SPAN = "span"
    EVENT = "event"


class ValueKind(Enum):
    """The type carried by a field value."""

    BOOL = "bool"
    STR = "str"
    U64 = "u64"
    I64 = "i64"
    DEBUG = "debug"


@dataclass(frozen=True)
class FieldValue:
    """A typed field value."""

    kind: ValueKind
    value: Any

    def __post_init__(self) -> None:
        if self.kind is ValueKind.BOOL:
            if not isinstance(self.value, bool):
                raise TypeError(f"bool value expected, got {self.value!r}")
        elif self.kind in (ValueKind.STR, ValueKind.DEBUG):
            if not isinstance(self.value, str):
                raise TypeError(f"string value expected, got {self.value!r}")
        else:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise TypeError(f"integer value expected, got {self.value!r}")
            low, high = (0, U64_MAX) if self.kind is ValueKind.U64 else (I64_MIN, I64_MAX)
            if not low <= self.value <= high:
                raise OverflowError(f"{self.value} out of range for {self.kind.value}")

    def __str__(self) -> str:
        if self.kind is ValueKind.BOOL:
            return "true" if self.value else "false"
        return str(self.value)


def field_value(value: Any) -> FieldValue:
    """Convert a Python value into a :class:`FieldValue`.

    Booleans, strings and integers map onto their own kinds; non-negative
    integers become unsigned, negative ones signed. Anything else is stored
    as its ``repr``.
    """
    if isinstance(value, FieldValue):
        return value
    if isinstance(value, bool):
        return FieldValue(ValueKind.BOOL, value)
    if isinstance(value, int):
        if value >= 0:
            return FieldValue(ValueKind.U64, value)
        return FieldValue(ValueKind.I64, value)
    if isinstance(value, str):
        return FieldValue(ValueKind.STR, value)
    return FieldValue(ValueKind.DEBUG, repr(value))


@dataclass
class Field:
    """A named field; the name is either a string or a metadata index."""

    name: str | int | None = None
    value: FieldValue | None = None

    def __str__(self) -> str:
        if isinstance(self.name, str) and self.value is not None:
            return f"{self.name}={self.value}"
        return ""


@dataclass(frozen=True)
class Location:
    """A source code location."""

    file: str | None = None
    module_path: str | None = None
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        # Module paths take precedence because they're shorter.
        head = self.module_path if self.module_path is not None else self.file
        if head is None:
            return "<unknown location>"
        text = head
        if self.line is not None:
            text += f":{self.line}"
            if self.column is not None:
                text += f":{self.column}"
        return text


@dataclass(frozen=True)
class Metadata:
    """Static description of a span or event callsite."""

    name: str
    target: str
    kind: Kind
    level: Level
    location: Location | None = None
    field_names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_span(self) -> bool:
        return self.kind is Kind.SPAN

    @property
    def is_event(self) -> bool:
        return self.kind is Kind.EVENT


@dataclass
class Attribute:
    """A field attached to a resource or async op, with an optional unit."""

    field: Field | None = None
    unit: str | None = None