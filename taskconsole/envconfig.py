"""Configuration values read from environment variables."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from .proto import Metadata

_NANOS_PER_SEC = 1_000_000_000
_U64_MAX = 2**64 - 1

_UNITS: dict[str, int] = {}
for _names, _nanos in (
    (("nanos", "nsec", "ns"), 1),
    (("usec", "us", "\u00b5s"), 1_000),
    (("millis", "msec", "ms"), 1_000_000),
    (("seconds", "second", "secs", "sec", "s"), _NANOS_PER_SEC),
    (("minutes", "minute", "mins", "min", "m"), 60 * _NANOS_PER_SEC),
    (("hours", "hour", "hrs", "hr", "h"), 3_600 * _NANOS_PER_SEC),
    (("days", "day", "d"), 86_400 * _NANOS_PER_SEC),
    (("weeks", "week", "w"), 604_800 * _NANOS_PER_SEC),
    (("months", "month", "M"), 2_630_016 * _NANOS_PER_SEC),
    (("years", "year", "y"), 31_557_600 * _NANOS_PER_SEC),
):
    for _name in _names:
        _UNITS[_name] = _nanos

_COMPONENT = re.compile(r"\s*([0-9]+)\s*([^0-9\s]*)\s*")
_USIZE = re.compile(r"\+?[0-9]+")


class ConfigError(ValueError):
    """A configuration value could not be parsed."""


def parse_duration(text: str) -> float:
    """Parse a human-readable duration such as ``"1h 30m"`` or ``"100ms"``.

    Returns the duration in seconds. Every number needs a unit.
    """
    if not text.strip():
        raise ConfigError("value was empty")
    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if match is None:
            raise ConfigError(f"expected number at {pos}")
        number, unit = int(match.group(1)), match.group(2)
        if not unit:
            raise ConfigError(f"time unit needed, for example {number}sec or {number}ms")
        if unit not in _UNITS:
            raise ConfigError(
                f"unknown time unit {unit!r}, supported units: "
                "ns, us, ms, sec, min, hours, days, weeks, months, years (and few variations)"
            )
        total += number * _UNITS[unit]
        if total // _NANOS_PER_SEC > _U64_MAX:
            raise ConfigError("number is too large")
        pos = match.end()
    return total / _NANOS_PER_SEC


def _lookup(name: str, environ: Mapping[str, str] | None) -> str | None:
    env = os.environ if environ is None else environ
    return env.get(name)


def duration_from_env(name: str, environ: Mapping[str, str] | None = None) -> float | None:
    """Read a duration in seconds from variable ``name``; None if unset."""
    value = _lookup(name, environ)
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ConfigError as error:
        raise ConfigError(f"failed to parse a duration from `{name}={value!r}`: {error}") from error


def usize_from_env(name: str, environ: Mapping[str, str] | None = None) -> int | None:
    """Read a non-negative integer from variable ``name``; None if unset."""
    value = _lookup(name, environ)
    if value is None:
        return None
    if not _USIZE.fullmatch(value):
        reason = "cannot parse integer from empty string" if not value else "invalid digit found in string"
        raise ConfigError(f"failed to parse a usize from `{name}={value!r}`: {reason}")
    number = int(value)
    if number > _U64_MAX:
        raise ConfigError(
            f"failed to parse a usize from `{name}={value!r}`: number too large to fit in target type"
        )
    return number


def console_filter(metadata: Metadata) -> bool:
    """Return True for the spans and events the console needs."""
    # events will have *targets* beginning with "runtime"
    if metadata.is_event:
        return metadata.target.startswith("runtime") or metadata.target.startswith("tokio")
    # spans will have *names* beginning with "runtime."; the `tokio` target is
    # accepted as well for older runtimes.
    return metadata.name.startswith("runtime.") or metadata.target.startswith("tokio")