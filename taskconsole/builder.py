"""Configuration for the console instrumentation layer and its server."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, ClassVar

from .addr import DEFAULT_IP, DEFAULT_PORT, ServerAddr, TcpAddr, resolve_bind, server_addr_from
from .envconfig import ConfigError, duration_from_env, usize_from_env

_NANOS_PER_SEC = 1_000_000_000


def _check_duration(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number of seconds, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return float(value)


def _check_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


@dataclass(frozen=True)
class Builder:
    """Immutable settings; each ``with_*`` method returns an updated copy.

    Durations are in seconds.
    """

    # Maximum capacity for the channel of events to the aggregator.
    DEFAULT_EVENT_BUFFER_CAPACITY: ClassVar[int] = 1024 * 100
    # Maximum number of updates buffered per client before it is dropped.
    DEFAULT_CLIENT_BUFFER_CAPACITY: ClassVar[int] = 1024 * 4
    DEFAULT_PUBLISH_INTERVAL: ClassVar[float] = 1.0
    # Completed spans are retained for one hour.
    DEFAULT_RETENTION: ClassVar[float] = 60.0 * 60.0
    DEFAULT_POLL_DURATION_MAX: ClassVar[float] = 1.0
    DEFAULT_SCHEDULED_DURATION_MAX: ClassVar[float] = 1.0
    DEFAULT_FILTER_ENV_VAR: ClassVar[str] = "RUST_LOG"

    event_buffer_capacity: int = DEFAULT_EVENT_BUFFER_CAPACITY
    client_buffer_capacity: int = DEFAULT_CLIENT_BUFFER_CAPACITY
    publish_interval: float = DEFAULT_PUBLISH_INTERVAL
    retention: float = DEFAULT_RETENTION
    server_addr: ServerAddr = field(default_factory=lambda: TcpAddr(DEFAULT_IP, DEFAULT_PORT))
    recording_path: Path | None = None
    filter_env_var: str = DEFAULT_FILTER_ENV_VAR
    self_trace: bool = False
    poll_duration_max: float = DEFAULT_POLL_DURATION_MAX
    scheduled_duration_max: float = DEFAULT_SCHEDULED_DURATION_MAX

    def with_event_buffer_capacity(self, capacity: int) -> Builder:
        """Set the capacity of the event channel; events beyond it are dropped."""
        return replace(self, event_buffer_capacity=_check_count("capacity", capacity))

    def with_client_buffer_capacity(self, capacity: int) -> Builder:
        """Set how many updates are buffered for each client."""
        return replace(self, client_buffer_capacity=_check_count("capacity", capacity))

    def with_publish_interval(self, interval: float) -> Builder:
        """Set how often updates are published to clients."""
        return replace(self, publish_interval=_check_duration("interval", interval))

    def with_retention(self, retention: float) -> Builder:
        """Set how long data for completed tasks is kept."""
        return replace(self, retention=_check_duration("retention", retention))

    def with_server_addr(self, addr: Any) -> Builder:
        """Set the TCP or Unix socket address the server listens on."""
        return replace(self, server_addr=server_addr_from(addr))

    def with_recording_path(self, path: str | os.PathLike[str]) -> Builder:
        """Record events to the file at ``path``."""
        return replace(self, recording_path=Path(path))

    def with_filter_env_var(self, name: str) -> Builder:
        """Set the environment variable holding the log filter."""
        if not isinstance(name, str):
            raise TypeError(f"variable name must be a string, got {name!r}")
        return replace(self, filter_env_var=name)

    def with_poll_duration_histogram_max(self, maximum: float) -> Builder:
        """Set the largest poll duration recorded; longer polls are clamped."""
        return replace(self, poll_duration_max=_check_duration("maximum", maximum))

    def with_scheduled_duration_histogram_max(self, maximum: float) -> Builder:
        """Set the largest scheduled duration recorded; longer ones are clamped."""
        return replace(self, scheduled_duration_max=_check_duration("maximum", maximum))

    def with_self_trace(self, self_trace: bool) -> Builder:
        """Set whether activity of the console's own thread is recorded."""
        return replace(self, self_trace=bool(self_trace))

    def with_default_env(self, environ: Mapping[str, str] | None = None) -> Builder:
        """Apply settings from the standard environment variables.

        ``environ`` defaults to the process environment. Unset variables
        leave the current values alone; malformed ones raise ConfigError.
        """
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}

        retention = duration_from_env("TOKIO_CONSOLE_RETENTION", env)
        if retention is not None:
            changes["retention"] = retention

        bind = env.get("TOKIO_CONSOLE_BIND")
        if bind is not None:
            try:
                changes["server_addr"] = resolve_bind(bind)
            except ValueError as error:
                raise ConfigError(
                    "TOKIO_CONSOLE_BIND must be formatted as HOST:PORT, "
                    f"such as localhost:4321: {error}"
                ) from error

        interval = duration_from_env("TOKIO_CONSOLE_PUBLISH_INTERVAL", env)
        if interval is not None:
            changes["publish_interval"] = interval

        path = env.get("TOKIO_CONSOLE_RECORD_PATH")
        if path is not None:
            changes["recording_path"] = Path(path)

        capacity = usize_from_env("TOKIO_CONSOLE_BUFFER_CAPACITY", env)
        if capacity is not None:
            changes["event_buffer_capacity"] = capacity

        return replace(self, **changes)

    def flush_under_capacity(self) -> int:
        """Remaining channel capacity at which a flush is requested: half full."""
        return self.event_buffer_capacity // 2

    @property
    def max_poll_duration_nanos(self) -> int:
        return round(self.poll_duration_max * _NANOS_PER_SEC)

    @property
    def max_scheduled_duration_nanos(self) -> int:
        return round(self.scheduled_duration_max * _NANOS_PER_SEC)