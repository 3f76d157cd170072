"""Addresses on which the console server listens."""

from __future__ import annotations

import ipaddress
import os
import re
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

DEFAULT_IP = ipaddress.ip_address("127.0.0.1")
DEFAULT_PORT = 6669

_PORT_RE = re.compile(r"\+?[0-9]+")
_MAX_PORT = 65535


def _check_port(port: Any) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise TypeError(f"port must be an integer, got {port!r}")
    if not 0 <= port <= _MAX_PORT:
        raise ValueError(f"port {port} out of range")
    return port


@dataclass(frozen=True)
class ServerAddr:
    """An address a server can listen on: TCP or a Unix domain socket."""


@dataclass(frozen=True)
class TcpAddr(ServerAddr):
    """A TCP socket address."""

    ip: IpAddress = DEFAULT_IP
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not isinstance(self.ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "ip", ipaddress.ip_address(self.ip))
        _check_port(self.port)

    def __str__(self) -> str:
        if isinstance(self.ip, ipaddress.IPv6Address):
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass(frozen=True)
class UnixAddr(ServerAddr):
    """A Unix domain socket address."""

    path: Path

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

    def __str__(self) -> str:
        return str(self.path)


def server_addr_from(value: Any) -> ServerAddr:
    """Convert ``value`` into a :class:`ServerAddr`.

    Accepts a ``ServerAddr``, an ``(ip, port)`` pair whose first item is an
    IP address (not a host name), or a filesystem path for a Unix socket.
    """
    if isinstance(value, ServerAddr):
        if type(value) is ServerAddr:
            raise TypeError("a concrete TCP or Unix address is required")
        return value
    if isinstance(value, tuple):
        if len(value) != 2:
            raise ValueError(f"expected an (ip, port) pair, got {value!r}")
        ip, port = value
        return TcpAddr(ipaddress.ip_address(ip), _check_port(port))
    if isinstance(value, os.PathLike):
        return UnixAddr(Path(value))
    raise TypeError(f"cannot use {value!r} as a server address")


def _split_host_port(text: str) -> tuple[str, int]:
    bad_format = ValueError(f"{text!r} must be formatted as HOST:PORT, such as localhost:4321")
    if text.startswith("["):
        close = text.find("]:")
        if close < 0:
            raise bad_format
        host, port_text = text[1:close], text[close + 2 :]
    else:
        host, sep, port_text = text.rpartition(":")
        if not sep:
            raise bad_format
    if not _PORT_RE.fullmatch(port_text):
        raise ValueError(f"invalid port value in {text!r}")
    port = int(port_text)
    if port > _MAX_PORT:
        raise ValueError(f"invalid port value in {text!r}")
    return host, port


def resolve_bind(text: str) -> TcpAddr:
    """Resolve a ``HOST:PORT`` string to the first matching TCP address."""
    host, port = _split_host_port(text)
    try:
        return TcpAddr(ipaddress.ip_address(host), port)
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (OSError, UnicodeError) as error:
        raise ValueError(f"could not resolve {text!r}: {error}") from error
    for family, _type, _proto, _name, sockaddr in infos:
        if family in (socket.AF_INET, socket.AF_INET6):
            return TcpAddr(ipaddress.ip_address(sockaddr[0]), port)
    raise ValueError(f"could not resolve {text!r}")