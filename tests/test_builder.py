import ipaddress
from pathlib import Path

import pytest

from taskconsole.addr import TcpAddr, UnixAddr
from taskconsole.builder import Builder
from taskconsole.envconfig import ConfigError


def test_defaults_match_documented_values():
    builder = Builder()
    assert builder.event_buffer_capacity == 1024 * 100
    assert builder.client_buffer_capacity == 1024 * 4
    assert builder.publish_interval == 1.0
    assert builder.retention == 3600.0
    assert builder.filter_env_var == "RUST_LOG"
    assert builder.recording_path is None
    assert builder.self_trace is False


def test_default_server_addr():
    addr = Builder().server_addr
    assert addr == TcpAddr(ipaddress.ip_address("127.0.0.1"), 6669)
    assert str(addr) == "127.0.0.1:6669"


def test_with_methods_return_new_builder_and_leave_original():
    original = Builder()
    changed = original.with_retention(30).with_publish_interval(0.5)
    assert changed.retention == 30.0
    assert changed.publish_interval == 0.5
    assert original.retention == Builder.DEFAULT_RETENTION
    assert original.publish_interval == Builder.DEFAULT_PUBLISH_INTERVAL


def test_capacity_setters():
    builder = Builder().with_event_buffer_capacity(10).with_client_buffer_capacity(3)
    assert builder.event_buffer_capacity == 10
    assert builder.client_buffer_capacity == 3


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        Builder().with_event_buffer_capacity(-1)


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        Builder().with_retention(-5)


def test_histogram_max_setters():
    builder = Builder().with_poll_duration_histogram_max(2).with_scheduled_duration_histogram_max(3)
    assert builder.poll_duration_max == 2.0
    assert builder.scheduled_duration_max == 3.0
    assert builder.max_poll_duration_nanos == 2 * 1_000_000_000


def test_server_addr_tuple_and_path():
    tcp = Builder().with_server_addr(("127.0.0.1", 1234)).server_addr
    assert tcp == TcpAddr(ipaddress.ip_address("127.0.0.1"), 1234)
    unix = Builder().with_server_addr(Path("/tmp/tokio-console")).server_addr
    assert unix == UnixAddr(Path("/tmp/tokio-console"))


def test_recording_path_and_filter_and_self_trace():
    builder = (
        Builder()
        .with_recording_path("events.json")
        .with_filter_env_var("MY_LOG")
        .with_self_trace(True)
    )
    assert builder.recording_path == Path("events.json")
    assert builder.filter_env_var == "MY_LOG"
    assert builder.self_trace is True


def test_with_default_env_empty_environ_changes_nothing():
    builder = Builder()
    assert builder.with_default_env({}) == builder


def test_with_default_env_reads_all_variables():
    env = {
        "TOKIO_CONSOLE_RETENTION": "30s",
        "TOKIO_CONSOLE_BIND": "127.0.0.1:1234",
        "TOKIO_CONSOLE_PUBLISH_INTERVAL": "100ms",
        "TOKIO_CONSOLE_RECORD_PATH": "record.json",
        "TOKIO_CONSOLE_BUFFER_CAPACITY": "10",
    }
    builder = Builder().with_default_env(env)
    assert builder.retention == 30.0
    assert builder.server_addr == TcpAddr(ipaddress.ip_address("127.0.0.1"), 1234)
    assert builder.publish_interval == pytest.approx(0.1)
    assert builder.recording_path == Path("record.json")
    assert builder.event_buffer_capacity == 10


def test_with_default_env_ipv6_bind():
    builder = Builder().with_default_env({"TOKIO_CONSOLE_BIND": "[::1]:8080"})
    assert builder.server_addr == TcpAddr(ipaddress.ip_address("::1"), 8080)


def test_with_default_env_bad_duration():
    with pytest.raises(ConfigError):
        Builder().with_default_env({"TOKIO_CONSOLE_RETENTION": "forever"})


def test_with_default_env_bad_bind():
    with pytest.raises(ConfigError):
        Builder().with_default_env({"TOKIO_CONSOLE_BIND": "no-port-here"})


def test_with_default_env_bad_capacity():
    with pytest.raises(ConfigError):
        Builder().with_default_env({"TOKIO_CONSOLE_BUFFER_CAPACITY": "lots"})


@pytest.mark.parametrize("capacity", [0, 1, 7, 10, 1024 * 100])
def test_flush_under_capacity_is_half(capacity):
    flush = Builder().with_event_buffer_capacity(capacity).flush_under_capacity()
    assert 2 * flush <= capacity < 2 * flush + 2