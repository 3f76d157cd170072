import pytest

from taskconsole.envconfig import (
    ConfigError,
    console_filter,
    duration_from_env,
    parse_duration,
    usize_from_env,
)
from taskconsole.proto import Kind, Level, Metadata


def meta(name, target, kind):
    return Metadata(name=name, target=target, kind=kind, level=Level.TRACE)


def test_documented_defaults_parse():
    assert parse_duration("3600s") == 3600
    assert parse_duration("1h") == 3600
    assert parse_duration("1000ms") == 1.0


def test_equivalent_spellings_agree():
    assert parse_duration("1h") == parse_duration("60m") == parse_duration("3600s")
    assert parse_duration("1hour") == parse_duration("1h")
    assert parse_duration("1day") == parse_duration("24h")
    assert parse_duration("1week") == parse_duration("7d")


def test_components_add_up():
    assert parse_duration("1h 30m") == parse_duration("90m")
    assert parse_duration("1h30m") == parse_duration("90min")
    assert parse_duration("1s 500ms") == parse_duration("1500ms")


def test_minutes_and_months_are_distinct():
    assert parse_duration("1M") > parse_duration("1m")
    assert parse_duration("1m") == parse_duration("60s")


def test_small_units_scale():
    assert parse_duration("1000us") == parse_duration("1ms")
    assert parse_duration("1000000ns") == parse_duration("1ms")


@pytest.mark.parametrize("text", ["", "   ", "10", "5 parsecs", "1.5s", "-1s", "s"])
def test_parse_duration_rejects(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        parse_duration("10")


def test_duration_from_env_unset():
    assert duration_from_env("TOKIO_CONSOLE_RETENTION", {}) is None


def test_duration_from_env_set():
    env = {"TOKIO_CONSOLE_PUBLISH_INTERVAL": "100ms"}
    assert duration_from_env("TOKIO_CONSOLE_PUBLISH_INTERVAL", env) == parse_duration("100ms")


def test_duration_from_env_invalid_names_variable():
    env = {"TOKIO_CONSOLE_RETENTION": "forever"}
    with pytest.raises(ConfigError, match="TOKIO_CONSOLE_RETENTION"):
        duration_from_env("TOKIO_CONSOLE_RETENTION", env)


def test_usize_from_env():
    assert usize_from_env("TOKIO_CONSOLE_BUFFER_CAPACITY", {}) is None
    env = {"TOKIO_CONSOLE_BUFFER_CAPACITY": "102400"}
    assert usize_from_env("TOKIO_CONSOLE_BUFFER_CAPACITY", env) == 102400
    assert usize_from_env("N", {"N": "+7"}) == 7


@pytest.mark.parametrize("value", ["", "-1", "abc", "1.5", " 7", "18446744073709551616"])
def test_usize_from_env_rejects(value):
    with pytest.raises(ConfigError, match="N="):
        usize_from_env("N", {"N": value})


def test_usize_from_env_accepts_max():
    assert usize_from_env("N", {"N": "18446744073709551615"}) == 2**64 - 1


def test_console_filter_events_by_target():
    assert console_filter(meta("event", "runtime::waker", Kind.EVENT))
    assert console_filter(meta("event", "tokio::task::waker", Kind.EVENT))
    assert not console_filter(meta("event", "my_app", Kind.EVENT))
    assert not console_filter(meta("runtime.spawn", "my_app", Kind.EVENT))


def test_console_filter_spans_by_name_or_tokio_target():
    assert console_filter(meta("runtime.spawn", "my_app", Kind.SPAN))
    assert console_filter(meta("task", "tokio::task", Kind.SPAN))
    assert not console_filter(meta("runtime", "my_app", Kind.SPAN))
    assert not console_filter(meta("handler", "runtime::stuff", Kind.SPAN))