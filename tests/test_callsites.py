import threading

import pytest

from taskconsole.callsites import CallsiteKind, Callsites, classify_callsite
from taskconsole.proto import Kind, Level, Metadata


def meta(name="span", target="app"):
    return Metadata(name=name, target=target, kind=Kind.SPAN, level=Level.INFO)


def test_insert_and_contains():
    sites = Callsites(4)
    a, b = meta("a"), meta("b")
    sites.insert(a)
    assert sites.contains(a)
    assert a in sites
    assert b not in sites
    assert len(sites) == 1


def test_insert_is_idempotent():
    sites = Callsites(4)
    a = meta()
    sites.insert(a)
    sites.insert(a)
    assert len(sites) == 1


def test_spills_past_capacity():
    sites = Callsites(2)
    items = [meta(str(i)) for i in range(5)]
    for item in items:
        sites.insert(item)
    assert len(sites) == 5
    assert sites.spilled == 3
    assert all(item in sites for item in items)
    sites.insert(items[4])
    assert len(sites) == 5


def test_zero_capacity_uses_spill_only():
    sites = Callsites(0)
    a = meta()
    sites.insert(a)
    assert a in sites
    assert sites.spilled == 1


def test_identity_not_equality():
    sites = Callsites(1)
    a = meta("same")
    twin = meta("same")
    sites.insert(a)
    assert a == twin
    assert twin not in sites


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        Callsites(-1)


def test_concurrent_inserts_are_not_lost():
    sites = Callsites(8)
    items = [meta(str(i)) for i in range(50)]

    def worker():
        for item in items:
            sites.insert(item)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(sites) == len(items)
    assert all(item in sites for item in items)


@pytest.mark.parametrize(
    "name,target,kind",
    [
        ("runtime.spawn", "anything", CallsiteKind.SPAWN),
        ("task", "tokio::task", CallsiteKind.SPAWN),
        ("task", "other", CallsiteKind.OTHER),
        ("event", "runtime::waker", CallsiteKind.WAKER),
        ("event", "tokio::task::waker", CallsiteKind.WAKER),
        ("runtime.resource", "x", CallsiteKind.RESOURCE),
        ("runtime.resource.async_op", "x", CallsiteKind.ASYNC_OP),
        ("runtime.resource.async_op.poll", "x", CallsiteKind.ASYNC_OP_POLL),
        ("e", "runtime::resource::poll_op", CallsiteKind.POLL_OP),
        ("e", "runtime::resource::state_update", CallsiteKind.RESOURCE_STATE_UPDATE),
        (
            "e",
            "runtime::resource::async_op::state_update",
            CallsiteKind.ASYNC_OP_STATE_UPDATE,
        ),
        ("my_span", "my_app", CallsiteKind.OTHER),
    ],
)
def test_classify(name, target, kind):
    assert classify_callsite(name, target) is kind


def test_spawn_name_wins_over_waker_target():
    assert classify_callsite("runtime.spawn", "runtime::waker") is CallsiteKind.SPAWN


@pytest.mark.parametrize(
    "kind,counter",
    [
        (CallsiteKind.SPAWN, "tasks"),
        (CallsiteKind.WAKER, "tasks"),
        (CallsiteKind.OTHER, "tasks"),
        (CallsiteKind.RESOURCE, "resources"),
        (CallsiteKind.RESOURCE_STATE_UPDATE, "resources"),
        (CallsiteKind.ASYNC_OP, "async_ops"),
        (CallsiteKind.ASYNC_OP_POLL, "async_ops"),
        (CallsiteKind.POLL_OP, "async_ops"),
        (CallsiteKind.ASYNC_OP_STATE_UPDATE, "async_ops"),
    ],
)
def test_dropped_counter(kind, counter):
    assert kind.dropped_counter == counter