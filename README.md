# taskconsole

`taskconsole` provides building blocks for a diagnostics collector for async
runtimes: data types describing tasks, resources and their attributes, a
bounded event channel with dropped-event accounting, callsite registries,
configuration from the environment, and a recorder that writes task events to
a line-delimited JSON file.

## Installation

```
pip install taskconsole
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install taskconsole[test]
pytest
```

## Modules

- `taskconsole.proto` holds the data types: `Metadata`, `Location`, `Field`,
  `FieldValue`, `Attribute`, and the enumerations `Level`, `Kind` and
  `ValueKind`. `field_value()` turns a Python value into a `FieldValue`
  (booleans, strings, non-negative integers as unsigned, negative integers as
  signed, anything else as its `repr`). `str()` of a `Location` gives
  `module_path` (or else `file`) followed by `:line` and `:column` when known,
  or `<unknown location>`; `str()` of a `Field` gives `name=value`.
- `taskconsole.attribute` keeps attributes up to date. An `Update` carries a
  `Field`, an optional `UpdateOp` (`ADD`, `SUB`, `OVERRIDE`) and a unit.
  `Attributes.update(id, update)` stores a new attribute per span id and field
  name, or applies the update with `update_attribute`: values of the same kind
  replace each other, numeric values combine according to the op and saturate
  at the bounds of their type, and mismatched kinds are logged and ignored.
- `taskconsole.shrink` offers `ShrinkMap` (a mutable mapping) and `ShrinkVec`
  (a mutable sequence). Their `retain_and_shrink(predicate)` removes entries
  and, when something was removed, asks a `Shrink` policy whether to compact:
  only every 60th time and only when at least 4 KiB would be freed.
- `taskconsole.callsites` has `Callsites`, a set of `Metadata` compared by
  identity with a fixed number of fast slots and an overflow set, and
  `classify_callsite(name, target)`, which returns a `CallsiteKind`.
  `CallsiteKind.dropped_counter` names the counter (`"tasks"`, `"resources"`
  or `"async_ops"`) that events of that kind count against.
- `taskconsole.events` defines the events passed to an aggregator
  (`MetadataRegistered`, `TaskSpawned`, `ResourceCreated`, `PollOpEvent`,
  `AsyncOpCreated`), a `Flush` signal, `Shared` state with dropped-event
  counters (`add_dropped`, `dropped`, `take_dropped`) and `EventCounts`.
- `taskconsole.sender.EventSender` is a bounded buffer. `send_stats` and
  `send_metadata` add an event when there is room, count it as dropped when
  the buffer is full, and trigger the shared `Flush` once the remaining
  capacity falls to half or below. `drain()` returns the buffered events and
  raises `ChannelClosed` once the sender is closed and empty.
- `taskconsole.record` writes `SpawnEvent`, `EnterEvent`, `ExitEvent`,
  `CloseEvent` and `WakerEvent` (with a `WakeOp`) to a file through a
  `Recorder`, which does the writing on a background thread and works as a
  context manager. `event_to_json` and `serialize_fields` give the JSON form.
- `taskconsole.addr` has `TcpAddr` and `UnixAddr` (both `ServerAddr`),
  `server_addr_from` and `resolve_bind` for `HOST:PORT` strings.
- `taskconsole.envconfig` has `parse_duration` (for example `"1h 30m"` or
  `"250ms"`, returning seconds), `duration_from_env`, `usize_from_env`,
  `console_filter` and `ConfigError`.
- `taskconsole.builder.Builder` gathers all settings in one immutable value.

## Configuration

Durations are given in seconds.

```python
from taskconsole.builder import Builder

builder = (
    Builder()
    .with_publish_interval(0.1)
    .with_retention(600)
    .with_server_addr(("127.0.0.1", 7000))
    .with_default_env()
)
```

`Builder.with_default_env` reads these variables (from `os.environ`, or from a
mapping passed to it); unset variables leave the current values alone:

| Variable                         | Meaning                                             | Default          |
|----------------------------------|-----------------------------------------------------|------------------|
| `TOKIO_CONSOLE_RETENTION`        | How long data about completed items is kept         | 1h               |
| `TOKIO_CONSOLE_BIND`             | Address to serve on, as HOST:PORT                   | `127.0.0.1:6669` |
| `TOKIO_CONSOLE_PUBLISH_INTERVAL` | Time between updates sent to clients                | 1s               |
| `TOKIO_CONSOLE_RECORD_PATH`      | File to write a recording of events to              | none             |
| `TOKIO_CONSOLE_BUFFER_CAPACITY`  | Capacity of the event buffer                        | 102400           |

A value that cannot be parsed raises `taskconsole.envconfig.ConfigError`.

## Recording format

A recording starts with a header line `{"v":1}`, followed by one JSON object
per event, each on its own line and tagged by event type, for example:

```
{"Spawn":{"id":1,"at":{"secs_since_epoch":1700000000,"nanos_since_epoch":0},"fields":[{"name":"task.name","value":"worker"}]}}
{"Waker":{"id":1,"op":{"Wake":{"self_wake":false}},"at":{"secs_since_epoch":1700000001,"nanos_since_epoch":500}}}
{"Waker":{"id":1,"op":"Clone","at":{"secs_since_epoch":1700000002,"nanos_since_epoch":0}}}
```

## What this package does not do

`taskconsole` has no command-line program, no network server that clients can
connect to, and no aggregator loop that drains the event channel and publishes
updates. It does not hook into any runtime by itself: the caller creates the
events, feeds them to an `EventSender` or a `Recorder`, and decides what to do
with what `drain()` returns. Settings such as `Builder.server_addr` and
`Builder.publish_interval` are stored and validated, but nothing in the
package listens on that address or publishes on that interval.