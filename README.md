# goka

Building blocks for stateful stream processing on top of a partitioned log.

A processor group is described by a *group graph*. The graph lists the
group's input streams, output streams, joined and looked-up tables, an
optional loopback stream and an optional group table that holds the group's
state. Messages and table rows are key/value pairs. Each topic has a codec
that turns values into bytes and back.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests:

```
pip install ".[test]"
pytest
```

## Defining a group (`goka.graph`)

```python
from goka.codec import String, Int64
from goka.graph import define_group, input_stream, output, persist

def count(ctx, msg):
    counter = ctx.value() or 0
    ctx.set_value(counter + 1)

graph = define_group(
    "example-group",
    input_stream("example-stream", String(), count),
    output("example-output", String()),
    persist(Int64()),
)
graph.validate()              # raises GraphError if the graph is inconsistent
graph.group_table().topic()   # "example-group-table"
```

Edges are made with `input_stream`, `inputs` (several streams sharing one
codec and callback), `output`, `join`, `lookup`, `loop`, `persist` and
`visitor`. `define_group` raises `GraphError` for an empty input topic or a
topic consumed twice.

`validate()` raises `GraphError` in these cases:

- more than one loop stream or group table;
- no input stream;
- the loop or table topic is used directly in another edge;
- visitors are defined without a group table.

`table_name`, `loop_name` and `group_table` derive topic names from a group
name. `set_table_suffix`, `set_loop_suffix` and `reset_suffixes` change the
suffixes these names use. The defaults are `-table` and `-loop`.

## Codecs (`goka.codec`)

The module provides three codecs:

- `Bytes` passes bytes through unchanged.
- `String` encodes text as UTF-8.
- `Int64` encodes 64-bit signed integers as decimal text.

Encoding a value of the wrong type raises `TypeError`. `Int64` raises
`ValueError` for out-of-range values and unparsable data. To write your own
codec, subclass `Codec` and implement `encode(value)` and `decode(data)`.

## Headers (`goka.headers`)

`Headers` is a `dict` that maps header names to bytes.

- `Headers.merged(*others)` combines header sets; later ones win. It returns
  `None` when the result would be empty.
- `to_records()` converts the headers to a list of `RecordHeader`.
- `headers_from_records()` converts them back.

## Balancing (`goka.copartition`)

`CopartitioningStrategy.plan(members, topics)` works out which partitions each
member of the group gets. `members` maps member ids to `MemberMetadata` and
`topics` maps topic names to partition lists. The result maps member to topic
to partitions.

Every member receives the same contiguous range of partitions for each of
its topics. Members are sorted by id to decide who gets which range. If the
topics do not share the same partition set, `plan` raises `BalanceError`.

Two ready instances are provided:

- `COPARTITIONING_STRATEGY` tolerates members that request different topics.
- `STRICT_COPARTITIONING_STRATEGY` raises `BalanceError` in that case.

## Configuration (`goka.config`)

`Config` is a dataclass of client settings: version, consumer and producer
options, and the rebalance strategy.

- `default_config()` returns the defaults. For example, streams start at
  `OFFSET_NEWEST`, producers wait for `RequiredAcks.WAIT_FOR_LOCAL` and use
  `Compression.SNAPPY`.
- `replace_global_config(config)` stores a copy of `config` as the global
  default. It raises `ValueError` for `None`.
- `global_config()` returns a copy of the global default.

## Callback context (`goka.context`)

`CallbackContext` is what a processor callback receives. You supply the
collaborators it works with:

- `emitter(topic, key, data, headers)`, which returns a promise offering
  `then` and `then_with_message`;
- a `table` object with `get`, `set`, `delete`, `set_offset` and
  `track_message_write`;
- `joins` and `views` mappings;
- `commit`, `sync_failer` and `async_failer` callbacks.

The context offers these operations:

- reading the message: `key`, `topic`, `offset`, `partition`, `timestamp`,
  `headers`;
- the group table: `value`, `value_for_key`, `set_value`,
  `set_value_for_key`, `delete`;
- other tables: `join`, `lookup`;
- sending: `emit` (output topics only), `loopback`.

Misuse raises an exception after the sync failer has been called. Examples
are emitting to an undeclared topic, or reading state in a stateless group.
`fail(err)` does the same for an error you supply.

`start()`, `finish(err)` and `defer_commit()` handle the commit. The
`commit` callback runs once the callback has finished and every emit has
completed. If any emit failed, `async_failer` receives the error instead.

## Emitting (`goka.emitter`)

`new_emitter(brokers, topic, codec, producer_builder, ...)` creates an
`Emitter` for one topic. `producer_builder(brokers, client_id, hasher)` must
return a producer with three methods:

- `emit(topic, key, value)`;
- `emit_with_headers(topic, key, value, headers)`;
- `close()`.

The two emit methods must return a promise with `then(callback)`. The client
id defaults to `goka-emitter-<topic>`. A failing builder raises
`RuntimeError`.

Emitter methods:

- `emit` and `emit_with_headers` return the producer's promise. They raise
  `ValueError` if the value cannot be encoded.
- `emit_sync` and `emit_sync_with_headers` wait for the result and raise the
  producer's error.
- `finish()` rejects new emits, waits for pending ones and closes the
  producer. It also runs when the emitter is used as a context manager.

After `finish()`, `emit` returns a promise failed with `EmitterClosedError`,
and `emit_sync` raises `EmitterClosedError`.

## Iterating views (`goka.iterator`)

`ViewIterator` wraps a storage iterator and decodes values with a codec. It
offers `next`, `key`, `value`, `err`, `release` and `seek`. It can also be
iterated directly as `(key, value)` pairs, and it is a context manager that
releases the underlying iterator on exit.

## Logging and errors

`goka.logger.StdLogger` forwards to an underlying logger and adds a stacked
prefix such as `[a > b] ` to formatted messages. Formatting uses `%` style.

- `default_logger()` writes timestamped lines to standard error.
- `debug(enabled)` switches `debugf` output on or off for the default logger.
- `wrap_logger(logger, debug)` wraps your own logger.

`goka.errors` defines:

- `ProcessingError` and `SetupError`, each carrying the partition and the
  underlying error;
- `VisitAbortedError`;
- `user_stacktrace()`, which returns the current stack trace with this
  package's own frames stripped.

## What this package does not do

The package does not connect to a Kafka cluster and has no network client. It
also has no processor runner, no view or local table storage, no topic
manager and no command-line tool. Producers, table storage, join and lookup
sources, and promise implementations are supplied by the caller through the
interfaces described above.