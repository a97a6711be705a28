"""The context handed to processor callbacks."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol

from goka.graph import GroupGraph
from goka.headers import Headers, RecordHeader, headers_from_records


class _ContextError(RuntimeError):
    """Raised when a callback uses its context incorrectly or an operation fails."""


class _Promise(Protocol):
    def then(self, callback: Callable[[Optional[BaseException]], None]) -> Any: ...

    def then_with_message(
        self, callback: Callable[[Any, Optional[BaseException]], None]
    ) -> Any: ...


Emitter = Callable[[str, str, Optional[bytes], Optional[Headers]], _Promise]


@dataclass
class Message:
    """The input message a callback is invoked for."""

    key: str = ""
    timestamp: Optional[datetime] = None
    topic: str = ""
    offset: int = 0
    partition: int = 0
    headers: list[RecordHeader] = field(default_factory=list)
    value: Optional[bytes] = None


@dataclass
class _Counters:
    emits: int = 0
    dones: int = 0
    stores: int = 0


def _noop(*_args: Any) -> None:
    return None


def _combine(errors: list[BaseException]) -> BaseException:
    if len(errors) == 1:
        return errors[0]
    listed = "; ".join(str(err) for err in errors)
    return _ContextError(f"{len(errors)} errors occurred: {listed}")


class CallbackContext:
    """Gives a callback access to its message, the group table, joins, lookups and emits.

    The table is any object with ``get``, ``set``, ``delete``, ``set_offset`` and
    ``track_message_write``; joins map table names to objects with ``get``
    returning raw bytes; views map table names to objects with ``get``
    returning decoded values. The emitter returns a promise offering ``then``
    and ``then_with_message``.
    """

    def __init__(
        self,
        graph: GroupGraph,
        msg: Optional[Message] = None,
        *,
        emitter: Optional[Emitter] = None,
        commit: Optional[Callable[[], None]] = None,
        async_failer: Optional[Callable[[BaseException], None]] = None,
        sync_failer: Optional[Callable[[BaseException], None]] = None,
        table: Any = None,
        joins: Optional[Mapping[str, Any]] = None,
        views: Optional[Mapping[str, Any]] = None,
        track_output_stats: Optional[Callable[[Any, str, int], None]] = None,
        context: Any = None,
        default_headers: Optional[Mapping[str, bytes]] = None,
    ) -> None:
        self.graph = graph
        self.msg = msg if msg is not None else Message()
        self._emitter = emitter
        self._commit = commit or _noop
        self._async_failer = async_failer or _noop
        self._sync_failer = sync_failer
        self.table = table
        self.joins = joins
        self.views = views
        self._track_output_stats = track_output_stats or _noop
        self._context = context
        self._default_headers = Headers(default_headers or {})
        self._headers: Optional[Headers] = None

        self.counters = _Counters()
        self.errors: list[BaseException] = []
        self.completed = threading.Event()
        self._done = False
        self._lock = threading.RLock()

    # ---- message accessors -------------------------------------------------

    def timestamp(self) -> Optional[datetime]:
        return self.msg.timestamp

    def key(self) -> str:
        return self.msg.key

    def topic(self) -> str:
        return self.msg.topic

    def offset(self) -> int:
        return self.msg.offset

    def group(self) -> str:
        return self.graph.group()

    def partition(self) -> int:
        return self.msg.partition

    def headers(self) -> Headers:
        """Return the headers of the input message, never None."""
        if self._headers is None:
            self._headers = headers_from_records(self.msg.headers)
        return self._headers

    def context(self) -> Any:
        return self._context

    # ---- failing -----------------------------------------------------------

    def fail(self, err: BaseException) -> None:
        """Stop the callback and shut down the processor."""
        if self._sync_failer is not None:
            self._sync_failer(err)
        raise err

    # ---- emitting ----------------------------------------------------------

    def emit(
        self, topic: str, key: str, value: Any, headers: Optional[Mapping[str, bytes]] = None
    ) -> None:
        """Send ``value`` asynchronously to an output topic."""
        group = self.graph.group()
        if topic == "":
            self.fail(_ContextError("cannot emit to empty topic"))
        if topic == _loop_name(group):
            self.fail(_ContextError("cannot emit to loop topic (use Loopback instead)"))
        if topic == _table_name(group):
            self.fail(_ContextError("cannot emit to table topic (use SetValue instead)"))
        if not self.graph.is_output_topic(topic):
            self.fail(
                _ContextError(
                    f"topic {topic} is not configured for output. "
                    "Did you specify goka.Output(..) when defining the processor?"
                )
            )
        codec = self.graph.codec(topic)
        if codec is None:
            self.fail(_ContextError(f"no codec for topic {topic}"))

        data: Optional[bytes] = None
        if value is not None:
            try:
                data = codec.encode(value)
            except Exception as exc:
                self.fail(_ContextError(f"error encoding message for topic {topic}: {exc}"))
        self._emit(topic, key, data, headers)

    def loopback(
        self, key: str, value: Any, headers: Optional[Mapping[str, bytes]] = None
    ) -> None:
        """Send ``value`` asynchronously to ``key`` via the group's loop topic."""
        edge = self.graph.loop_stream()
        if edge is None:
            self.fail(_ContextError("no loop topic configured"))
        try:
            data = edge.codec().encode(value)
        except Exception as exc:
            self.fail(_ContextError(f"error encoding message for key {key}: {exc}"))
        self._emit(edge.topic(), key, data, headers)

    def _emit(
        self,
        topic: str,
        key: str,
        data: Optional[bytes],
        headers: Optional[Mapping[str, bytes]],
    ) -> None:
        with self._lock:
            self.counters.emits += 1

        def done(err: Optional[BaseException]) -> None:
            if err is not None:
                wrapped = _ContextError(f"error emitting to {topic}: {err}")
                wrapped.__cause__ = err
                err = wrapped
            self._emit_done(err)

        merged = self._default_headers.merged(headers)
        self._emitter(topic, key, data, merged).then(done)
        self._track_output_stats(self._context, topic, len(data or b""))

    # ---- group table -------------------------------------------------------

    def delete(self, headers: Optional[Mapping[str, bytes]] = None) -> None:
        """Delete the message key from the group table and its topic."""
        try:
            self._delete_key(self.key(), headers)
        except _ContextError as exc:
            self.fail(exc)

    def value(self) -> Any:
        """Return the group table value of the message key."""
        return self.value_for_key(self.key())

    def value_for_key(self, key: str) -> Any:
        """Return the group table value of ``key``."""
        try:
            return self._value_for_key(key)
        except _ContextError as exc:
            self.fail(exc)

    def set_value(self, value: Any, headers: Optional[Mapping[str, bytes]] = None) -> None:
        """Store ``value`` for the message key in the group table."""
        try:
            self._set_value_for_key(self.key(), value, headers)
        except _ContextError as exc:
            self.fail(exc)

    def set_value_for_key(self, key: str, value: Any) -> None:
        """Store ``value`` for ``key`` in the group table."""
        try:
            self._set_value_for_key(key, value, None)
        except _ContextError as exc:
            self.fail(exc)

    def _value_for_key(self, key: str) -> Any:
        if self.table is None:
            raise _ContextError("Cannot access state in stateless processor")
        try:
            data = self.table.get(key)
        except Exception as exc:
            raise _ContextError(f"error reading value: {exc}") from exc
        if data is None:
            return None
        try:
            return self.graph.group_table().codec().decode(data)
        except Exception as exc:
            raise _ContextError(f"error decoding value: {exc}") from exc

    def _delete_key(self, key: str, headers: Optional[Mapping[str, bytes]]) -> None:
        edge = self.graph.group_table()
        if edge is None:
            raise _ContextError("Cannot access state in stateless processor")
        with self._lock:
            self.counters.stores += 1
        try:
            self.table.delete(key)
        except Exception as exc:
            raise _ContextError(f"error deleting key ({key}) from storage: {exc}") from exc
        with self._lock:
            self.counters.emits += 1
        self._emitter(edge.topic(), key, None, _as_headers(headers)).then(self._emit_done)

    def _set_value_for_key(
        self, key: str, value: Any, headers: Optional[Mapping[str, bytes]]
    ) -> None:
        edge = self.graph.group_table()
        if edge is None:
            raise _ContextError("Cannot access state in stateless processor")
        if value is None:
            raise _ContextError("cannot set nil as value")
        try:
            encoded = edge.codec().encode(value)
        except Exception as exc:
            raise _ContextError(f"error encoding value: {exc}") from exc

        with self._lock:
            self.counters.stores += 1
        try:
            self.table.set(key, encoded)
        except Exception as exc:
            raise _ContextError(f"error storing value: {exc}") from exc

        topic = edge.topic()
        with self._lock:
            self.counters.emits += 1

        def done(msg: Any, err: Optional[BaseException]) -> None:
            if err is None and msg is not None and getattr(msg, "offset", 0) != 0:
                try:
                    self.table.set_offset(msg.offset)
                except Exception as exc:
                    err = exc
            self._emit_done(err)

        self._emitter(topic, key, encoded, _as_headers(headers)).then_with_message(done)
        self._track_output_stats(self._context, topic, len(encoded))
        self.table.track_message_write(self._context, len(encoded))

    # ---- joins and lookups -------------------------------------------------

    def join(self, topic: str) -> Any:
        """Return the value of the message key in the copartitioned table ``topic``."""
        if self.joins is None or topic not in self.joins:
            self.fail(_ContextError(f"table {topic} not subscribed"))
        key = self.key()
        try:
            data = self.joins[topic].get(key)
        except Exception as exc:
            self.fail(_ContextError(f"error getting key {key} of table {topic}: {exc}"))
        if data is None:
            return None
        try:
            return self.graph.codec(topic).decode(data)
        except Exception as exc:
            self.fail(_ContextError(f"error decoding value key {key} of table {topic}: {exc}"))

    def lookup(self, topic: str, key: str) -> Any:
        """Return the value of ``key`` in the lookup table ``topic``."""
        if self.views is None or topic not in self.views:
            self.fail(_ContextError(f"topic {topic} not subscribed"))
        try:
            return self.views[topic].get(key)
        except Exception as exc:
            self.fail(_ContextError(f"error getting key {key} of table {topic}: {exc}"))

    # ---- commit bookkeeping ------------------------------------------------

    def defer_commit(self) -> Callable[..., None]:
        """Postpone the commit until the returned function is called."""
        with self._lock:
            self.counters.emits += 1
        called = threading.Lock()
        state = {"called": False}

        def commit(err: Optional[BaseException] = None) -> None:
            with called:
                if state["called"]:
                    return
                state["called"] = True
            self._emit_done(err)

        return commit

    def start(self) -> None:
        """Mark the context as in progress before any emit."""
        self.completed.clear()

    def finish(self, err: Optional[BaseException]) -> None:
        """Mark the callback as returned; commit once all emits are done."""
        with self._lock:
            self._done = True
            self._try_commit(err)

    def _emit_done(self, err: Optional[BaseException]) -> None:
        with self._lock:
            self.counters.dones += 1
            self._try_commit(err)

    def _try_commit(self, err: Optional[BaseException]) -> None:
        if err is not None:
            self.errors.append(err)
        if not self._done or self.counters.emits > self.counters.dones:
            return
        if self.errors:
            self._async_failer(_combine(self.errors))
        else:
            self._commit()
        self.completed.set()


def _as_headers(headers: Optional[Mapping[str, bytes]]) -> Optional[Headers]:
    if headers is None:
        return None
    return headers if isinstance(headers, Headers) else Headers(headers)


def _table_name(group: str) -> str:
    from goka.graph import table_name

    return table_name(group)


def _loop_name(group: str) -> str:
    from goka.graph import loop_name

    return loop_name(group)