"""Emitting encoded messages into a single topic."""

from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from goka.codec import Codec
from goka.headers import Headers

ErrorCallback = Callable[[Optional[BaseException]], None]


class EmitterClosedError(Exception):
    """Raised or reported when emitting after the emitter has been finished."""

    def __init__(self, message: str = "emitter already closed") -> None:
        super().__init__(message)


class _Promise:
    """A result that becomes available later and runs callbacks once it does."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False
        self._callbacks: list[ErrorCallback] = []
        self.err: Optional[BaseException] = None

    def then(self, callback: ErrorCallback) -> "_Promise":
        with self._lock:
            if not self._done:
                self._callbacks.append(callback)
                return self
        callback(self.err)
        return self

    def finish(self, err: Optional[BaseException]) -> "_Promise":
        with self._lock:
            if self._done:
                return self
            self._done = True
            self.err = err
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(err)
        return self


class _PromiseLike(Protocol):
    def then(self, callback: ErrorCallback) -> Any: ...


class _Producer(Protocol):
    def emit(self, topic: str, key: str, value: Optional[bytes]) -> _PromiseLike: ...

    def emit_with_headers(
        self, topic: str, key: str, value: Optional[bytes], headers: Optional[Headers]
    ) -> _PromiseLike: ...

    def close(self) -> None: ...


ProducerBuilder = Callable[[Sequence[str], str, Any], _Producer]


class Emitter:
    """Encodes messages with a codec and sends them to one topic via a producer."""

    def __init__(
        self,
        codec: Codec,
        producer: _Producer,
        topic: str,
        default_headers: Optional[Mapping[str, bytes]] = None,
    ) -> None:
        self.codec = codec
        self.producer = producer
        self.topic = topic
        self.default_headers: Optional[Headers] = (
            Headers(default_headers) if default_headers is not None else None
        )
        self._cond = threading.Condition()
        self._pending = 0
        self._closed = False

    def _emit_done(self, _err: Optional[BaseException]) -> None:
        with self._cond:
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def emit_with_headers(
        self, key: str, msg: Any, headers: Optional[Mapping[str, bytes]]
    ) -> _PromiseLike:
        """Send ``msg`` for ``key`` with ``headers``; return a promise of the outcome.

        Raises ValueError if the message cannot be encoded. Emitting after
        ``finish`` yields a promise failed with EmitterClosedError.
        """
        data: Optional[bytes] = None
        if msg is not None:
            try:
                data = self.codec.encode(msg)
            except Exception as exc:
                raise ValueError(
                    f"Error encoding value for key {key} in topic {self.topic}: {exc}"
                ) from exc

        with self._cond:
            if self._closed:
                return _Promise().finish(EmitterClosedError())
            self._pending += 1

        try:
            if headers is None and self.default_headers is None:
                promise = self.producer.emit(self.topic, key, data)
            else:
                merged = Headers(self.default_headers or {}).merged(headers)
                promise = self.producer.emit_with_headers(self.topic, key, data, merged)
        except BaseException:
            self._emit_done(None)
            raise
        promise.then(self._emit_done)
        return promise

    def emit(self, key: str, msg: Any) -> _PromiseLike:
        """Send ``msg`` for ``key``; return a promise of the outcome."""
        return self.emit_with_headers(key, msg, None)

    def emit_sync_with_headers(
        self, key: str, msg: Any, headers: Optional[Mapping[str, bytes]]
    ) -> None:
        """Send ``msg`` with ``headers`` and wait; raise the error if sending failed."""
        promise = self.emit_with_headers(key, msg, headers)
        finished = threading.Event()
        outcome: list[Optional[BaseException]] = [None]

        def done(err: Optional[BaseException]) -> None:
            outcome[0] = err
            finished.set()

        promise.then(done)
        finished.wait()
        if outcome[0] is not None:
            raise outcome[0]

    def emit_sync(self, key: str, msg: Any) -> None:
        """Send ``msg`` and wait; raise the error if sending failed."""
        self.emit_sync_with_headers(key, msg, None)

    def finish(self) -> None:
        """Reject new emits, wait for pending ones and close the producer."""
        with self._cond:
            self._closed = True
            self._cond.wait_for(lambda: self._pending == 0)
        self.producer.close()

    def __enter__(self) -> "Emitter":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.finish()


def new_emitter(
    brokers: Sequence[str],
    topic: str,
    codec: Codec,
    producer_builder: ProducerBuilder,
    client_id: Optional[str] = None,
    hasher: Any = None,
    default_headers: Optional[Mapping[str, bytes]] = None,
) -> Emitter:
    """Create an emitter whose producer is made by ``producer_builder``.

    The client id defaults to ``goka-emitter-<topic>``.
    """
    if client_id is None:
        client_id = f"goka-emitter-{topic}"
    try:
        producer = producer_builder(list(brokers), client_id, hasher)
    except Exception as exc:
        raise RuntimeError(f"error creating Kafka producer: {exc}") from exc
    return Emitter(codec, producer, topic, default_headers)