"""Iteration over the decoded key-value pairs of a view."""

from __future__ import annotations

from typing import Any, Iterator, Optional, Protocol

from goka.codec import Codec


class _StorageIterator(Protocol):
    def next(self) -> bool: ...

    def key(self) -> Optional[bytes]: ...

    def value(self) -> Optional[bytes]: ...

    def err(self) -> Optional[BaseException]: ...

    def release(self) -> None: ...

    def seek(self, key: bytes) -> bool: ...


class ViewIterator:
    """Walks a storage iterator, decoding values with the view's codec."""

    def __init__(self, storage_iterator: _StorageIterator, codec: Codec) -> None:
        self._iter = storage_iterator
        self._codec = codec

    def next(self) -> bool:
        """Advance to the next pair; False once exhausted or failed."""
        return self._iter.next()

    def key(self) -> str:
        """Return the current key."""
        raw = self._iter.key()
        return bytes(raw).decode("utf-8", "surrogateescape") if raw is not None else ""

    def value(self) -> Any:
        """Return the current value decoded by the codec, or None if there is none."""
        data = self._iter.value()
        if data is None:
            return None
        return self._codec.decode(data)

    def err(self) -> Optional[BaseException]:
        """Return the error that stopped the iteration, if any."""
        return self._iter.err()

    def release(self) -> None:
        """Release the iterator; it cannot be used afterwards."""
        self._iter.release()

    def seek(self, key: str) -> bool:
        """Move to the first pair whose key is not less than ``key``.

        After a successful seek the current pair is that first pair; calling
        ``next`` would skip it.
        """
        return self._iter.seek(key.encode("utf-8", "surrogateescape"))

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        while self.next():
            yield self.key(), self.value()
        error = self.err()
        if error is not None:
            raise error

    def __enter__(self) -> "ViewIterator":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.release()