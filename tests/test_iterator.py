import pytest

from goka.codec import String
from goka.iterator import ViewIterator


class MemoryIterator:
    """Sorted in-memory storage iterator."""

    def __init__(self, items, error=None, fail_after=None):
        self._items = sorted(items.items())
        self._pos = -1
        self._error = error
        self._fail_after = fail_after
        self._failed = False
        self.released = False

    def next(self):
        if self._fail_after is not None and self._pos + 1 >= self._fail_after:
            self._failed = True
            return False
        self._pos += 1
        return self._pos < len(self._items)

    def _current(self):
        if 0 <= self._pos < len(self._items):
            return self._items[self._pos]
        return None

    def key(self):
        current = self._current()
        return current[0] if current else None

    def value(self):
        current = self._current()
        return current[1] if current else None

    def err(self):
        return self._error if self._failed else None

    def release(self):
        self.released = True

    def seek(self, key):
        for index, (item_key, _) in enumerate(self._items):
            if item_key >= key:
                self._pos = index
                return True
        self._pos = len(self._items)
        return False


KV = {"key-1": "val-1", "key-2": "val-2", "key-3": "val-3"}


def make_iterator(**kwargs):
    raw = {k.encode(): v.encode() for k, v in KV.items()}
    storage = MemoryIterator(raw, **kwargs)
    return ViewIterator(storage, String()), storage


def test_iterator_walks_all_pairs():
    it, storage = make_iterator()
    assert it.value() is None
    count = 0
    while it.next():
        count += 1
        key = it.key()
        assert key in KV
        assert it.value() == KV[key]
    assert it.err() is None
    assert count == len(KV)
    it.release()
    assert storage.released


def test_iterator_as_python_iterable():
    it, storage = make_iterator()
    with it:
        pairs = list(it)
    assert pairs == sorted(KV.items())
    assert storage.released


def test_seek_positions_on_first_greater_or_equal_key():
    it, _ = make_iterator()
    assert it.seek("key-2")
    assert it.key() == "key-2"
    assert it.value() == "val-2"
    assert it.next()
    assert it.key() == "key-3"


def test_seek_past_end_returns_false():
    it, _ = make_iterator()
    assert not it.seek("key-9")
    assert it.value() is None


def test_iteration_error_is_reported_and_raised():
    error = IOError("disk failure")
    it, _ = make_iterator(error=error, fail_after=1)
    assert it.next()
    assert not it.next()
    assert it.err() is error

    it2, _ = make_iterator(error=error, fail_after=1)
    with pytest.raises(IOError, match="disk failure"):
        list(it2)