"""Message headers with merging and record conversion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

_KEY_ENCODING = "utf-8"
_KEY_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class RecordHeader:
    """A single header as carried by a Kafka record."""

    key: bytes
    value: bytes


class Headers(dict):
    """Mapping of header names to raw header values."""

    def merged(self, *others: Optional[Mapping[str, bytes]]) -> Optional["Headers"]:
        """Return a new Headers with all given headers merged in order.

        Later keys override earlier ones. ``None`` entries are ignored.
        Returns ``None`` if the result would be empty.
        """
        if not self and not any(others):
            return None
        merged = Headers(self)
        for headers in others:
            if headers:
                merged.update(headers)
        return merged or None

    def to_records(self) -> list[RecordHeader]:
        """Return the headers as a list of record headers."""
        return [
            RecordHeader(key.encode(_KEY_ENCODING, _KEY_ERRORS), value)
            for key, value in self.items()
        ]


def headers_from_records(records: Optional[Iterable[RecordHeader]]) -> Headers:
    """Build Headers from record headers; later duplicates win."""
    headers = Headers()
    for record in records or ():
        headers[bytes(record.key).decode(_KEY_ENCODING, _KEY_ERRORS)] = record.value
    return headers