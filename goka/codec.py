"""Codecs that turn values into bytes and back."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


class Codec(ABC):
    """Encodes values to bytes and decodes bytes to values."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Return the byte representation of ``value``."""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Return the value represented by ``data``."""


class Bytes(Codec):
    """Passes raw bytes through unchanged."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("DefaultCodec: value to encode is not of type bytes")
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return data


class String(Codec):
    """Encodes text as UTF-8."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise TypeError(
                f"String: value to encode is not of type str but {type(value).__name__}"
            )
        return value.encode("utf-8")

    def decode(self, data: bytes) -> str:
        return bytes(data).decode("utf-8")


class Int64(Codec):
    """Encodes 64-bit signed integers as their decimal text."""

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("Int64: value to encode is not of type int")
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"Int64: value {value} is out of the 64-bit range")
        return str(value).encode("ascii")

    def decode(self, data: bytes) -> int:
        try:
            text = bytes(data).decode("ascii")
        except UnicodeDecodeError as exc:
            raise ValueError(f"Error parsing data from string: {exc}") from exc
        if not _DECIMAL.fullmatch(text):
            raise ValueError(f"Error parsing data from string {text!r}: invalid syntax")
        number = int(text)
        if not _INT64_MIN <= number <= _INT64_MAX:
            raise ValueError(f"Error parsing data from string {text!r}: value out of range")
        return number