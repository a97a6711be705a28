"""Logging with stackable message prefixes."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, Iterable, Optional, Protocol, TextIO

_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"


class Logger(Protocol):
    """Minimal logging interface."""

    def print(self, *args: Any) -> None: ...

    def println(self, *args: Any) -> None: ...

    def printf(self, msg: str, *args: Any) -> None: ...


def _sprint(args: Iterable[Any]) -> str:
    parts: list[str] = []
    previous_is_str = True
    for position, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if position > 0 and not is_str and not previous_is_str:
            parts.append(" ")
        parts.append(str(arg))
        previous_is_str = is_str
    return "".join(parts)


def _format(msg: str, args: tuple) -> str:
    return msg % args if args else msg


class _StreamLog:
    """Writes timestamped lines to a stream, stderr by default."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def _write(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        if not text.endswith("\n"):
            text += "\n"
        stream.write(f"{datetime.now().strftime(_TIME_FORMAT)} {text}")

    def print(self, *args: Any) -> None:
        self._write(_sprint(args))

    def println(self, *args: Any) -> None:
        self._write(" ".join(str(arg) for arg in args))

    def printf(self, msg: str, *args: Any) -> None:
        self._write(_format(msg, args))


class StdLogger:
    """Forwards to an underlying logger, prefixing formatted messages.

    Format strings use ``%`` style formatting.
    """

    def __init__(
        self,
        log: Optional[Logger] = None,
        debug: bool = False,
        prefix_path: Iterable[str] = (),
    ) -> None:
        self._log = log if log is not None else _StreamLog()
        self.debug = debug
        self._prefix_path = tuple(prefix_path)
        joined = " > ".join(self._prefix_path)
        self._prefix = f"[{joined}] " if joined else ""

    def print(self, *args: Any) -> None:
        self._log.print(*args)

    def println(self, *args: Any) -> None:
        self._log.print(*args)

    def printf(self, msg: str, *args: Any) -> None:
        self._log.printf(self._prefix + msg, *args)

    def debugf(self, msg: str, *args: Any) -> None:
        """Log like printf, but only when debugging is enabled."""
        if self.debug:
            self._log.printf(self._prefix + msg, *args)

    def prefix(self, prefix: str) -> "StdLogger":
        """Return a logger with ``prefix`` appended to the prefix path."""
        return self.stack_prefix(prefix)

    def current_prefix(self) -> str:
        return self._prefix

    def stack_prefix(self, prefix: str) -> "StdLogger":
        """Return a new logger whose prefix path ends with ``prefix``, if not empty."""
        path = self._prefix_path + ((prefix,) if prefix else ())
        return StdLogger(self._log, self.debug, path)


_default_logger = StdLogger()


def default_logger() -> StdLogger:
    """Return the logger writing to standard error."""
    return _default_logger


def debug(enabled: bool) -> None:
    """Enable or disable debug logging on the default logger."""
    _default_logger.debug = enabled


def wrap_logger(logger: Logger, debug: bool) -> StdLogger:
    """Wrap ``logger`` so it supports prefixes and debug messages."""
    return StdLogger(logger, debug)