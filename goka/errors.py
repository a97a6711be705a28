"""Error types and stack trace helpers."""

from __future__ import annotations

import inspect
import os
import sys
import traceback
from typing import Any

VISIT_ABORTED_MESSAGE = "VisitAll aborted due to context cancel or rebalance"

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class VisitAbortedError(Exception):
    """A visit of all values could not finish due to a cancel or rebalance."""

    def __init__(self, message: str = VISIT_ABORTED_MESSAGE) -> None:
        super().__init__(message)


class _PartitionError(Exception):
    _template = ""

    def __init__(self, partition: int, err: Any) -> None:
        super().__init__(partition, err)
        self.partition = partition
        self.err = err

    def __str__(self) -> str:
        return self._template.format(partition=self.partition, err=self.err)


class ProcessingError(_PartitionError):
    """A non-transient error occurred while processing a message."""

    _template = "error processing message (partition={partition}): {err}"


class SetupError(_PartitionError):
    """A non-transient error occurred while setting up a partition."""

    _template = "error setting up (partition={partition}): {err}"


def _entries() -> list[tuple[str, str, int]]:
    """Return (function, file, line) from the innermost frame outwards.

    If an exception is being handled, the frames that raised it are used
    instead of the frames of the handling code.
    """
    chain = []
    frame = inspect.currentframe()
    while frame is not None:
        chain.append(frame)
        frame = frame.f_back

    tb = sys.exc_info()[2]
    if tb is not None and tb.tb_frame in chain:
        handler = chain.index(tb.tb_frame)
        raised = list(reversed(list(traceback.walk_tb(tb))))
        outer = [(f, f.f_lineno) for f in chain[handler + 1:]]
        pairs = raised + outer
    else:
        pairs = [(f, f.f_lineno) for f in chain]

    entries = [(f.f_code.co_name, f.f_code.co_filename, lineno) for f, lineno in pairs]
    del chain, pairs, frame
    return entries


def _is_package_frame(entry: tuple[str, str, int]) -> bool:
    return os.path.dirname(os.path.abspath(entry[1])) == _PACKAGE_DIR


def _format(entry: tuple[str, str, int]) -> str:
    name, filename, lineno = entry
    return f"{name}\n\t{filename}:{lineno}"


def user_stacktrace() -> list[str]:
    """Return the stack trace restricted to user code, one entry per frame.

    Frames of this package's top-level modules are skipped at the top, and
    the trace stops at the next such frame. If nothing is left, the whole
    trace is returned.
    """
    entries = _entries()
    start = 0
    while start < len(entries) and _is_package_frame(entries[start]):
        start += 1

    lines = []
    for entry in entries[start:]:
        if _is_package_frame(entry):
            break
        lines.append(_format(entry))

    if not lines:
        lines = [_format(entry) for entry in entries]
    return lines