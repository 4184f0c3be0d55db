"""Unique names for derived tables."""

from __future__ import annotations

import itertools
import threading


class TableNamer:
    """Mints names for tables produced by relational operators.

    Each call appends the next value of a monotonically increasing counter
    to the source table's name (``Student`` -> ``Student0``, ``Student1``...).
    The counter is shared by every table that uses the same namer.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_name(self, prefix: str) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{prefix}{n}"


# Used by tables that are not given a namer of their own
DEFAULT_NAMER = TableNamer()
