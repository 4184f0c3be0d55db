"""Ordered primary-key index for tables."""

from __future__ import annotations

import bisect
from typing import Any, Iterator

from typed_relations.keytype import KeyType


class Index:
    """Ordered mapping from KeyType to the single tuple owning that key.

    Lookups go through a hash map; a sorted key list keeps iteration in key
    order, like a tree map.
    """

    def __init__(self) -> None:
        self._rows: dict[KeyType, tuple[Any, ...]] = {}
        self._keys: list[KeyType] = []

    def put(self, key: KeyType, row: tuple[Any, ...]) -> bool:
        """Map key to row, replacing any previous row.

        Returns:
            True if the key was new, False if an existing entry was replaced.
        """
        is_new = key not in self._rows
        if is_new:
            bisect.insort(self._keys, key)
        self._rows[key] = row
        return is_new

    def get(self, key: KeyType) -> tuple[Any, ...] | None:
        """Return the row stored under key, or None."""
        return self._rows.get(key)

    def items(self) -> Iterator[tuple[KeyType, tuple[Any, ...]]]:
        """Iterate (key, row) pairs in key order."""
        for key in self._keys:
            yield key, self._rows[key]

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __iter__(self) -> Iterator[KeyType]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)
