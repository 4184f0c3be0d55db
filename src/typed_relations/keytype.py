"""Composite key values used for row identity."""

from __future__ import annotations

from functools import total_ordering
from typing import Any, Iterator


@total_ordering
class KeyType:
    """An ordered composite of scalar key values.

    Two keys are equal iff every component compares equal; ordering is
    lexicographic, component by component.

        >>> KeyType(1) < KeyType(2)
        True
        >>> KeyType("CS101", "Fall") == KeyType("CS101", "Fall")
        True
    """

    __slots__ = ("_values",)

    def __init__(self, *values: Any) -> None:
        if not values:
            raise ValueError("KeyType requires at least one value")
        self._values = tuple(values)

    @classmethod
    def of(cls, values: tuple[Any, ...] | list[Any]) -> KeyType:
        """Build a key from an existing sequence of values."""
        return cls(*values)

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyType):
            return NotImplemented
        return self._values == other._values

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyType):
            return NotImplemented
        return self._values < other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"KeyType({', '.join(repr(v) for v in self._values)})"
