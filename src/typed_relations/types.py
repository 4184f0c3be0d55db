"""Attribute domains for the typed_relations library."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Domain(Enum):
    """Scalar types an attribute may be declared with."""

    BYTE = "Byte"
    SHORT = "Short"
    INTEGER = "Integer"
    LONG = "Long"
    FLOAT = "Float"
    DOUBLE = "Double"
    STRING = "String"
    CHARACTER = "Character"

    @property
    def is_integral(self) -> bool:
        """Return whether this domain holds whole numbers."""
        return self in _INTEGER_BITS

    @property
    def is_real(self) -> bool:
        """Return whether this domain holds floating point numbers."""
        return self in (Domain.FLOAT, Domain.DOUBLE)

    @property
    def bits(self) -> int:
        """Return the width of an integral domain in bits."""
        return _INTEGER_BITS[self]

    def accepts(self, value: Any) -> bool:
        """Check whether a runtime value belongs to this domain.

        Float and Double both accept any Python float; that is the only
        widening between domains. Booleans are never accepted as integers.
        """
        if self.is_integral:
            if isinstance(value, bool) or not isinstance(value, int):
                return False
            limit = 1 << (self.bits - 1)
            return -limit <= value < limit
        if self.is_real:
            return isinstance(value, float)
        if self is Domain.CHARACTER:
            return isinstance(value, str) and len(value) == 1
        return isinstance(value, str)

    @classmethod
    def from_name(cls, name: str) -> Domain:
        """Look up a domain by (case-insensitive) name.

        Raises:
            KeyError: If the name is not a known domain.
        """
        domain = DOMAIN_NAMES.get(name.lower())
        if domain is None:
            raise KeyError(f"Unknown domain '{name}'")
        return domain


_INTEGER_BITS: dict[Domain, int] = {
    Domain.BYTE: 8,
    Domain.SHORT: 16,
    Domain.INTEGER: 32,
    Domain.LONG: 64,
}

# Mapping from lowercase domain names to Domain values
DOMAIN_NAMES: dict[str, Domain] = {d.value.lower(): d for d in Domain}


@dataclass(frozen=True)
class Attribute:
    """A named, typed column of a relation."""

    name: str
    domain: Domain

    def __str__(self) -> str:
        return f"{self.name}:{self.domain.value}"
