"""Relation schemas: ordered typed attributes plus a primary key."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from typed_relations.errors import (
    SchemaError,
    SchemaMismatch,
    TypeViolation,
    UnknownAttributeError,
)
from typed_relations.keytype import KeyType
from typed_relations.types import Attribute, Domain


@dataclass(frozen=True)
class Schema:
    """Ordered attributes of a relation and the names forming its key.

    Tuples are positional: value ``i`` of a tuple belongs to
    ``attributes[i]``.
    """

    attributes: tuple[Attribute, ...]
    key: tuple[str, ...]
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "key", tuple(self.key))

        positions: dict[str, int] = {}
        for i, attr in enumerate(self.attributes):
            if attr.name in positions:
                raise SchemaError(f"Duplicate attribute name '{attr.name}'")
            positions[attr.name] = i
        object.__setattr__(self, "_positions", positions)

        if not self.key:
            raise SchemaError("A schema needs at least one key attribute")
        for name in self.key:
            if name not in positions:
                raise SchemaError(f"Key attribute '{name}' is not an attribute of the schema")

    @classmethod
    def build(
        cls,
        names: Sequence[str],
        domains: Sequence[Domain],
        key: Sequence[str],
    ) -> Schema:
        """Create a schema from parallel name and domain sequences.

        Raises:
            SchemaError: If the sequences differ in length or the key is invalid.
        """
        if len(names) != len(domains):
            raise SchemaError(
                f"{len(names)} attribute names but {len(domains)} domains"
            )
        attrs = tuple(Attribute(n, d) for n, d in zip(names, domains))
        return cls(attributes=attrs, key=tuple(key))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.attributes)

    @property
    def domains(self) -> tuple[Domain, ...]:
        return tuple(a.domain for a in self.attributes)

    @property
    def arity(self) -> int:
        return len(self.attributes)

    @property
    def key_positions(self) -> tuple[int, ...]:
        return tuple(self._positions[name] for name in self.key)

    def position(self, name: str) -> int | None:
        """Return the column position of an attribute, or None if absent."""
        return self._positions.get(name)

    def positions(self, names: Sequence[str]) -> list[int]:
        """Return the column positions of several attributes, in order.

        Raises:
            UnknownAttributeError: If any name is not an attribute.
        """
        result = []
        for name in names:
            pos = self._positions.get(name)
            if pos is None:
                raise UnknownAttributeError(
                    f"Attribute '{name}' not found in ({', '.join(self.names)})"
                )
            result.append(pos)
        return result

    def key_of(self, row: Sequence[Any]) -> KeyType:
        """Extract the key of a row, in key declaration order."""
        return KeyType.of([row[i] for i in self.key_positions])

    def check_tuple(self, row: Sequence[Any]) -> None:
        """Verify that a row matches this schema's arity and domains.

        Raises:
            TypeViolation: On an arity mismatch or a value outside its domain.
        """
        if len(row) != self.arity:
            raise TypeViolation(
                f"Tuple has {len(row)} values, schema has {self.arity} attributes"
            )
        for attr, value in zip(self.attributes, row):
            if not attr.domain.accepts(value):
                raise TypeViolation(
                    f"Value {value!r} ({type(value).__name__}) does not belong to "
                    f"domain {attr.domain.value} of attribute '{attr.name}'"
                )

    def check_compatible(self, other: Schema) -> None:
        """Verify union compatibility: same arity, same domain at every position.

        Raises:
            SchemaMismatch: If the schemas are not compatible.
        """
        if self.arity != other.arity:
            raise SchemaMismatch(
                f"Relations have different arity ({self.arity} vs {other.arity})"
            )
        for j, (mine, theirs) in enumerate(zip(self.domains, other.domains)):
            if mine is not theirs:
                raise SchemaMismatch(
                    f"Relations disagree on domain {j} ({mine.value} vs {theirs.value})"
                )

    def project(self, names: Sequence[str]) -> Schema:
        """Schema of a projection onto names.

        The source key survives when every key attribute is projected;
        otherwise all projected attributes form the key.
        """
        cols = self.positions(names)
        attrs = tuple(self.attributes[c] for c in cols)
        key = self.key if set(self.key) <= set(names) else tuple(names)
        return Schema(attributes=attrs, key=key)

    def join(self, other: Schema, suffix: str) -> Schema:
        """Schema of an equi-join: this schema followed by other's attributes.

        Right-hand names that collide with a left-hand name get ``suffix``
        appended (repeatedly, until unique). The key is this key followed by
        other's key under its new names.
        """
        renamed = disambiguate(self.names, other.names, suffix)
        attrs = self.attributes + tuple(
            Attribute(name, a.domain) for name, a in zip(renamed, other.attributes)
        )
        mapping = dict(zip(other.names, renamed))
        key = self.key + tuple(mapping[k] for k in other.key)
        return Schema(attributes=attrs, key=key)

    def natural_join(self, other: Schema, shared: Sequence[str]) -> Schema:
        """Schema of a natural join: shared columns of other are dropped."""
        drop = set(shared)
        attrs = self.attributes + tuple(a for a in other.attributes if a.name not in drop)
        key = self.key + tuple(k for k in other.key if k not in drop)
        return Schema(attributes=attrs, key=key)

    def __len__(self) -> int:
        return self.arity

    def __str__(self) -> str:
        cols = ", ".join(str(a) for a in self.attributes)
        return f"({cols}) key ({' '.join(self.key)})"


def disambiguate(left: Sequence[str], right: Sequence[str], suffix: str) -> list[str]:
    """Rename right-hand names that collide with left-hand ones.

        >>> disambiguate(["id", "name"], ["id", "dept"], "2")
        ['id2', 'dept']
    """
    clashes = set(left)
    taken = set(left) | set(right)
    result = []
    for name in right:
        if name in clashes:
            new_name = name + suffix
            while new_name in taken:
                new_name += suffix
            taken.add(new_name)
            name = new_name
        result.append(name)
    return result
