"""Relational tables and the relational algebra operators."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Sequence

from typed_relations.config import TableConfig, get_config
from typed_relations.display import format_index, format_table
from typed_relations.errors import (
    MalformedJoinSpec,
    PersistenceError,
    SchemaError,
    SchemaMismatch,
    TypeViolation,
    UnknownAttributeError,
)
from typed_relations.index import Index
from typed_relations.keytype import KeyType
from typed_relations.logging import get_logger
from typed_relations.naming import DEFAULT_NAMER, TableNamer
from typed_relations.parsing import SchemaParser, parse_schema, split_names
from typed_relations.schema import Schema
from typed_relations.storage import TableStore

logger = get_logger(__name__)

Row = tuple[Any, ...]
Names = str | Sequence[str]


def _names(attributes: Names) -> list[str]:
    """Accept either ``"a b c"`` or ``["a", "b", "c"]``."""
    if isinstance(attributes, str):
        return split_names(attributes)
    return list(attributes)


def _values(row: Row, cols: Sequence[int]) -> Row:
    return tuple(row[c] for c in cols)


def _matchable(values: Row) -> bool:
    """NaN equals nothing, itself included, so it never joins."""
    return all(v == v for v in values)


class Table:
    """A named relation: a schema, a bag of tuples and a primary-key index.

    Five relational algebra operators are provided (project, select, union,
    minus and join) along with insert. Every operator returns a new table,
    named after this one, and leaves its inputs untouched. Derived tables
    are not indexed; only ``insert`` maintains the index.

    Tuples are stored as Python tuples, so derived tables can share them
    with their sources without either being able to change the other.
    """

    def __init__(
        self,
        name: str,
        schema: Schema,
        tuples: Iterable[Sequence[Any]] | None = None,
        *,
        namer: TableNamer | None = None,
        config: TableConfig | None = None,
    ) -> None:
        """Initialize a table.

        Args:
            name: Name of the relation.
            schema: Attributes, domains and key.
            tuples: Initial contents. These are taken as-is: they are not
                type checked and no index is built for them.
            namer: Source of names for derived tables.
            config: Table behaviour settings; the global ones when omitted.
        """
        self.name = name
        self.schema = schema
        self.index = Index()
        self._tuples: list[Row] = [tuple(t) for t in tuples] if tuples is not None else []
        self._namer = namer if namer is not None else DEFAULT_NAMER
        self._config = config

    @classmethod
    def create(
        cls,
        name: str,
        attributes: str,
        domains: str,
        key: str,
        **kwargs: Any,
    ) -> Table:
        """Create an empty table from whitespace separated lists.

            >>> Table.create("Student", "id name", "Integer String", "id")
            Table('Student', 0 tuples)
        """
        schema = parse_schema(attributes, domains, key)
        logger.debug("ddl.create_table", table=name, schema=str(schema))
        return cls(name, schema, **kwargs)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> TableConfig:
        return self._config if self._config is not None else get_config().tables

    @property
    def attributes(self) -> tuple[str, ...]:
        return self.schema.names

    @property
    def domains(self) -> tuple:
        return self.schema.domains

    @property
    def key(self) -> tuple[str, ...]:
        return self.schema.key

    @property
    def tuples(self) -> list[Row]:
        """A copy of the tuple bag, in insertion order."""
        return list(self._tuples)

    def col(self, attribute: str) -> int:
        """Return the column position of an attribute.

            >>> movie.select(lambda t: t[movie.col("year")] == 1977)

        Raises:
            UnknownAttributeError: If there is no such attribute.
        """
        return self.schema.positions([attribute])[0]

    def __len__(self) -> int:
        return len(self._tuples)

    def __iter__(self) -> Iterator[Row]:
        return iter(self._tuples)

    def __repr__(self) -> str:
        return f"Table({self.name!r}, {len(self._tuples)} tuples)"

    def _derive(self, schema: Schema, rows: list[Row]) -> Table:
        """Build a result table with a fresh name."""
        return Table(
            self._namer.next_name(self.name),
            schema,
            rows,
            namer=self._namer,
            config=self._config,
        )

    def _positions(self, schema: Schema, names: Sequence[str], op: str) -> list[int]:
        try:
            return schema.positions(names)
        except UnknownAttributeError as e:
            logger.warning(f"ra.{op}.unknown_attribute", table=self.name, error=str(e))
            raise

    # ------------------------------------------------------------------
    # Data manipulation
    # ------------------------------------------------------------------

    def insert(self, tup: Sequence[Any]) -> bool:
        """Insert a tuple.

            >>> movie.insert(("Star_Wars", 1977, 124, "T", "Fox", 12345))

        The tuple must have one value per attribute, each in the attribute's
        domain. Its key must not be indexed yet unless the table is
        configured to overwrite duplicate keys, in which case the new tuple
        takes the old one's place.

        Returns:
            Whether the tuple was inserted. A rejected tuple leaves the
            table unchanged.
        """
        row = tuple(tup)
        logger.debug("dml.insert", table=self.name, values=row)
        try:
            self.schema.check_tuple(row)
        except TypeViolation as e:
            logger.warning("dml.insert.type_violation", table=self.name, error=str(e))
            return False

        key = self.schema.key_of(row)
        old = self.index.get(key)
        if old is None:
            self._tuples.append(row)
        elif self.config.duplicate_keys == "reject":
            logger.warning("dml.insert.duplicate_key", table=self.name, key=list(key))
            return False
        else:
            logger.debug("dml.insert.overwrite", table=self.name, key=list(key))
            slot = next(i for i, r in enumerate(self._tuples) if r is old)
            self._tuples[slot] = row

        self.index.put(key, row)
        return True

    # ------------------------------------------------------------------
    # Relational algebra
    # ------------------------------------------------------------------

    def project(self, attributes: Names) -> Table:
        """Project the tuples onto the given attributes, in the given order.

            >>> movie.project("title year studioNo")

        The key is kept when every key attribute is projected; otherwise the
        projected attributes become the key.

        Raises:
            UnknownAttributeError: If an attribute does not exist.
            SchemaError: If an attribute is named more than once.
        """
        names = _names(attributes)
        logger.debug("ra.project", table=self.name, attributes=names)
        repeated = sorted({n for n in names if names.count(n) > 1})
        if repeated:
            logger.warning(
                "ra.project.duplicate_attribute", table=self.name, attributes=repeated
            )
            raise SchemaError(f"Attribute projected more than once: {', '.join(repeated)}")
        cols = self._positions(self.schema, names, "project")
        schema = self.schema.project(names)
        return self._derive(schema, [_values(row, cols) for row in self._tuples])

    def select(self, condition: Callable[[Row], bool] | KeyType) -> Table:
        """Select tuples by predicate or by key.

        With a callable, every tuple for which it returns true is kept::

            >>> movie.select(lambda t: t[movie.col("year")] == 1977)

        With a KeyType, the index is used to fetch the single tuple having
        that key; the result is empty when the key is not indexed.
        """
        if isinstance(condition, KeyType):
            logger.debug("ra.select_key", table=self.name, key=list(condition))
            row = self.index.get(condition)
            return self._derive(self.schema, [row] if row is not None else [])

        logger.debug("ra.select", table=self.name)
        return self._derive(self.schema, [row for row in self._tuples if condition(row)])

    def non_index_select(self, key: KeyType) -> Table:
        """Select the tuples whose key equals ``key`` by scanning every tuple.

        Gives the same result as ``select(key)`` on a table filled through
        ``insert``, without touching the index.
        """
        logger.debug("ra.non_index_select", table=self.name, key=list(key))
        return self._derive(
            self.schema,
            [row for row in self._tuples if self.schema.key_of(row) == key],
        )

    def union(self, table2: Table, distinct: bool = False) -> Table | None:
        """Union this table and table2: this table's tuples, then table2's.

            >>> movie.union(show)

        Duplicates are kept (bag union) unless ``distinct`` is set, in which
        case only the first occurrence of each tuple is kept.

        Returns:
            The union, or None if the tables are not compatible.
        """
        logger.debug("ra.union", table=self.name, other=table2.name, distinct=distinct)
        try:
            self.schema.check_compatible(table2.schema)
        except SchemaMismatch as e:
            logger.warning("ra.union.incompatible", table=self.name, other=table2.name, error=str(e))
            return None

        rows = self._tuples + table2._tuples
        if distinct:
            rows = list(dict.fromkeys(rows))
        return self._derive(self.schema, rows)

    def minus(self, table2: Table) -> Table | None:
        """Tuples of this table that do not occur in table2.

            >>> movie.minus(show)

        Returns:
            The difference, or None if the tables are not compatible.
        """
        logger.debug("ra.minus", table=self.name, other=table2.name)
        try:
            self.schema.check_compatible(table2.schema)
        except SchemaMismatch as e:
            logger.warning("ra.minus.incompatible", table=self.name, other=table2.name, error=str(e))
            return None

        exclude = set(table2._tuples)
        return self._derive(self.schema, [row for row in self._tuples if row not in exclude])

    def join(self, *args: Any) -> Table | None:
        """Join this table with another.

            >>> movie.join("studioNo", "name", studio)   # equi-join
            >>> movieStar.join(starsIn)                  # natural join

        See ``equi_join`` and ``natural_join``.
        """
        if len(args) == 1 and isinstance(args[0], Table):
            return self.natural_join(args[0])
        if len(args) == 3 and isinstance(args[2], Table):
            return self.equi_join(*args)
        raise TypeError("join() takes (table2) or (attributes1, attributes2, table2)")

    def _join_columns(
        self, attributes1: Names, attributes2: Names, table2: Table
    ) -> tuple[list[int], list[int]]:
        names1 = _names(attributes1)
        names2 = _names(attributes2)
        if len(names1) != len(names2):
            raise MalformedJoinSpec(
                f"Cannot pair {len(names1)} attributes ({' '.join(names1)}) "
                f"with {len(names2)} attributes ({' '.join(names2)})"
            )
        return (
            self._positions(self.schema, names1, "join"),
            self._positions(table2.schema, names2, "join"),
        )

    def equi_join(self, attributes1: Names, attributes2: Names, table2: Table) -> Table | None:
        """Equi-join: attributes1 of this table must equal attributes2 of table2.

            >>> transcript.equi_join("studId", "id", student)

        Result tuples are this table's values followed by table2's, ordered
        by left tuple and then by right tuple. Attribute names of table2
        that clash with this table's are disambiguated with the configured
        suffix (``id`` becomes ``id2``).

        Matches are found by hashing table2's join values. Values compare
        with ``==``, so a NaN join value matches nothing.

        Returns:
            The join, or None if the attribute lists differ in length.

        Raises:
            UnknownAttributeError: If a join attribute does not exist.
        """
        logger.debug(
            "ra.join",
            table=self.name,
            other=table2.name,
            attributes1=attributes1,
            attributes2=attributes2,
        )
        try:
            cols1, cols2 = self._join_columns(attributes1, attributes2, table2)
        except MalformedJoinSpec as e:
            logger.warning("ra.join.malformed", table=self.name, other=table2.name, error=str(e))
            return None

        buckets: dict[Row, list[Row]] = {}
        for right in table2._tuples:
            values = _values(right, cols2)
            if _matchable(values):
                buckets.setdefault(values, []).append(right)

        rows = [
            left + right
            for left in self._tuples
            for right in buckets.get(_values(left, cols1), ())
        ]
        return self._derive(self.schema.join(table2.schema, self.config.rename_suffix), rows)

    def non_index_join(self, attributes1: Names, attributes2: Names, table2: Table) -> Table | None:
        """Equi-join by comparing every pair of tuples (nested loops).

        Same result as ``equi_join``; kept as the baseline for comparing
        join strategies.

        Returns:
            The join, or None if the attribute lists differ in length.
        """
        logger.debug(
            "ra.non_index_join",
            table=self.name,
            other=table2.name,
            attributes1=attributes1,
            attributes2=attributes2,
        )
        try:
            cols1, cols2 = self._join_columns(attributes1, attributes2, table2)
        except MalformedJoinSpec as e:
            logger.warning("ra.join.malformed", table=self.name, other=table2.name, error=str(e))
            return None

        pairs = list(zip(cols1, cols2))
        rows = []
        for left in self._tuples:
            for right in table2._tuples:
                if all(left[i] == right[j] for i, j in pairs):
                    rows.append(left + right)
        return self._derive(self.schema.join(table2.schema, self.config.rename_suffix), rows)

    def _shared_attributes(self, table2: Table) -> list[str]:
        return [name for name in self.schema.names if table2.schema.position(name) is not None]

    def natural_join(self, table2: Table) -> Table:
        """Natural join on every attribute name the two tables share.

            >>> movieStar.natural_join(starsIn)

        Each left tuple is combined with every matching right tuple; the
        shared columns appear once, from the left side. Without shared
        attributes this is the cross product.
        """
        shared = self._shared_attributes(table2)
        logger.debug("ra.natural_join", table=self.name, other=table2.name, shared=shared)
        cols1 = self.schema.positions(shared)
        cols2 = table2.schema.positions(shared)
        keep = [i for i, name in enumerate(table2.schema.names) if name not in shared]

        buckets: dict[Row, list[Row]] = {}
        for right in table2._tuples:
            values = _values(right, cols2)
            if _matchable(values):
                buckets.setdefault(values, []).append(_values(right, keep))

        rows = [
            left + rest
            for left in self._tuples
            for rest in buckets.get(_values(left, cols1), ())
        ]
        return self._derive(self.schema.natural_join(table2.schema, shared), rows)

    def semi_join(self, table2: Table) -> Table:
        """Tuples of this table that match at least one tuple of table2.

        Matching is on every shared attribute name, as in ``natural_join``;
        each qualifying tuple appears once and keeps this table's schema.
        """
        shared = self._shared_attributes(table2)
        logger.debug("ra.semi_join", table=self.name, other=table2.name, shared=shared)
        cols1 = self.schema.positions(shared)
        cols2 = table2.schema.positions(shared)

        present = {
            values
            for values in (_values(right, cols2) for right in table2._tuples)
            if _matchable(values)
        }
        return self._derive(
            self.schema,
            [left for left in self._tuples if _values(left, cols1) in present],
        )

    # ------------------------------------------------------------------
    # Persistence and display
    # ------------------------------------------------------------------

    def save(self, store: TableStore | None = None) -> bool:
        """Write this table to ``<data_dir>/<name><extension>``.

        Returns:
            Whether the snapshot was written.
        """
        store = store if store is not None else TableStore()
        try:
            path = store.write(self.name, self.schema, self._tuples, indexed=len(self.index) > 0)
        except PersistenceError as e:
            logger.warning("table.save_failed", table=self.name, error=str(e))
            return False
        logger.info("table.saved", table=self.name, path=str(path), tuples=len(self._tuples))
        return True

    @classmethod
    def load(
        cls,
        name: str,
        store: TableStore | None = None,
        *,
        namer: TableNamer | None = None,
        config: TableConfig | None = None,
    ) -> Table | None:
        """Load a table saved with ``save``.

        Returns:
            The table, or None if it could not be read.
        """
        store = store if store is not None else TableStore()
        try:
            snapshot = store.read(name)
        except PersistenceError as e:
            logger.warning("table.load_failed", table=name, error=str(e))
            return None

        table = cls(snapshot.name, snapshot.schema, snapshot.rows, namer=namer, config=config)
        if snapshot.indexed:
            for row in table._tuples:
                table.index.put(table.schema.key_of(row), row)
        logger.info("table.loaded", table=table.name, tuples=len(table))
        return table

    def print(self, limit: int | None = None) -> None:
        """Print this table as a grid."""
        print(format_table(self, limit))

    def print_index(self) -> None:
        """Print this table's index."""
        print(format_index(self))


def create_tables(script: str, **kwargs: Any) -> dict[str, Table]:
    """Create empty tables from a ``create table`` script.

        >>> tables = create_tables(
        ...     "create table Student (id Integer, name String) key (id)"
        ... )
        >>> tables["Student"].attributes
        ('id', 'name')
    """
    specs = SchemaParser().parse(script)
    tables = {}
    for spec in specs:
        logger.debug("ddl.create_table", table=spec.name, schema=str(spec.schema))
        tables[spec.name] = Table(spec.name, spec.schema, **kwargs)
    return tables
