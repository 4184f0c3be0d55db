"""Snapshot storage for tables.

A snapshot file holds one whole table::

    [magic "TRTB"] [uint16 version]
    [uint8 tag] [uint32 length] [payload]     (repeated)

Sections are NAME, SCHEMA, an optional INDEXED marker (the table carried a
primary-key index), one TUPLE per row, and a closing END. Readers
skip sections with unknown tags, so newer writers can add sections without
breaking older readers. All integers are little-endian.

SCHEMA payload: uint16 attribute count, then per attribute a string name and
a uint8 domain code; uint16 key length, then the key names. TUPLE payload:
the row's values in column order, each encoded according to its column's
domain. Strings are a uint32 byte length followed by UTF-8.
"""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Iterable, Sequence

from typed_relations.config import StorageConfig, get_config
from typed_relations.errors import PersistenceError, SchemaError
from typed_relations.schema import Schema
from typed_relations.types import Domain

MAGIC = b"TRTB"
FORMAT_VERSION = 1

_HEADER = struct.Struct("<4sH")
_SECTION = struct.Struct("<BI")


class Section(IntEnum):
    """Section tags of a snapshot file."""

    END = 0
    NAME = 1
    SCHEMA = 2
    TUPLE = 3
    INDEXED = 4


# Stable on-disk codes; never renumber.
DOMAIN_CODES: dict[Domain, int] = {
    Domain.BYTE: 1,
    Domain.SHORT: 2,
    Domain.INTEGER: 3,
    Domain.LONG: 4,
    Domain.FLOAT: 5,
    Domain.DOUBLE: 6,
    Domain.STRING: 7,
    Domain.CHARACTER: 8,
}
_DOMAINS_BY_CODE: dict[int, Domain] = {code: d for d, code in DOMAIN_CODES.items()}

_VALUE_FORMATS: dict[Domain, struct.Struct] = {
    Domain.BYTE: struct.Struct("<b"),
    Domain.SHORT: struct.Struct("<h"),
    Domain.INTEGER: struct.Struct("<i"),
    Domain.LONG: struct.Struct("<q"),
    Domain.FLOAT: struct.Struct("<d"),  # Python floats are doubles
    Domain.DOUBLE: struct.Struct("<d"),
    Domain.CHARACTER: struct.Struct("<I"),  # Unicode code point
}


@dataclass
class Snapshot:
    """The decoded content of a snapshot file."""

    name: str
    schema: Schema
    rows: list[tuple[Any, ...]]
    indexed: bool = False


def _pack_string(value: str) -> bytes:
    data = value.encode("utf-8")
    return struct.pack("<I", len(data)) + data


def _section(tag: Section, payload: bytes) -> bytes:
    return _SECTION.pack(tag, len(payload)) + payload


def _encode_schema(schema: Schema) -> bytes:
    parts = [struct.pack("<H", schema.arity)]
    for attr in schema.attributes:
        parts.append(_pack_string(attr.name))
        parts.append(struct.pack("<B", DOMAIN_CODES[attr.domain]))
    parts.append(struct.pack("<H", len(schema.key)))
    parts.extend(_pack_string(k) for k in schema.key)
    return b"".join(parts)


def _encode_row(row: Sequence[Any], domains: Sequence[Domain]) -> bytes:
    if len(row) != len(domains):
        raise PersistenceError(
            f"Row has {len(row)} values, schema has {len(domains)} attributes"
        )
    parts = []
    for value, domain in zip(row, domains):
        if domain is Domain.STRING:
            parts.append(_pack_string(value))
        elif domain is Domain.CHARACTER:
            parts.append(_VALUE_FORMATS[domain].pack(ord(value)))
        else:
            parts.append(_VALUE_FORMATS[domain].pack(value))
    return b"".join(parts)


def encode_table(
    name: str,
    schema: Schema,
    rows: Iterable[Sequence[Any]],
    indexed: bool = False,
) -> bytes:
    """Serialize a table to snapshot bytes.

    Raises:
        PersistenceError: If a value cannot be encoded in its column's domain.
    """
    try:
        parts = [
            _HEADER.pack(MAGIC, FORMAT_VERSION),
            _section(Section.NAME, name.encode("utf-8")),
            _section(Section.SCHEMA, _encode_schema(schema)),
        ]
        if indexed:
            parts.append(_section(Section.INDEXED, b""))
        for row in rows:
            parts.append(_section(Section.TUPLE, _encode_row(row, schema.domains)))
        parts.append(_section(Section.END, b""))
    except (struct.error, AttributeError, TypeError, ValueError) as e:
        raise PersistenceError(f"Cannot encode table '{name}': {e}") from e
    return b"".join(parts)


class _Reader:
    """Bounds-checked cursor over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def take(self, n: int) -> bytes:
        if n > self.remaining:
            raise PersistenceError(
                f"Truncated snapshot: wanted {n} bytes at offset {self.offset}, "
                f"{self.remaining} left"
            )
        chunk = self.data[self.offset : self.offset + n]
        self.offset += n
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple[Any, ...]:
        return fmt.unpack(self.take(fmt.size))

    def uint(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def string(self) -> str:
        length = self.uint("<I")
        try:
            return self.take(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Invalid UTF-8 in snapshot: {e}") from e


def _decode_schema(payload: bytes) -> Schema:
    reader = _Reader(payload)
    names: list[str] = []
    domains: list[Domain] = []
    for _ in range(reader.uint("<H")):
        names.append(reader.string())
        code = reader.uint("<B")
        domain = _DOMAINS_BY_CODE.get(code)
        if domain is None:
            raise PersistenceError(f"Unknown domain code {code}")
        domains.append(domain)
    key = [reader.string() for _ in range(reader.uint("<H"))]
    if reader.remaining:
        raise PersistenceError("Trailing bytes in schema section")
    try:
        return Schema.build(names, domains, key)
    except SchemaError as e:
        raise PersistenceError(f"Invalid schema in snapshot: {e}") from e


def _decode_row(payload: bytes, domains: Sequence[Domain]) -> tuple[Any, ...]:
    reader = _Reader(payload)
    values: list[Any] = []
    for domain in domains:
        if domain is Domain.STRING:
            values.append(reader.string())
        elif domain is Domain.CHARACTER:
            code_point = reader.unpack(_VALUE_FORMATS[domain])[0]
            try:
                values.append(chr(code_point))
            except (ValueError, OverflowError) as e:
                raise PersistenceError(f"Invalid character code point {code_point}") from e
        else:
            values.append(reader.unpack(_VALUE_FORMATS[domain])[0])
    if reader.remaining:
        raise PersistenceError("Trailing bytes in tuple section")
    return tuple(values)


def decode_table(data: bytes) -> Snapshot:
    """Deserialize snapshot bytes.

    Raises:
        PersistenceError: On a bad header, an unsupported version, or a
            truncated or corrupt section.
    """
    reader = _Reader(data)
    magic, version = reader.unpack(_HEADER)
    if magic != MAGIC:
        raise PersistenceError(f"Not a table snapshot (magic {magic!r})")
    if version > FORMAT_VERSION:
        raise PersistenceError(f"Unsupported snapshot version {version}")

    name: str | None = None
    schema: Schema | None = None
    rows: list[tuple[Any, ...]] = []
    indexed = False

    while True:
        tag, length = reader.unpack(_SECTION)
        payload = reader.take(length)
        if tag == Section.END:
            break
        elif tag == Section.NAME:
            try:
                name = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise PersistenceError(f"Invalid table name: {e}") from e
        elif tag == Section.SCHEMA:
            schema = _decode_schema(payload)
        elif tag == Section.TUPLE:
            if schema is None:
                raise PersistenceError("Tuple section before schema section")
            rows.append(_decode_row(payload, schema.domains))
        elif tag == Section.INDEXED:
            indexed = True
        # Unknown sections are skipped

    if name is None or schema is None:
        raise PersistenceError("Snapshot lacks a name or schema section")
    return Snapshot(name=name, schema=schema, rows=rows, indexed=indexed)


class TableStore:
    """Reads and writes table snapshots in a directory."""

    def __init__(self, config: StorageConfig | None = None) -> None:
        """Initialize the store.

        Args:
            config: Storage settings; the global configuration when omitted.
        """
        self.config = config if config is not None else get_config().storage

    @property
    def data_dir(self) -> Path:
        return self.config.data_dir

    def path_for(self, name: str) -> Path:
        """Return the snapshot path for a table.

        Raises:
            PersistenceError: If the name cannot be used as a file name.
        """
        try:
            return self.config.path_for(name)
        except ValueError as e:
            raise PersistenceError(str(e)) from e

    def exists(self, name: str) -> bool:
        """Return whether a snapshot is stored under name."""
        try:
            return self.path_for(name).is_file()
        except PersistenceError:
            return False

    def write(
        self,
        name: str,
        schema: Schema,
        rows: Iterable[Sequence[Any]],
        indexed: bool = False,
    ) -> Path:
        """Write a snapshot, replacing any previous one.

        Raises:
            PersistenceError: On an encoding or I/O failure.
        """
        data = encode_table(name, schema, rows, indexed)
        path = self.path_for(name)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e
        return path

    def read(self, name: str) -> Snapshot:
        """Read a snapshot.

        Raises:
            PersistenceError: On an I/O failure or a corrupt file.
        """
        path = self.path_for(name)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e
        return decode_table(data)

    def list_tables(self) -> list[str]:
        """Return the names of all stored tables, sorted."""
        if not self.data_dir.is_dir():
            return []
        ext = self.config.extension
        return sorted(
            p.name[: -len(ext)]
            for p in self.data_dir.iterdir()
            if p.is_file() and p.name.endswith(ext)
        )
