"""Typed Relations - in-memory relational tables with relational algebra."""

from typed_relations.config import Config, get_config
from typed_relations.errors import (
    MalformedJoinSpec,
    PersistenceError,
    RelationError,
    SchemaError,
    SchemaMismatch,
    TypeViolation,
    UnknownAttributeError,
)
from typed_relations.index import Index
from typed_relations.keytype import KeyType
from typed_relations.naming import TableNamer
from typed_relations.parsing import SchemaParser, parse_schema
from typed_relations.schema import Schema
from typed_relations.storage import TableStore
from typed_relations.table import Table, create_tables
from typed_relations.types import Attribute, Domain

__all__ = [
    # Main API
    "Table",
    "create_tables",
    "KeyType",
    "Schema",
    "SchemaParser",
    "parse_schema",
    # Building blocks
    "Attribute",
    "Domain",
    "Index",
    "TableNamer",
    "TableStore",
    # Configuration
    "Config",
    "get_config",
    # Errors
    "RelationError",
    "SchemaError",
    "SchemaMismatch",
    "TypeViolation",
    "MalformedJoinSpec",
    "UnknownAttributeError",
    "PersistenceError",
]

__version__ = "0.1.0"
