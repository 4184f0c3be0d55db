"""Parsing module for the schema definition DSL."""

from typed_relations.parsing.schema_lexer import SchemaLexer
from typed_relations.parsing.schema_parser import (
    SchemaParser,
    TableSpec,
    parse_schema,
    split_names,
)

__all__ = [
    "SchemaLexer",
    "SchemaParser",
    "TableSpec",
    "parse_schema",
    "split_names",
]
