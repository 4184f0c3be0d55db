"""Parser for the schema definition DSL.

A script is a sequence of table definitions::

    # Kifer, Bernstein and Lewis student registration database
    create table Student (id Integer, name String, address String, status String)
        key (id);
    create table Transcript (studId Integer, crsCode String, semester String, grade String)
        key (studId crsCode semester)

Domain names are case-insensitive; key names may be separated by spaces or
commas; the trailing semicolon is optional.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import ply.yacc as yacc

from typed_relations.errors import SchemaError
from typed_relations.parsing.schema_lexer import SchemaLexer
from typed_relations.schema import Schema
from typed_relations.types import Domain


@dataclass
class ColumnSpec:
    """A column before domain resolution."""

    name: str
    domain_name: str


@dataclass
class TableSpecDSL:
    """A table definition before resolution."""

    name: str
    columns: list[ColumnSpec]
    key: list[str]


@dataclass
class TableSpec:
    """A resolved table definition."""

    name: str
    schema: Schema


class SchemaParser:
    """Parser for ``create table`` scripts."""

    tokens = SchemaLexer.tokens
    start = "script"

    def __init__(self) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_script(self, p: yacc.YaccProduction) -> None:
        """script : statement_list"""
        p[0] = p[1]

    def p_script_empty(self, p: yacc.YaccProduction) -> None:
        """script :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1] + [p[2]]

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : table_def
                     | table_def SEMICOLON"""
        p[0] = p[1]

    def p_table_def(self, p: yacc.YaccProduction) -> None:
        """table_def : CREATE TABLE IDENTIFIER LPAREN column_list RPAREN KEY LPAREN name_list RPAREN
                     | CREATE TABLE IDENTIFIER LPAREN column_list COMMA RPAREN KEY LPAREN name_list RPAREN"""
        if len(p) == 11:
            p[0] = TableSpecDSL(name=p[3], columns=p[5], key=p[9])
        else:
            p[0] = TableSpecDSL(name=p[3], columns=p[5], key=p[10])

    def p_column_list_single(self, p: yacc.YaccProduction) -> None:
        """column_list : column"""
        p[0] = [p[1]]

    def p_column_list_multiple(self, p: yacc.YaccProduction) -> None:
        """column_list : column_list COMMA column"""
        p[0] = p[1] + [p[3]]

    def p_column(self, p: yacc.YaccProduction) -> None:
        """column : IDENTIFIER IDENTIFIER"""
        p[0] = ColumnSpec(name=p[1], domain_name=p[2])

    def p_name_list_single(self, p: yacc.YaccProduction) -> None:
        """name_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_name_list_multiple(self, p: yacc.YaccProduction) -> None:
        """name_list : name_list IDENTIFIER
                     | name_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[len(p) - 1]]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> list[TableSpec]:
        """Parse a script and return the resolved table definitions.

        Raises:
            SyntaxError: On malformed input.
            SchemaError: On an unknown domain, a duplicate table name or an
                invalid key.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if specs is None:
            specs = []

        resolved: list[TableSpec] = []
        seen: set[str] = set()
        for spec in specs:
            if spec.name in seen:
                raise SchemaError(f"Table '{spec.name}' is defined more than once")
            seen.add(spec.name)
            resolved.append(self._resolve(spec))
        return resolved

    def _resolve(self, spec: TableSpecDSL) -> TableSpec:
        """Resolve domain names and validate the key."""
        domains = [_lookup_domain(c.domain_name) for c in spec.columns]
        schema = Schema.build([c.name for c in spec.columns], domains, spec.key)
        return TableSpec(name=spec.name, schema=schema)


def _lookup_domain(name: str) -> Domain:
    try:
        return Domain.from_name(name)
    except KeyError:
        raise SchemaError(
            f"Unknown domain '{name}' (expected one of: "
            f"{', '.join(d.value for d in Domain)})"
        ) from None


@lru_cache(maxsize=None)
def _list_lexer() -> SchemaLexer:
    lexer = SchemaLexer()
    lexer.build()
    return lexer


def split_names(text: str) -> list[str]:
    """Split a whitespace separated list such as ``"studId crsCode"``."""
    return _list_lexer().words(text)


def parse_schema(attributes: str, domains: str, key: str) -> Schema:
    """Build a schema from whitespace separated attribute, domain and key lists.

        >>> parse_schema("id name", "Integer String", "id").names
        ('id', 'name')

    Raises:
        SyntaxError: If a list contains something other than names.
        SchemaError: On an unknown domain, mismatched list lengths or an
            invalid key.
    """
    names = split_names(attributes)
    domain_list = [_lookup_domain(d) for d in split_names(domains)]
    return Schema.build(names, domain_list, split_names(key))
