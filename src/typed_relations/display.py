"""Text rendering of tables and their indexes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typed_relations.table import Table

COLUMN_WIDTH = 15


def format_value(value: Any, max_width: int = COLUMN_WIDTH) -> str:
    """Format a value for a fixed-width column."""
    if isinstance(value, float):
        s = f"{value:.6g}"
    else:
        s = str(value)
    if len(s) > max_width:
        return s[: max_width - 3] + "..."
    return s


def _rule(columns: int) -> str:
    return "|-" + "-" * (COLUMN_WIDTH * columns) + "-|"


def _line(cells: list[str]) -> str:
    return "| " + "".join(f"{c:>{COLUMN_WIDTH}}" for c in cells) + " |"


def format_table(table: Table, limit: int | None = None) -> str:
    """Render a table as a fixed-width grid.

    Args:
        table: The table to render.
        limit: Show at most this many tuples.
    """
    arity = table.schema.arity
    lines = [f" Table {table.name}", _rule(arity), _line(list(table.schema.names)), _rule(arity)]

    rows = table.tuples
    shown = rows if limit is None else rows[:limit]
    for row in shown:
        lines.append(_line([format_value(v) for v in row]))
    lines.append(_rule(arity))
    if len(shown) < len(rows):
        lines.append(f"... ({len(rows) - len(shown)} more tuples)")
    return "\n".join(lines)


def format_index(table: Table) -> str:
    """Render a table's index, in key order."""
    lines = [f" Index for {table.name}", "-" * 19]
    for key, row in table.index.items():
        values = ", ".join(repr(v) for v in key)
        lines.append(f"({values}) -> {list(row)}")
    lines.append("-" * 19)
    return "\n".join(lines)


def table_to_dict(table: Table, limit: int | None = None) -> dict[str, Any]:
    """JSON-compatible description of a table."""
    rows = table.tuples
    if limit is not None:
        rows = rows[:limit]
    return {
        "table": table.name,
        "attributes": [
            {"name": a.name, "domain": a.domain.value} for a in table.schema.attributes
        ],
        "key": list(table.schema.key),
        "count": len(table),
        "tuples": [list(row) for row in rows],
    }
