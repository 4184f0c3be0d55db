"""Command-line tool to dump saved table snapshots."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from typed_relations.config import get_config
from typed_relations.display import format_index, format_table, table_to_dict
from typed_relations.logging import setup_logging
from typed_relations.storage import TableStore
from typed_relations.table import Table


def list_tables(store: TableStore) -> None:
    """List all stored tables."""
    print("Available tables:")
    print("-" * 40)
    for name in store.list_tables():
        size = store.path_for(name).stat().st_size
        print(f"  {name:<28} {size:>8} bytes")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Dump saved relational table snapshots to the console"
    )
    parser.add_argument(
        "table",
        nargs="?",
        help="Name of the table to dump (omit to list tables)",
    )
    parser.add_argument(
        "-d", "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the snapshots (default from configuration)",
    )
    parser.add_argument(
        "-i", "--index",
        action="store_true",
        help="Also show the table's primary-key index",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "-n", "--limit",
        type=int,
        default=None,
        help="Limit number of tuples to display",
    )

    args = parser.parse_args(argv)

    config = get_config()
    setup_logging(config.observability.log_level, config.observability.log_format)

    storage_config = config.storage
    if args.data_dir is not None:
        storage_config = storage_config.model_copy(update={"data_dir": args.data_dir})
    store = TableStore(storage_config)

    if not store.data_dir.is_dir():
        print(f"Error: Data directory not found: {store.data_dir}", file=sys.stderr)
        return 1

    if args.table is None:
        list_tables(store)
        return 0

    if not store.exists(args.table):
        print(f"Error: Table not found: {args.table}", file=sys.stderr)
        return 1

    table = Table.load(args.table, store)
    if table is None:
        print(f"Error: Cannot load table: {args.table}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(table_to_dict(table, args.limit), indent=2))
    else:
        print(format_table(table, args.limit))
        if args.index:
            print()
            print(format_index(table))
    return 0


if __name__ == "__main__":
    sys.exit(main())
