"""CLI entrypoint copying collections between two SQLite record stores."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from prepdesk.config import configure_logging
from prepdesk.store.sqlite_store import SQLiteRecordStore
from prepdesk.store.sync import sync_collections


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Back up or restore collections between two stores")
    parser.add_argument("--source", required=True, help="Store to read from")
    parser.add_argument("--destination", required=True, help="Store to upsert into")
    parser.add_argument(
        "--collection",
        action="append",
        dest="collections",
        default=None,
        help="Collection to copy (repeatable, default: every collection in the source)",
    )
    args = parser.parse_args(argv)
    configure_logging()

    source_path = Path(args.source)
    if not source_path.is_file():
        parser.error(f"Source store does not exist: {source_path}")
    if source_path.resolve() == Path(args.destination).resolve():
        parser.error("Source and destination must be different stores")

    with SQLiteRecordStore(source_path) as source, SQLiteRecordStore(args.destination) as destination:
        stats = sync_collections(source, destination, args.collections)

    payload = {"source": str(source_path), "destination": args.destination, **stats.to_dict()}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 1 if stats.conflicts else 0


if __name__ == "__main__":
    raise SystemExit(main())
