"""CLI command for spreadsheet bulk import with a JSON summary."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import signal

from dotenv import load_dotenv

from prepdesk.config import ImportSettings, configure_logging
from prepdesk.imports import (
    IMPORT_KINDS,
    BulkImportNormalizer,
    CancellationToken,
    ImportAborted,
    get_kind,
)
from prepdesk.spreadsheet.reader import SpreadsheetError, read_import_rows
from prepdesk.store.sqlite_store import SQLiteRecordStore

load_dotenv()


def _print(payload: dict[str, object]) -> None:
    print(json.dumps(payload, ensure_ascii=True, indent=2))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import MCQ, flashcard or syllabus rows from a spreadsheet")
    parser.add_argument("--kind", required=True, choices=sorted(IMPORT_KINDS), help="Spreadsheet layout")
    parser.add_argument("--path", required=True, help="Source .xlsx or .csv file")
    parser.add_argument("--db-path", default=None, help="SQLite store path (default: PREPDESK_DB_PATH)")
    parser.add_argument("--sheet", default=None, help="Worksheet name (default: first sheet)")
    parser.add_argument(
        "--casefold-names",
        action="store_true",
        help="Treat subject/chapter names that differ only in case as the same node",
    )
    args = parser.parse_args(argv)

    try:
        settings = ImportSettings.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(settings.log_level)

    kind = get_kind(args.kind)
    source_path = Path(args.path)
    db_path = Path(args.db_path) if args.db_path else settings.db_path
    base_payload: dict[str, object] = {"path": str(source_path), "db_path": str(db_path), "kind": kind.name}

    try:
        rows = read_import_rows(source_path, sheet_name=args.sheet)
    except SpreadsheetError as exc:
        _print({**base_payload, "error": str(exc)})
        return 1
    if not rows:
        _print({**base_payload, "error": "No data found in spreadsheet"})
        return 1

    token = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        with SQLiteRecordStore(db_path) as store:
            normalizer = BulkImportNormalizer(
                store,
                kind,
                casefold_names=args.casefold_names or settings.casefold_names,
            )
            report = normalizer.run(rows, cancellation=token)
    except ImportAborted as exc:
        _print({**base_payload, **exc.report.to_dict(), "summary": exc.report.summary()})
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print({**base_payload, **report.to_dict(), "summary": report.summary()})
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
