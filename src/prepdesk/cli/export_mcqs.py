"""CLI entrypoint exporting stored MCQs into per-subject sheets."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from dotenv import load_dotenv

from prepdesk.config import ImportSettings, configure_logging
from prepdesk.imports.kinds import MCQ_KIND
from prepdesk.spreadsheet.writer import ExportError, export_mcqs, suggest_export_filename
from prepdesk.store.sqlite_store import SQLiteRecordStore

load_dotenv()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export MCQs to an .xlsx workbook, one sheet per subject")
    parser.add_argument("--db-path", default=None, help="SQLite store path (default: PREPDESK_DB_PATH)")
    parser.add_argument("--output", default=None, help="Target .xlsx path (default: derived from selection)")
    parser.add_argument(
        "--subject-id",
        action="append",
        dest="subject_ids",
        default=None,
        help="Limit the export to this subject id (repeatable)",
    )
    args = parser.parse_args(argv)

    try:
        settings = ImportSettings.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(settings.log_level)

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    with SQLiteRecordStore(db_path) as store:
        output = args.output
        if output is None:
            titles: list[str] = []
            for subject_id in args.subject_ids or ():
                subject = store.get(MCQ_KIND.subject_collection, subject_id)
                if subject is not None:
                    titles.append(str(subject.fields.get(MCQ_KIND.subject_name_field, "")))
            output = suggest_export_filename(titles, filtered=args.subject_ids is not None)

        try:
            summary = export_mcqs(store, output, subject_ids=args.subject_ids)
        except ExportError as exc:
            print(json.dumps({"db_path": str(db_path), "error": str(exc)}, ensure_ascii=True, indent=2))
            return 1

    print(json.dumps({"db_path": str(db_path), **summary.to_dict()}, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
