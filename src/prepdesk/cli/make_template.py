"""CLI entrypoint writing an import template workbook."""

from __future__ import annotations

import argparse
import json

from prepdesk.imports import IMPORT_KINDS, get_kind
from prepdesk.spreadsheet.writer import write_template


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Write a sample spreadsheet for an import kind")
    parser.add_argument("--kind", required=True, choices=sorted(IMPORT_KINDS), help="Spreadsheet layout")
    parser.add_argument("--output", default=None, help="Target .xlsx path (default: <kind>_template.xlsx)")
    args = parser.parse_args(argv)

    kind = get_kind(args.kind)
    target = write_template(kind, args.output or f"{kind.name}_template.xlsx")

    print(json.dumps({"kind": kind.name, "path": str(target), "columns": list(kind.columns)}, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
