"""Read header-named rows from .xlsx workbooks and .csv files."""

from __future__ import annotations

import codecs
import csv
from dataclasses import dataclass
from datetime import date, datetime
import io
from pathlib import Path
from typing import Any, Iterable, Sequence

from charset_normalizer import from_bytes
from openpyxl import load_workbook

WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


@dataclass(slots=True)
class SpreadsheetError(Exception):
    """Domain error for unreadable or unsupported import files."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _rows_from_table(header: Sequence[Any], body: Iterable[Sequence[Any]]) -> list[dict[str, str]]:
    columns = [_cell_text(name).strip() for name in header]
    rows: list[dict[str, str]] = []
    for values in body:
        row: dict[str, str] = {}
        for column, value in zip(columns, values):
            if not column:
                continue
            text = _cell_text(value)
            if text:
                row[column] = text
        if row:
            rows.append(row)
    return rows


def _read_workbook(path: Path, sheet_name: str | None) -> list[dict[str, str]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise SpreadsheetError(path, f"Failed to open workbook: {exc}") from exc

    try:
        if sheet_name is not None:
            if sheet_name not in workbook.sheetnames:
                raise SpreadsheetError(path, f"Sheet {sheet_name!r} not found")
            worksheet = workbook[sheet_name]
        else:
            if not workbook.worksheets:
                raise SpreadsheetError(path, "Workbook has no sheets")
            worksheet = workbook.worksheets[0]

        values = worksheet.iter_rows(values_only=True)
        header = next(values, None)
        if header is None:
            return []
        return _rows_from_table(header, values)
    finally:
        workbook.close()


def _detect_encoding(raw: bytes) -> str:
    if raw.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"

    best = from_bytes(raw).best()
    if best and best.encoding:
        return best.encoding

    for fallback in ("utf-8", "cp1252"):
        try:
            raw.decode(fallback)
            return fallback
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not detect CSV encoding")


def _read_csv(path: Path) -> list[dict[str, str]]:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SpreadsheetError(path, f"Failed to read source file: {exc}") from exc
    if not raw.strip():
        return []

    try:
        text = raw.decode(_detect_encoding(raw))
    except (ValueError, UnicodeDecodeError) as exc:
        raise SpreadsheetError(path, f"Failed to decode CSV: {exc}") from exc

    reader = csv.reader(io.StringIO(text, newline=""))
    header = next(reader, None)
    if header is None:
        return []
    return _rows_from_table(header, reader)


def read_import_rows(path: str | Path, *, sheet_name: str | None = None) -> list[dict[str, str]]:
    """Return one dict per non-blank data row, keyed by the header row."""

    source = Path(path)
    suffix = source.suffix.lower()
    if not source.is_file():
        raise SpreadsheetError(source, "Import file does not exist")
    if suffix in WORKBOOK_SUFFIXES:
        return _read_workbook(source, sheet_name)
    if suffix in CSV_SUFFIXES:
        return _read_csv(source)
    raise SpreadsheetError(source, f"Unsupported spreadsheet format: {suffix or '<none>'}")
