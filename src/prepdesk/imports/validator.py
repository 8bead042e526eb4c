"""All-or-nothing validation gate for spreadsheet rows."""

from __future__ import annotations

from typing import Sequence

from prepdesk.imports.kinds import ANSWER_LETTERS, ImportKind
from prepdesk.imports.models import (
    ImportRow,
    RowRejection,
    ValidationResult,
    cell,
    spreadsheet_row_number,
)


def normalize_answer(raw: str | None) -> str | None:
    """Return the lowercase answer letter, or None when it is not a-d."""

    if raw is None:
        return None
    letter = str(raw).strip().lower()
    if letter in ANSWER_LETTERS:
        return letter
    return None


def _row_problem(row: ImportRow, kind: ImportKind) -> str | None:
    for column in kind.required_columns:
        if column == kind.answer_column:
            continue
        if not cell(row, column):
            return f"Missing {column}"

    if kind.answer_column is not None and normalize_answer(row.get(kind.answer_column)) is None:
        return "Invalid answer (must be a, b, c, or d)"
    return None


def validate_rows(rows: Sequence[ImportRow], kind: ImportKind) -> ValidationResult:
    """Split rows into valid ones and rejections carrying spreadsheet row numbers."""

    result = ValidationResult()
    for index, row in enumerate(rows):
        problem = _row_problem(row, kind)
        if problem is None:
            result.valid_rows.append(row)
            continue

        row_number = spreadsheet_row_number(index)
        result.rejected.append(
            RowRejection(index=index, row_number=row_number, reason=f"Row {row_number}: {problem}")
        )
    return result
