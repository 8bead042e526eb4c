"""Value types shared by the validation, taxonomy and insertion stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Mapping

ImportRow = Mapping[str, str]
Clock = Callable[[], datetime]

HEADER_ROW_OFFSET = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def spreadsheet_row_number(index: int) -> int:
    """Map a 0-based data row index to the row number a spreadsheet shows."""

    return index + HEADER_ROW_OFFSET


def cell(row: ImportRow, column: str) -> str:
    """Return the trimmed value of a column, or an empty string."""

    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


@dataclass(slots=True)
class RowRejection:
    index: int
    row_number: int
    reason: str


@dataclass(slots=True)
class ValidationResult:
    valid_rows: list[ImportRow] = field(default_factory=list)
    rejected: list[RowRejection] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected


@dataclass(slots=True)
class FailedRow:
    """A row whose leaf record could not be written."""

    row_number: int
    label: str
    error: str

    def describe(self) -> str:
        return f'Row with title: "{self.label}" - {self.error}'


@dataclass(slots=True)
class InsertionResult:
    added_count: int = 0
    failed: list[FailedRow] = field(default_factory=list)
    created_ids: list[str] = field(default_factory=list)
