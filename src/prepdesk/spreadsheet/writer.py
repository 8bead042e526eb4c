"""Workbook and CSV writers for templates, exports and converted text."""

from __future__ import annotations

import csv
from collections import defaultdict
from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Any, Iterable, Sequence

from openpyxl import Workbook

from prepdesk.imports.kinds import MCQ_KIND, ImportKind
from prepdesk.parsing.flashcard_text import TextFlashcard
from prepdesk.parsing.mcq_text import ParsedQuestion
from prepdesk.store.sqlite_store import SQLiteRecordStore

logger = logging.getLogger(__name__)

MCQ_EXPORT_HEADERS = (
    "Subject",
    "Question",
    "OptionA",
    "OptionB",
    "OptionC",
    "OptionD",
    "Answer",
    "Explanation",
)
PARSED_QUESTION_HEADERS = ("no", "question", "a", "b", "c", "d", "answer")
FLASHCARD_CSV_HEADERS = ("Title", "Description")

MAX_SHEET_TITLE_LENGTH = 31
_INVALID_SHEET_CHARS_RE = re.compile(r"[\[\]:*?/\\]")
_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9]")

_TEMPLATE_SHEET_TITLES = {"mcq": "MCQs", "flashcard": "Flashcards", "syllabus": "Syllabus"}


class ExportError(Exception):
    """Raised when an export would produce an empty workbook."""


@dataclass(slots=True)
class ExportSummary:
    path: Path
    sheets: list[str] = field(default_factory=list)
    row_count: int = 0

    def to_dict(self) -> dict[str, object]:
        return {"path": str(self.path), "sheets": list(self.sheets), "row_count": self.row_count}


def sheet_title(name: str) -> str:
    """Make a name usable as a worksheet title."""

    cleaned = _INVALID_SHEET_CHARS_RE.sub("", name).strip()
    return cleaned[:MAX_SHEET_TITLE_LENGTH] or "Subject"


def suggest_export_filename(subject_titles: Sequence[str], *, filtered: bool) -> str:
    if not filtered:
        return "all_subjects_mcqs.xlsx"
    if len(subject_titles) == 1:
        return f"{_UNSAFE_FILENAME_RE.sub('_', subject_titles[0])}_mcqs.xlsx"
    return "checked_subjects_mcqs.xlsx"


def write_rows(
    path: str | Path,
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    *,
    title: str = "Sheet1",
) -> Path:
    """Write a single-sheet workbook with a header row."""

    target = Path(path)
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title(title)
    worksheet.append(list(headers))
    for row in rows:
        worksheet.append(list(row))
    workbook.save(target)
    return target


def write_template(kind: ImportKind, path: str | Path) -> Path:
    """Write an import template holding the header and one sample row."""

    headers = [column for column, _ in kind.template_row]
    sample = [value for _, value in kind.template_row]
    return write_rows(path, headers, [sample], title=_TEMPLATE_SHEET_TITLES.get(kind.name, kind.name))


def write_parsed_questions(path: str | Path, questions: Iterable[ParsedQuestion]) -> Path:
    rows = (
        (q.number, q.question, *q.options, q.answer)
        for q in questions
    )
    return write_rows(path, PARSED_QUESTION_HEADERS, rows, title="MCQs")


def write_flashcards_csv(path: str | Path, cards: Iterable[TextFlashcard]) -> Path:
    target = Path(path)
    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(FLASHCARD_CSV_HEADERS)
        for card in cards:
            writer.writerow((card.title, card.description))
    return target


def export_mcqs(
    store: SQLiteRecordStore,
    path: str | Path,
    *,
    subject_ids: Sequence[str] | None = None,
) -> ExportSummary:
    """Export MCQs into one sheet per subject.

    Without ``subject_ids`` every subject gets a sheet, even an empty one.
    With ``subject_ids`` only the selected subjects that have questions are
    written, and ExportError is raised when none of them do.
    """

    target = Path(path)
    filtered = subject_ids is not None
    selected = set(subject_ids or ())

    subjects = [
        record
        for record in store.iter_records(MCQ_KIND.subject_collection)
        if not filtered or record.id in selected
    ]

    questions_by_subject: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for record in store.iter_records(MCQ_KIND.leaf_collection):
        questions_by_subject[str(record.fields.get(MCQ_KIND.leaf_subject_field, ""))].append(record.fields)

    workbook = Workbook()
    workbook.remove(workbook.active)
    summary = ExportSummary(path=target)

    for subject in subjects:
        questions = questions_by_subject.get(subject.id, [])
        if filtered and not questions:
            continue

        title = str(subject.fields.get(MCQ_KIND.subject_name_field, ""))
        worksheet = workbook.create_sheet(sheet_title(title))
        worksheet.append(list(MCQ_EXPORT_HEADERS))
        for question in questions:
            worksheet.append(
                [
                    title,
                    question.get("question", ""),
                    question.get("option1", ""),
                    question.get("option2", ""),
                    question.get("option3", ""),
                    question.get("option4", ""),
                    question.get("answer", ""),
                    question.get("explanation", ""),
                ]
            )
        summary.sheets.append(worksheet.title)
        summary.row_count += len(questions)

    if not summary.sheets:
        if filtered:
            raise ExportError("No MCQs found for the selected subjects.")
        raise ExportError("No MCQ subjects to export.")

    workbook.save(target)
    logger.info("Exported %d MCQ(s) across %d sheet(s) to %s", summary.row_count, len(summary.sheets), target)
    return summary
