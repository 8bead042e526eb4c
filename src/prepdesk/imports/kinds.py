"""Column and collection layouts for each supported spreadsheet import."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

DefaultsFactory = Callable[[datetime], dict[str, Any]]

ANSWER_LETTERS = ("a", "b", "c", "d")


def _no_defaults(now: datetime) -> dict[str, Any]:
    return {}


def _imported_description(now: datetime) -> str:
    return f"Imported from spreadsheet on {now:%Y-%m-%d %H:%M:%S}"


@dataclass(frozen=True, slots=True)
class ImportKind:
    """Describe how one spreadsheet layout maps onto subject/chapter/leaf records."""

    name: str
    required_columns: tuple[str, ...]
    subject_column: str
    chapter_column: str
    subject_collection: str
    subject_name_field: str
    chapter_collection: str
    chapter_name_field: str
    leaf_collection: str
    leaf_parent_field: str
    leaf_fields: tuple[tuple[str, str], ...]
    label_column: str
    template_row: tuple[tuple[str, str], ...]
    optional_columns: tuple[str, ...] = ()
    chapter_parent_field: str = "subject_id"
    leaf_subject_field: str = "subject_id"
    answer_column: str | None = None
    sequence_field: str | None = None
    subject_defaults: DefaultsFactory = _no_defaults
    chapter_defaults: DefaultsFactory = _no_defaults
    leaf_defaults: DefaultsFactory = _no_defaults

    @property
    def columns(self) -> tuple[str, ...]:
        return self.required_columns + self.optional_columns


MCQ_KIND = ImportKind(
    name="mcq",
    required_columns=(
        "subject",
        "chapter",
        "question",
        "option1",
        "option2",
        "option3",
        "option4",
        "answer",
    ),
    optional_columns=("explanation",),
    subject_column="subject",
    chapter_column="chapter",
    subject_collection="mcq_subjects",
    subject_name_field="title",
    chapter_collection="mcq_chapters",
    chapter_name_field="title",
    leaf_collection="mcqs",
    leaf_parent_field="chapter_id",
    leaf_fields=(
        ("question", "question"),
        ("option1", "option1"),
        ("option2", "option2"),
        ("option3", "option3"),
        ("option4", "option4"),
        ("answer", "answer"),
        ("explanation", "explanation"),
    ),
    label_column="question",
    answer_column="answer",
    template_row=(
        ("subject", "Sample Subject"),
        ("chapter", "Sample Chapter"),
        ("question", "Sample Question"),
        ("option1", "Option A"),
        ("option2", "Option B"),
        ("option3", "Option C"),
        ("option4", "Option D"),
        ("answer", "a"),
        ("explanation", "Optional explanation"),
    ),
    subject_defaults=lambda now: {
        "description": _imported_description(now),
        "active": True,
        "revised": False,
    },
    chapter_defaults=lambda now: {"description": _imported_description(now)},
)

FLASHCARD_KIND = ImportKind(
    name="flashcard",
    required_columns=("subject", "chapter", "title"),
    optional_columns=("description",),
    subject_column="subject",
    chapter_column="chapter",
    subject_collection="subjects",
    subject_name_field="subject_name",
    chapter_collection="chapters",
    chapter_name_field="chapter_name",
    leaf_collection="flashcards",
    leaf_parent_field="chapter_id",
    leaf_fields=(("title", "title"), ("description", "description")),
    label_column="title",
    sequence_field="card_no",
    template_row=(
        ("subject", "History"),
        ("chapter", "Modern India"),
        ("title", "Charter Act of 1853"),
        ("description", "Added 6 new Legislative Councillors to Gov-Gen Council..."),
    ),
    subject_defaults=lambda now: {"active": True, "revised": now.isoformat()},
    chapter_defaults=lambda now: {"priority": 1, "revised": now.isoformat()},
    leaf_defaults=lambda now: {"favorite": False},
)

SYLLABUS_KIND = ImportKind(
    name="syllabus",
    required_columns=("subject_name", "topic_name", "syllabus_topic_name"),
    subject_column="subject_name",
    chapter_column="topic_name",
    subject_collection="syllabus_subjects",
    subject_name_field="subject_name",
    chapter_collection="syllabus_topics",
    chapter_name_field="topic_name",
    leaf_collection="syllabus",
    leaf_parent_field="topic_id",
    leaf_fields=(("syllabus_topic_name", "topic_name"),),
    label_column="syllabus_topic_name",
    template_row=(
        ("subject_name", "Sample Subject"),
        ("topic_name", "Sample Topic"),
        ("syllabus_topic_name", "Sample Syllabus Topic"),
    ),
    leaf_defaults=lambda now: {"completed": False},
)

IMPORT_KINDS: dict[str, ImportKind] = {
    kind.name: kind for kind in (MCQ_KIND, FLASHCARD_KIND, SYLLABUS_KIND)
}


def get_kind(name: str) -> ImportKind:
    """Look up an import kind by its short name."""

    try:
        return IMPORT_KINDS[name.strip().lower()]
    except KeyError:
        supported = ", ".join(sorted(IMPORT_KINDS))
        raise ValueError(f"Unknown import kind {name!r}; expected one of: {supported}") from None
