from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Any, Mapping, Sequence

import pytest

from prepdesk.imports import (
    FLASHCARD_KIND,
    MCQ_KIND,
    SYLLABUS_KIND,
    BulkImportNormalizer,
    CancellationToken,
    ImportAborted,
    SequenceAllocationError,
    TaxonomyResolutionError,
)
from prepdesk.store.base import StoredRecord
from prepdesk.store.sqlite_store import SQLiteRecordStore


class _FlakyStore:
    """Fail selected leaf writes (1-based), lookups or max queries, delegating the rest."""

    def __init__(
        self,
        inner: SQLiteRecordStore,
        *,
        leaf_collection: str,
        failing_writes: set[int] | None = None,
        fail_lookups: bool = False,
        fail_max: bool = False,
    ) -> None:
        self._inner = inner
        self._leaf_collection = leaf_collection
        self._failing_writes = failing_writes or set()
        self._fail_lookups = fail_lookups
        self._fail_max = fail_max
        self._leaf_writes = 0

    def find_one(
        self,
        collection: str,
        filters: Mapping[str, Any],
        *,
        ignore_case: Sequence[str] = (),
    ) -> StoredRecord | None:
        if self._fail_lookups:
            raise ConnectionError("store unavailable")
        return self._inner.find_one(collection, filters, ignore_case=ignore_case)

    def find_max(self, collection: str, field_name: str, filters: Mapping[str, Any] | None = None) -> Any:
        if self._fail_max:
            raise sqlite3.OperationalError("database is locked")
        return self._inner.find_max(collection, field_name, filters)

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        if collection == self._leaf_collection:
            self._leaf_writes += 1
            if self._leaf_writes in self._failing_writes:
                raise RuntimeError("Document too large")
        return self._inner.create(collection, fields)


def _flashcard_rows() -> list[dict[str, str]]:
    return [
        {"subject": "History", "chapter": "Modern India", "title": "Charter Act", "description": "..."},
        {"subject": "History", "chapter": "Modern India", "title": "Revolt of 1857", "description": "..."},
    ]


def _mcq_rows(count: int) -> list[dict[str, str]]:
    return [
        {
            "subject": "Polity",
            "chapter": "Amendments",
            "question": f"Question {idx}",
            "option1": "w",
            "option2": "x",
            "option3": "y",
            "option4": "z",
            "answer": "c",
        }
        for idx in range(1, count + 1)
    ]


def test_flashcard_import_against_empty_store(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as store:
        report = BulkImportNormalizer(store, FLASHCARD_KIND).run(_flashcard_rows())

        subjects = list(store.iter_records("subjects"))
        chapters = list(store.iter_records("chapters"))
        cards = list(store.iter_records("flashcards"))

    assert report.ok
    assert report.status == "completed"
    assert (report.subjects_created, report.chapters_created, report.added_count) == (1, 1, 2)
    assert [s.fields["subject_name"] for s in subjects] == ["History"]
    assert [c.fields["chapter_name"] for c in chapters] == ["Modern India"]
    assert chapters[0].fields["subject_id"] == subjects[0].id
    assert {card.fields["chapter_id"] for card in cards} == {chapters[0].id}
    assert [card.fields["card_no"] for card in cards] == [1, 2]


def test_repeated_import_reuses_taxonomy_and_continues_numbering(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as store:
        normalizer = BulkImportNormalizer(store, FLASHCARD_KIND)
        first = normalizer.run(_flashcard_rows())
        second = normalizer.run(_flashcard_rows())

        cards = list(store.iter_records("flashcards"))
        assert store.count("subjects") == 1
        assert store.count("chapters") == 1

    assert first.ok and second.ok
    assert (second.subjects_created, second.chapters_created, second.added_count) == (0, 0, 2)
    assert [card.fields["card_no"] for card in cards] == [1, 2, 3, 4]
    assert len({card.fields["chapter_id"] for card in cards}) == 1


def test_validation_failure_blocks_every_write(tmp_path: Path) -> None:
    rows = _mcq_rows(5)
    del rows[2]["option2"]

    with SQLiteRecordStore(tmp_path / "prep.db") as store:
        report = BulkImportNormalizer(store, MCQ_KIND).run(rows)

        assert store.list_collections() == []

    assert report.status == "rejected"
    assert not report.ok
    assert [r.reason for r in report.rejections] == ["Row 4: Missing option2"]
    assert report.summary() == "Validation errors found:\n\nRow 4: Missing option2"


def test_failing_row_is_reported_while_siblings_are_inserted(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as inner:
        store = _FlakyStore(inner, leaf_collection="mcqs", failing_writes={2})
        report = BulkImportNormalizer(store, MCQ_KIND).run(_mcq_rows(5))

        questions = [record.fields["question"] for record in inner.iter_records("mcqs")]

    assert report.status == "completed"
    assert not report.ok
    assert report.added_count == 4
    assert questions == ["Question 1", "Question 3", "Question 4", "Question 5"]
    assert len(report.failed) == 1
    failed = report.failed[0]
    assert (failed.row_number, failed.label, failed.error) == (3, "Question 2", "Document too large")
    assert failed.describe() == 'Row with title: "Question 2" - Document too large'
    assert report.summary() == "Successfully added 4 mcq record(s). Failed: 1"


def test_failed_flashcard_row_still_consumes_its_card_number(tmp_path: Path) -> None:
    rows = _flashcard_rows() + [
        {"subject": "History", "chapter": "Modern India", "title": "Doctrine of Lapse"}
    ]
    with SQLiteRecordStore(tmp_path / "prep.db") as inner:
        store = _FlakyStore(inner, leaf_collection="flashcards", failing_writes={2})
        BulkImportNormalizer(store, FLASHCARD_KIND).run(rows)

        numbers = [record.fields["card_no"] for record in inner.iter_records("flashcards")]

    assert numbers == [1, 3]


def test_store_outage_during_resolution_is_fatal(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as inner:
        store = _FlakyStore(inner, leaf_collection="syllabus", fail_lookups=True)
        rows = [{"subject_name": "Geography", "topic_name": "Rivers", "syllabus_topic_name": "Ganga basin"}]

        with pytest.raises(ImportAborted, match="store unavailable") as excinfo:
            BulkImportNormalizer(store, SYLLABUS_KIND).run(rows)

        assert inner.list_collections() == []

    assert isinstance(excinfo.value.__cause__, TaxonomyResolutionError)
    assert excinfo.value.report.status == "aborted"
    assert excinfo.value.report.subjects_created == 0


def test_sequence_lookup_failure_aborts_and_reports_created_nodes(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as inner:
        store = _FlakyStore(inner, leaf_collection="flashcards", fail_max=True)

        with pytest.raises(ImportAborted) as excinfo:
            BulkImportNormalizer(store, FLASHCARD_KIND).run(_flashcard_rows())

        assert inner.count("subjects") == 1
        assert inner.count("chapters") == 1
        assert inner.count("flashcards") == 0

    report = excinfo.value.report
    cause = excinfo.value.__cause__
    assert isinstance(cause, SequenceAllocationError)
    assert isinstance(cause.__cause__, sqlite3.OperationalError)
    assert report.status == "aborted"
    assert not report.ok
    assert (report.subjects_created, report.chapters_created, report.added_count) == (1, 1, 0)
    assert "database is locked" in report.error
    assert report.summary().startswith("Import aborted: Sequence lookup failed: database is locked")
    assert report.to_dict()["error"] == report.error


def test_cancelled_run_reports_cancelled_status_without_writes(tmp_path: Path) -> None:
    token = CancellationToken()
    token.cancel()
    with SQLiteRecordStore(tmp_path / "prep.db") as store:
        report = BulkImportNormalizer(store, FLASHCARD_KIND).run(_flashcard_rows(), cancellation=token)

        assert store.list_collections() == []

    assert report.status == "cancelled"
    assert report.added_count == 0
    assert "cancelled" in report.summary()


def test_report_serializes_to_plain_dict(tmp_path: Path) -> None:
    with SQLiteRecordStore(tmp_path / "prep.db") as store:
        report = BulkImportNormalizer(store, FLASHCARD_KIND).run(_flashcard_rows())

    assert report.to_dict() == {
        "kind": "flashcard",
        "status": "completed",
        "total_rows": 2,
        "rejections": [],
        "subjects_created": 1,
        "chapters_created": 1,
        "added_count": 2,
        "failed": [],
        "error": None,
    }
