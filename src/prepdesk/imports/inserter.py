"""Per-row leaf record construction with isolated write failures."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Sequence

from prepdesk.imports.cancellation import CancellationToken, ImportCancelled
from prepdesk.imports.kinds import ImportKind
from prepdesk.imports.models import (
    Clock,
    FailedRow,
    ImportRow,
    InsertionResult,
    cell,
    spreadsheet_row_number,
    utc_now,
)
from prepdesk.imports.taxonomy import TaxonomyMap
from prepdesk.imports.validator import normalize_answer
from prepdesk.store.base import ImportStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SequenceAllocationError(Exception):
    """Fatal store failure while reading the current sequence maximum."""

    collection: str
    field_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.collection}.{self.field_name})"


class InsertionInterrupted(ImportCancelled):
    """Cancellation raised mid-batch, carrying what was written so far."""

    def __init__(self, partial: InsertionResult) -> None:
        super().__init__("Import cancelled during leaf insertion")
        self.partial = partial


class LeafInserter:
    """Write one leaf record per validated row under its resolved chapter."""

    def __init__(
        self,
        store: ImportStore,
        kind: ImportKind,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._kind = kind
        self._clock = clock or utc_now

    def next_sequence_start(self) -> int:
        """Return the first sequence number for a new batch."""

        if self._kind.sequence_field is None:
            raise ValueError(f"Import kind {self._kind.name!r} has no sequence field")
        collection = self._kind.leaf_collection
        field_name = self._kind.sequence_field
        try:
            current = self._store.find_max(collection, field_name)
        except Exception as exc:
            logger.error("Reading max %s from %s failed: %s", field_name, collection, exc)
            raise SequenceAllocationError(collection, field_name, f"Sequence lookup failed: {exc}") from exc
        return int(current or 0) + 1

    def build_fields(
        self,
        row: ImportRow,
        taxonomy: TaxonomyMap,
        *,
        sequence_number: int | None = None,
    ) -> dict[str, Any]:
        kind = self._kind
        subject_name = cell(row, kind.subject_column)
        chapter_name = cell(row, kind.chapter_column)
        now = self._clock()

        fields: dict[str, Any] = {
            kind.leaf_parent_field: taxonomy.chapter_id(subject_name, chapter_name),
            kind.leaf_subject_field: taxonomy.subject_id(subject_name),
        }
        for column, field_name in kind.leaf_fields:
            fields[field_name] = cell(row, column)
        if kind.answer_column is not None:
            fields[kind.answer_column] = normalize_answer(row.get(kind.answer_column)) or ""
        if kind.sequence_field is not None and sequence_number is not None:
            fields[kind.sequence_field] = sequence_number
        fields.update(kind.leaf_defaults(now))
        fields["created_at"] = now.isoformat()
        return fields

    def insert(
        self,
        rows: Sequence[ImportRow],
        taxonomy: TaxonomyMap,
        *,
        row_numbers: Sequence[int] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> InsertionResult:
        token = cancellation or CancellationToken()
        kind = self._kind
        result = InsertionResult()
        numbers = list(row_numbers) if row_numbers is not None else [
            spreadsheet_row_number(index) for index in range(len(rows))
        ]

        sequence_number: int | None = None
        if kind.sequence_field is not None:
            token.raise_if_cancelled()
            sequence_number = self.next_sequence_start()

        for row, row_number in zip(rows, numbers):
            if token.cancelled:
                raise InsertionInterrupted(result)

            label = cell(row, kind.label_column)
            try:
                fields = self.build_fields(row, taxonomy, sequence_number=sequence_number)
                record_id = self._store.create(kind.leaf_collection, fields)
            except Exception as exc:
                logger.warning("Row %d (%r) was not imported: %s", row_number, label, exc)
                result.failed.append(FailedRow(row_number=row_number, label=label, error=str(exc)))
            else:
                result.added_count += 1
                result.created_ids.append(record_id)
            finally:
                if sequence_number is not None:
                    sequence_number += 1

        return result
