"""Entry point running validation, taxonomy resolution and leaf insertion in order."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from prepdesk.imports.cancellation import CancellationToken, ImportCancelled
from prepdesk.imports.inserter import InsertionInterrupted, LeafInserter, SequenceAllocationError
from prepdesk.imports.kinds import ImportKind
from prepdesk.imports.models import Clock, FailedRow, ImportRow, RowRejection, utc_now
from prepdesk.imports.taxonomy import TaxonomyMap, TaxonomyResolutionError, TaxonomyResolver
from prepdesk.imports.validator import validate_rows
from prepdesk.store.base import ImportStore

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_REJECTED = "rejected"
STATUS_CANCELLED = "cancelled"
STATUS_ABORTED = "aborted"


@dataclass(slots=True)
class ImportReport:
    """Outcome of one import run, ready to show to the person who uploaded the file."""

    kind: str
    status: str
    total_rows: int
    rejections: list[RowRejection] = field(default_factory=list)
    subjects_created: int = 0
    chapters_created: int = 0
    added_count: int = 0
    failed: list[FailedRow] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_COMPLETED and not self.failed

    def summary(self) -> str:
        if self.status == STATUS_REJECTED:
            return "Validation errors found:\n\n" + "\n".join(r.reason for r in self.rejections)
        if self.status == STATUS_ABORTED:
            return (
                f"Import aborted: {self.error}. Created {self.subjects_created} subject(s), "
                f"{self.chapters_created} chapter(s) and {self.added_count} record(s) before the failure."
            )

        text = f"Successfully added {self.added_count} {self.kind} record(s)."
        if self.failed:
            text += f" Failed: {len(self.failed)}"
        if self.status == STATUS_CANCELLED:
            text += " Import was cancelled before all rows were processed."
        return text

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "status": self.status,
            "total_rows": self.total_rows,
            "rejections": [
                {"row_number": r.row_number, "reason": r.reason} for r in self.rejections
            ],
            "subjects_created": self.subjects_created,
            "chapters_created": self.chapters_created,
            "added_count": self.added_count,
            "failed": [
                {"row_number": f.row_number, "label": f.label, "error": f.error}
                for f in self.failed
            ],
            "error": self.error,
        }


class ImportAborted(Exception):
    """Fatal store failure; ``report`` holds what was written before it."""

    def __init__(self, report: ImportReport) -> None:
        super().__init__(report.error)
        self.report = report


class BulkImportNormalizer:
    """Turn flat spreadsheet rows into reused-or-created taxonomy nodes plus leaf records."""

    def __init__(
        self,
        store: ImportStore,
        kind: ImportKind,
        *,
        casefold_names: bool = False,
        clock: Clock | None = None,
    ) -> None:
        self._kind = kind
        self._casefold_names = casefold_names
        clock = clock or utc_now
        self._resolver = TaxonomyResolver(store, kind, casefold_names=casefold_names, clock=clock)
        self._inserter = LeafInserter(store, kind, clock=clock)

    @property
    def kind(self) -> ImportKind:
        return self._kind

    def run(
        self,
        rows: Sequence[ImportRow],
        *,
        cancellation: CancellationToken | None = None,
    ) -> ImportReport:
        """Import ``rows``; raises ImportAborted on fatal store failures."""

        token = cancellation or CancellationToken()
        report = ImportReport(kind=self._kind.name, status=STATUS_COMPLETED, total_rows=len(rows))

        validation = validate_rows(rows, self._kind)
        if not validation.ok:
            report.status = STATUS_REJECTED
            report.rejections = list(validation.rejected)
            logger.warning(
                "Rejected %s import: %d of %d row(s) failed validation",
                self._kind.name,
                len(validation.rejected),
                len(rows),
            )
            return report

        taxonomy = TaxonomyMap(casefold_names=self._casefold_names)
        try:
            self._resolver.resolve(validation.valid_rows, cancellation=token, taxonomy=taxonomy)
            inserted = self._inserter.insert(validation.valid_rows, taxonomy, cancellation=token)
        except InsertionInterrupted as interrupted:
            report.status = STATUS_CANCELLED
            inserted = interrupted.partial
        except ImportCancelled:
            report.status = STATUS_CANCELLED
            inserted = None
        except (TaxonomyResolutionError, SequenceAllocationError) as exc:
            report.status = STATUS_ABORTED
            report.error = str(exc)
            logger.error("%s import aborted: %s", self._kind.name, exc)
            raise ImportAborted(report) from exc
        finally:
            report.subjects_created = len(taxonomy.created_subject_ids)
            report.chapters_created = len(taxonomy.created_chapter_ids)

        if inserted is not None:
            report.added_count = inserted.added_count
            report.failed = list(inserted.failed)

        logger.info(
            "%s import %s: %d subject(s) and %d chapter(s) created, %d added, %d failed",
            self._kind.name,
            report.status,
            report.subjects_created,
            report.chapters_created,
            report.added_count,
            len(report.failed),
        )
        return report
