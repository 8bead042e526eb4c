"""Bulk spreadsheet import interfaces."""

from .cancellation import CancellationToken, ImportCancelled
from .kinds import FLASHCARD_KIND, IMPORT_KINDS, MCQ_KIND, SYLLABUS_KIND, ImportKind, get_kind
from .inserter import SequenceAllocationError
from .normalizer import BulkImportNormalizer, ImportAborted, ImportReport
from .taxonomy import TaxonomyResolutionError

__all__ = [
    "BulkImportNormalizer",
    "CancellationToken",
    "FLASHCARD_KIND",
    "IMPORT_KINDS",
    "ImportAborted",
    "ImportCancelled",
    "ImportKind",
    "ImportReport",
    "MCQ_KIND",
    "SYLLABUS_KIND",
    "SequenceAllocationError",
    "TaxonomyResolutionError",
    "get_kind",
]
