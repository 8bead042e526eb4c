"""Lookup-or-create resolution of the subject/chapter hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Sequence

from prepdesk.imports.cancellation import CancellationToken
from prepdesk.imports.kinds import ImportKind
from prepdesk.imports.models import Clock, ImportRow, cell, utc_now
from prepdesk.store.base import FieldValue, ImportStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaxonomyResolutionError(Exception):
    """Fatal store failure while resolving subjects or chapters."""

    stage: str
    name: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.stage}={self.name!r})"


@dataclass(slots=True)
class TaxonomyMap:
    """Resolved node ids for one import run, keyed by trimmed names."""

    casefold_names: bool = False
    subject_ids: dict[str, str] = field(default_factory=dict)
    chapter_ids: dict[tuple[str, str], str] = field(default_factory=dict)
    created_subject_ids: list[str] = field(default_factory=list)
    created_chapter_ids: list[str] = field(default_factory=list)

    def key(self, name: str) -> str:
        trimmed = name.strip()
        return trimmed.casefold() if self.casefold_names else trimmed

    def subject_id(self, subject_name: str) -> str:
        return self.subject_ids[self.key(subject_name)]

    def chapter_id(self, subject_name: str, chapter_name: str) -> str:
        return self.chapter_ids[(self.key(subject_name), self.key(chapter_name))]


class TaxonomyResolver:
    """Resolve every distinct subject, then every distinct chapter, creating only missing nodes."""

    def __init__(
        self,
        store: ImportStore,
        kind: ImportKind,
        *,
        casefold_names: bool = False,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._kind = kind
        self._casefold_names = casefold_names
        self._clock = clock or utc_now

    def resolve(
        self,
        rows: Sequence[ImportRow],
        *,
        cancellation: CancellationToken | None = None,
        taxonomy: TaxonomyMap | None = None,
    ) -> TaxonomyMap:
        """Resolve all nodes referenced by ``rows``.

        When ``taxonomy`` is given it is filled in place, so a caller still
        sees the nodes created before a cancellation or a fatal error.
        """

        token = cancellation or CancellationToken()
        kind = self._kind
        if taxonomy is None:
            taxonomy = TaxonomyMap(casefold_names=self._casefold_names)

        for row in rows:
            subject_name = cell(row, kind.subject_column)
            subject_key = taxonomy.key(subject_name)
            if subject_key in taxonomy.subject_ids:
                continue

            now = self._clock()
            taxonomy.subject_ids[subject_key] = self._find_or_create(
                token,
                stage="subject",
                name=subject_name,
                collection=kind.subject_collection,
                filters={kind.subject_name_field: subject_name},
                name_field=kind.subject_name_field,
                fields={
                    kind.subject_name_field: subject_name,
                    **kind.subject_defaults(now),
                    "created_at": now.isoformat(),
                },
                created=taxonomy.created_subject_ids,
            )

        for row in rows:
            subject_name = cell(row, kind.subject_column)
            chapter_name = cell(row, kind.chapter_column)
            chapter_key = (taxonomy.key(subject_name), taxonomy.key(chapter_name))
            if chapter_key in taxonomy.chapter_ids:
                continue

            subject_id = taxonomy.subject_id(subject_name)
            now = self._clock()
            taxonomy.chapter_ids[chapter_key] = self._find_or_create(
                token,
                stage="chapter",
                name=chapter_name,
                collection=kind.chapter_collection,
                filters={
                    kind.chapter_name_field: chapter_name,
                    kind.chapter_parent_field: subject_id,
                },
                name_field=kind.chapter_name_field,
                fields={
                    kind.chapter_name_field: chapter_name,
                    kind.chapter_parent_field: subject_id,
                    **kind.chapter_defaults(now),
                    "created_at": now.isoformat(),
                },
                created=taxonomy.created_chapter_ids,
            )

        return taxonomy

    def _find_or_create(
        self,
        token: CancellationToken,
        *,
        stage: str,
        name: str,
        collection: str,
        filters: dict[str, FieldValue],
        name_field: str,
        fields: dict[str, Any],
        created: list[str],
    ) -> str:
        ignore_case = (name_field,) if self._casefold_names else ()

        token.raise_if_cancelled()
        try:
            existing = self._store.find_one(collection, filters, ignore_case=ignore_case)
        except Exception as exc:
            logger.error("Lookup of %s %r in %s failed: %s", stage, name, collection, exc)
            raise TaxonomyResolutionError(stage, name, f"Lookup failed: {exc}") from exc

        if existing is not None:
            return existing.id

        token.raise_if_cancelled()
        try:
            new_id = self._store.create(collection, fields)
        except Exception as exc:
            logger.error("Creating %s %r in %s failed: %s", stage, name, collection, exc)
            raise TaxonomyResolutionError(stage, name, f"Create failed: {exc}") from exc

        logger.info("Created %s %r in %s (id=%s)", stage, name, collection, new_id)
        created.append(new_id)
        return new_id
