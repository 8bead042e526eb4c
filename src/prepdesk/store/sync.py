"""Copy whole collections between two record stores (backup and restore)."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from prepdesk.store.sqlite_store import SQLiteRecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncStats:
    """Per-run counters for a collection copy."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0
    collections: dict[str, int] = field(default_factory=dict)
    conflicts: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "collections": dict(self.collections),
            "conflicts": [dict(conflict) for conflict in self.conflicts],
        }


def sync_collections(
    source: SQLiteRecordStore,
    destination: SQLiteRecordStore,
    collections: Sequence[str] | None = None,
) -> SyncStats:
    """Upsert every source record into the destination by exact id match.

    Records missing from the source are left alone in the destination and
    differing records are overwritten with the source copy. A source record
    whose id already belongs to another destination collection is skipped and
    listed in ``conflicts``.
    """

    names = list(collections) if collections else source.list_collections()
    stats = SyncStats()

    for name in names:
        copied = 0
        for record in source.iter_records(name):
            existing = destination.locate(record.id)
            if existing is not None and existing.collection != name:
                logger.warning(
                    "Skipped %s/%s: id already used by %s in the destination",
                    name,
                    record.id,
                    existing.collection,
                )
                stats.conflicts.append(
                    {"id": record.id, "collection": name, "existing_collection": existing.collection}
                )
                continue

            if existing is not None and existing.fields == record.fields:
                stats.unchanged += 1
                continue

            destination.upsert(name, record.id, record.fields)
            copied += 1
            if existing is None:
                stats.created += 1
            else:
                stats.updated += 1

        stats.collections[name] = copied
        logger.info("Synced collection %s: %d record(s) written", name, copied)

    return stats
