"""Store contract consumed by the bulk import procedure."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


FieldValue = str | int | float | bool | None


@dataclass(slots=True)
class StoredRecord:
    """One document read back from a store."""

    id: str
    collection: str
    fields: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ImportStore(Protocol):
    """Collection-scoped CRUD surface that every backing store must offer."""

    def find_one(
        self,
        collection: str,
        filters: Mapping[str, FieldValue],
        *,
        ignore_case: Sequence[str] = (),
    ) -> StoredRecord | None:
        """Return the oldest record matching every equality filter, if any."""

    def find_max(
        self,
        collection: str,
        field_name: str,
        filters: Mapping[str, FieldValue] | None = None,
    ) -> int | float | None:
        """Return the largest numeric value of ``field_name`` in the collection."""

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        """Persist a new record and return its assigned identifier."""
