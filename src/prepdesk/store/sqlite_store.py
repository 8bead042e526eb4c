"""Document-style record store backed by a local SQLite file."""

from __future__ import annotations

import json
from pathlib import Path
import re
import sqlite3
from typing import Any, Iterator, Mapping, Sequence
from uuid import uuid4

from prepdesk.store.base import FieldValue, StoredRecord
from prepdesk.store.schema import apply_runtime_pragmas, ensure_schema

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _casefold(value: object) -> object:
    if isinstance(value, str):
        return value.casefold()
    return value


def _json_path(field_name: str) -> str:
    if not _FIELD_NAME_RE.match(field_name):
        raise ValueError(f"Unsupported field name: {field_name!r}")
    return f"$.{field_name}"


def _where_clause(
    filters: Mapping[str, FieldValue] | None,
    ignore_case: Sequence[str] = (),
) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    folded = set(ignore_case)
    for name, value in (filters or {}).items():
        path = _json_path(name)
        if name in folded:
            clauses.append("py_casefold(json_extract(fields, ?)) IS py_casefold(?)")
        else:
            clauses.append("json_extract(fields, ?) IS ?")
        params.extend([path, value])
    if not clauses:
        return "", params
    return " AND " + " AND ".join(clauses), params


class SQLiteRecordStore:
    """Thin transactional layer storing JSON documents grouped by collection."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._connection = sqlite3.connect(str(self._db_path))
        self._connection.row_factory = sqlite3.Row
        self._connection.create_function("py_casefold", 1, _casefold, deterministic=True)
        apply_runtime_pragmas(self._connection)
        ensure_schema(self._connection)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "SQLiteRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def find_one(
        self,
        collection: str,
        filters: Mapping[str, FieldValue],
        *,
        ignore_case: Sequence[str] = (),
    ) -> StoredRecord | None:
        where, params = _where_clause(filters, ignore_case)
        row = self._connection.execute(
            f"""
            SELECT id, collection, fields
            FROM records
            WHERE collection = ?{where}
            ORDER BY rowid ASC
            LIMIT 1
            """,
            (collection, *params),
        ).fetchone()
        if row is None:
            return None
        return self._to_record(row)

    def find_max(
        self,
        collection: str,
        field_name: str,
        filters: Mapping[str, FieldValue] | None = None,
    ) -> int | float | None:
        path = _json_path(field_name)
        where, params = _where_clause(filters)
        row = self._connection.execute(
            f"""
            SELECT MAX(json_extract(fields, ?)) AS value
            FROM records
            WHERE collection = ?
              AND json_type(fields, ?) IN ('integer', 'real'){where}
            """,
            (path, collection, path, *params),
        ).fetchone()
        return row["value"]

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        if not collection:
            raise ValueError("collection cannot be empty")

        payload = json.dumps(dict(fields), ensure_ascii=False)
        record_id = uuid4().hex
        with self._connection:
            self._connection.execute(
                "INSERT INTO records(id, collection, fields) VALUES(?, ?, ?)",
                (record_id, collection, payload),
            )
        return record_id

    def get(self, collection: str, record_id: str) -> StoredRecord | None:
        row = self._connection.execute(
            "SELECT id, collection, fields FROM records WHERE id = ? AND collection = ?",
            (record_id, collection),
        ).fetchone()
        if row is None:
            return None
        return self._to_record(row)

    def locate(self, record_id: str) -> StoredRecord | None:
        """Return the record with ``record_id`` in whichever collection holds it."""

        row = self._connection.execute(
            "SELECT id, collection, fields FROM records WHERE id = ?",
            (record_id,),
        ).fetchone()
        if row is None:
            return None
        return self._to_record(row)

    def upsert(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        """Insert or overwrite one record under a caller-supplied identifier.

        An id already used by another collection is refused with ValueError.
        """

        if not record_id:
            raise ValueError("record_id cannot be empty")

        payload = json.dumps(dict(fields), ensure_ascii=False)
        with self._connection:
            owner = self._connection.execute(
                "SELECT collection FROM records WHERE id = ?",
                (record_id,),
            ).fetchone()
            if owner is not None and owner["collection"] != collection:
                raise ValueError(
                    f"Record {record_id!r} already belongs to collection {owner['collection']!r}"
                )
            self._connection.execute(
                """
                INSERT INTO records(id, collection, fields)
                VALUES(?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    fields=excluded.fields,
                    updated_at=CURRENT_TIMESTAMP
                """,
                (record_id, collection, payload),
            )

    def iter_records(
        self,
        collection: str,
        filters: Mapping[str, FieldValue] | None = None,
    ) -> Iterator[StoredRecord]:
        where, params = _where_clause(filters)
        rows = self._connection.execute(
            f"""
            SELECT id, collection, fields
            FROM records
            WHERE collection = ?{where}
            ORDER BY rowid ASC
            """,
            (collection, *params),
        ).fetchall()
        for row in rows:
            yield self._to_record(row)

    def count(self, collection: str, filters: Mapping[str, FieldValue] | None = None) -> int:
        where, params = _where_clause(filters)
        row = self._connection.execute(
            f"SELECT COUNT(*) AS c FROM records WHERE collection = ?{where}",
            (collection, *params),
        ).fetchone()
        return int(row["c"])

    def list_collections(self) -> list[str]:
        rows = self._connection.execute(
            "SELECT DISTINCT collection FROM records ORDER BY collection ASC"
        ).fetchall()
        return [row["collection"] for row in rows]

    @staticmethod
    def _to_record(row: sqlite3.Row) -> StoredRecord:
        return StoredRecord(
            id=row["id"],
            collection=row["collection"],
            fields=json.loads(row["fields"]),
        )
