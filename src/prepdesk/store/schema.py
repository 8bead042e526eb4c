"""SQLite schema and pragmas for the document-style record store."""

from __future__ import annotations

import sqlite3


BUSY_TIMEOUT_MS = 5000

# Cross-record ids live inside the JSON fields; there are no foreign keys.
RUNTIME_PRAGMAS = (
    "journal_mode=WAL",
    f"busy_timeout={BUSY_TIMEOUT_MS}",
    "synchronous=NORMAL",
)


def apply_runtime_pragmas(connection: sqlite3.Connection) -> None:
    """Tune a connection for one importer writing while exports or syncs read."""

    for pragma in RUNTIME_PRAGMAS:
        connection.execute(f"PRAGMA {pragma};")


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create the records table and its lookup index if missing."""

    connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS records (
            id TEXT PRIMARY KEY,
            collection TEXT NOT NULL,
            fields TEXT NOT NULL CHECK(json_valid(fields)),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_records_collection ON records(collection);
        """
    )
