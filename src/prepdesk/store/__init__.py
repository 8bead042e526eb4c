"""Record store contract and the SQLite implementation."""

from .base import ImportStore, StoredRecord
from .sqlite_store import SQLiteRecordStore
from .sync import SyncStats, sync_collections

__all__ = ["ImportStore", "SQLiteRecordStore", "StoredRecord", "SyncStats", "sync_collections"]
