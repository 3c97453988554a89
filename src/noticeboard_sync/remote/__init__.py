"""Remote side of sync-local: record store, duplicate matching, bulk upsert."""

from .dedup import DedupMatcher
from .store import RecordStore, StoredRecord
from .sync_local import SyncLocalHandler

__all__ = ["DedupMatcher", "RecordStore", "StoredRecord", "SyncLocalHandler"]
