"""SQLite-backed record store standing in for the server's document store."""

import json
import logging
import secrets
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

__all__ = ["RecordStore", "StoredRecord", "new_record_id", "encode_match_key"]

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    """24 hex characters, the same shape as a document-store ObjectId."""
    return secrets.token_hex(12)


def encode_match_key(match_key: tuple) -> str:
    return json.dumps(list(match_key), sort_keys=True, separators=(",", ":"))


@dataclass
class StoredRecord:
    """A record persisted in the remote store."""

    id: str
    kind: str
    data: dict
    created_at: datetime

    @classmethod
    def from_row(cls, row: tuple) -> "StoredRecord":
        """Create from database row."""
        return cls(
            id=row[0],
            kind=row[1],
            data=json.loads(row[2]),
            created_at=datetime.fromisoformat(row[3]),
        )


class RecordStore:
    """Records of every entity kind, indexed by (kind, match key)."""

    def __init__(self, db_path: Path):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file (":memory:" is not supported
                because connections are per thread)
        """
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._write_lock = threading.Lock()
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, "connection"):
            self._local.connection = sqlite3.connect(str(self.db_path))
        return self._local.connection

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for database cursor."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Serialise a lookup-then-insert sequence across threads."""
        with self._write_lock:
            yield

    def _init_db(self) -> None:
        """Initialize the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._cursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    id TEXT PRIMARY KEY,
                    kind TEXT NOT NULL,
                    match_key TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_kind_match_key ON records(kind, match_key)
                """
            )

    def insert(self, kind: str, match_key: tuple, data: dict) -> StoredRecord:
        """Persist a new record and return it with its assigned id."""
        record = StoredRecord(
            id=new_record_id(),
            kind=kind,
            data=data,
            created_at=datetime.now(timezone.utc),
        )
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO records (id, kind, match_key, data, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    kind,
                    encode_match_key(match_key),
                    json.dumps(data),
                    record.created_at.isoformat(),
                ),
            )
        return record

    def find_by_match_key(self, kind: str, match_key: tuple) -> Optional[StoredRecord]:
        """Return the oldest record of ``kind`` with this match key, if any."""
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, kind, data, created_at FROM records
                WHERE kind = ? AND match_key = ?
                ORDER BY created_at ASC
                LIMIT 1
                """,
                (kind, encode_match_key(match_key)),
            )
            row = cursor.fetchone()
            return StoredRecord.from_row(tuple(row)) if row else None

    def get(self, record_id: str) -> Optional[StoredRecord]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id, kind, data, created_at FROM records WHERE id = ?",
                (record_id,),
            )
            row = cursor.fetchone()
            return StoredRecord.from_row(tuple(row)) if row else None

    def count(self, kind: Optional[str] = None) -> int:
        """Number of stored records, optionally for one kind."""
        with self._cursor() as cursor:
            if kind is None:
                cursor.execute("SELECT COUNT(*) FROM records")
            else:
                cursor.execute("SELECT COUNT(*) FROM records WHERE kind = ?", (kind,))
            return cursor.fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if hasattr(self._local, "connection"):
            self._local.connection.close()
            del self._local.connection
