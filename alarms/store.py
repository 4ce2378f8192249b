"""Durable record store for scheduled alarms.

All records live in one JSON blob under a fixed name. Every mutation is a
whole-collection read-modify-write executed as a critical section:

- in-process, a re-entrant lock serializes threads (fire jobs run in
  APScheduler executor threads next to caller requests)
- across processes, ``SqliteRecordStore`` wraps the cycle in
  ``BEGIN IMMEDIATE`` so no other connection can write in between

Reads never fail the caller: a missing, unreadable or corrupt blob is an
empty collection. Writes raise ``PersistenceError``.
"""

import json
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, TypeVar

from logger import logger
from .errors import PersistenceError
from .models import AlarmRecord

T = TypeVar("T")


class RecordStore(ABC):
    """Keyed collection of ``AlarmRecord`` backed by one serialized blob."""

    def __init__(self, key: str):
        self.key = key
        self._lock = threading.RLock()

    # Backend hooks

    @abstractmethod
    def _read_blob(self) -> Optional[str]:
        """Return the stored blob, or None if there is none."""

    @abstractmethod
    def _update_blob(self, apply: Callable[[Optional[str]], str]) -> None:
        """Atomically replace the blob with ``apply(current_blob)``."""

    # Public API

    def load(self) -> list[AlarmRecord]:
        """All stored records, in insertion order. Never raises."""
        try:
            with self._lock:
                blob = self._read_blob()
        except Exception as e:
            logger.error(f"Failed to read alarm store '{self.key}': {e}")
            return []
        return self._decode(blob)

    def get(self, record_id: int) -> Optional[AlarmRecord]:
        for record in self.load():
            if record.id == record_id:
                return record
        return None

    def upsert(self, record: AlarmRecord) -> None:
        """Replace the record with the same id, or append it."""
        def mutate(records: list[AlarmRecord]) -> None:
            for i, existing in enumerate(records):
                if existing.id == record.id:
                    records[i] = record
                    return
            records.append(record)

        self._modify(mutate)

    def remove(self, record_id: int) -> bool:
        """Remove the record with ``record_id``. Returns False if absent."""
        def mutate(records: list[AlarmRecord]) -> bool:
            for i, existing in enumerate(records):
                if existing.id == record_id:
                    del records[i]
                    return True
            return False

        return self._modify(mutate)

    def consume(self, record_id: int, trigger_at: Optional[int]) -> bool:
        """Remove a fired one-time record if it still describes that fire.

        A record re-scheduled for another instant (or turned into a daily
        reminder) after the fire was armed is left alone.
        """
        def mutate(records: list[AlarmRecord]) -> bool:
            for i, existing in enumerate(records):
                if existing.id != record_id:
                    continue
                if existing.is_daily:
                    return False
                if trigger_at is not None and existing.trigger_at not in (None, trigger_at):
                    return False
                del records[i]
                return True
            return False

        return self._modify(mutate)

    def clear(self) -> None:
        self._modify(lambda records: records.clear())

    # Internals

    def _modify(self, mutate: Callable[[list[AlarmRecord]], T]) -> T:
        outcome: dict[str, T] = {}

        def apply(blob: Optional[str]) -> str:
            records = self._decode(blob)
            outcome["result"] = mutate(records)
            return self._encode(records)

        try:
            with self._lock:
                self._update_blob(apply)
        except Exception as e:
            logger.error(f"Failed to write alarm store '{self.key}': {e}")
            raise PersistenceError(f"Failed to write alarm store: {e}") from e
        return outcome["result"]

    def _decode(self, blob: Optional[str]) -> list[AlarmRecord]:
        if not blob:
            return []
        try:
            entries = json.loads(blob)
        except (TypeError, ValueError) as e:
            logger.error(f"Alarm store '{self.key}' is corrupt, treating as empty: {e}")
            return []
        if not isinstance(entries, list):
            logger.error(f"Alarm store '{self.key}' is not a list, treating as empty")
            return []

        records = []
        for entry in entries:
            try:
                records.append(AlarmRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed alarm entry {entry!r}: {e}")
        return records

    @staticmethod
    def _encode(records: list[AlarmRecord]) -> str:
        return json.dumps([r.to_dict() for r in records])


class InMemoryRecordStore(RecordStore):
    """Record store kept in process memory (tests, ephemeral runs)."""

    def __init__(self, key: str = "active_alarms", blob: Optional[str] = None):
        super().__init__(key)
        self._blob = blob

    def _read_blob(self) -> Optional[str]:
        return self._blob

    def _update_blob(self, apply: Callable[[Optional[str]], str]) -> None:
        self._blob = apply(self._blob)

    @property
    def blob(self) -> Optional[str]:
        return self._blob


class SqliteRecordStore(RecordStore):
    """Record store persisted as one row of a local SQLite table."""

    def __init__(self, db_path: str, key: str = "active_alarms"):
        super().__init__(key)
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection with WAL mode."""
        if self._connection is not None:
            return self._connection

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # isolation_level=None: transactions are opened explicitly below
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=10.0,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS alarm_blobs (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            )
        """)

        self._connection = conn
        logger.info(f"Alarm store initialized: {self.db_path}")
        return conn

    def _read_blob(self) -> Optional[str]:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT value FROM alarm_blobs WHERE name = ?", (self.key,)
        ).fetchone()
        return row["value"] if row else None

    def _update_blob(self, apply: Callable[[Optional[str]], str]) -> None:
        conn = self._get_connection()
        # Take the write lock before reading so the whole cycle is atomic
        conn.execute("BEGIN IMMEDIATE")
        try:
            row = conn.execute(
                "SELECT value FROM alarm_blobs WHERE name = ?", (self.key,)
            ).fetchone()
            new_value = apply(row["value"] if row else None)
            conn.execute(
                "INSERT OR REPLACE INTO alarm_blobs (name, value, updated_at) VALUES (?, ?, ?)",
                (self.key, new_value, int(time.time())),
            )
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
