# src/storage/sqlite_store.py - v2
"""SQLite-based record store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. The table mirrors the hosted
``product_cache`` table: (subject, source) is indexed but not unique.
Timestamps are stored as fixed-width ISO-8601 UTC strings so that text
comparison orders them chronologically.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from smartcache.cache.errors import StoreReadError, StoreWriteError
from smartcache.cache.models import CacheEntry, ensure_utc
from smartcache.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS product_cache (
    id TEXT PRIMARY KEY,
    product_id TEXT NOT NULL,
    source TEXT NOT NULL,
    external_api_response TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_product_cache_key ON product_cache(product_id, source);
CREATE INDEX IF NOT EXISTS idx_product_cache_updated_at ON product_cache(updated_at);
"""


def _ts(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="microseconds")


class SqliteRecordStore(BaseRecordStore):
    """SQLite-backed record store for single-host deployments."""

    backend_name = "sqlite"

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            target = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        self._conn = sqlite3.connect(target)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def find_latest(self, subject_id: str, source: str) -> CacheEntry | None:
        """Return the freshest row for the pair."""
        try:
            cursor = self._conn.execute(
                """SELECT id, product_id, source, external_api_response, updated_at
                   FROM product_cache
                   WHERE product_id = ? AND source = ?
                   ORDER BY updated_at DESC
                   LIMIT 1""",
                (subject_id, source),
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreReadError(self.backend_name, "find_latest", str(e)) from e
        if row is None:
            return None
        try:
            payload = json.loads(row[3])
        except json.JSONDecodeError as e:
            raise StoreReadError(
                self.backend_name, "find_latest", f"corrupt payload in row {row[0]}"
            ) from e
        return CacheEntry(
            id=row[0],
            subject_id=row[1],
            source=row[2],
            payload=payload,
            updated_at=datetime.fromisoformat(row[4]),
        )

    async def insert(
        self,
        subject_id: str,
        source: str,
        payload: Any,
        updated_at: datetime,
    ) -> CacheEntry:
        """Insert a new row with a generated id."""
        entry_id = uuid.uuid4().hex
        try:
            data = json.dumps(payload)
            self._conn.execute(
                """INSERT INTO product_cache
                   (id, product_id, source, external_api_response, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (entry_id, subject_id, source, data, _ts(updated_at)),
            )
            self._conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StoreWriteError(self.backend_name, "insert", str(e)) from e
        return CacheEntry(
            id=entry_id,
            subject_id=subject_id,
            source=source,
            payload=payload,
            updated_at=updated_at,
        )

    async def update(self, entry_id: str, payload: Any, updated_at: datetime) -> None:
        """Replace payload and updated_at by row id."""
        try:
            data = json.dumps(payload)
            self._conn.execute(
                """UPDATE product_cache
                   SET external_api_response = ?, updated_at = ?
                   WHERE id = ?""",
                (data, _ts(updated_at), entry_id),
            )
            self._conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StoreWriteError(self.backend_name, "update", str(e)) from e

    async def delete(
        self,
        *,
        subject_id: str | None = None,
        source: str | None = None,
        updated_before: datetime | None = None,
    ) -> int:
        """Delete rows matching all given filters."""
        self.check_delete_filter(subject_id, source, updated_before)
        clauses: list[str] = []
        params: list[str] = []
        if subject_id is not None:
            clauses.append("product_id = ?")
            params.append(subject_id)
        if source is not None:
            clauses.append("source = ?")
            params.append(source)
        if updated_before is not None:
            clauses.append("updated_at < ?")
            params.append(_ts(updated_before))

        try:
            cursor = self._conn.execute(
                f"DELETE FROM product_cache WHERE {' AND '.join(clauses)}",  # noqa: S608
                params,
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreWriteError(self.backend_name, "delete", str(e)) from e
        logger.debug("Deleted %d row(s) from product_cache", cursor.rowcount)
        return cursor.rowcount

    async def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
