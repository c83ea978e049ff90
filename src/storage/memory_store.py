# src/storage/memory_store.py - v1
"""In-process record store (STORE_BACKEND=memory).

Rows live in a dict keyed by id. No uniqueness is enforced on
(subject_id, source), so duplicate rows behave as in a non-unique table.
Used for local development and as the test double for the cache.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime
from typing import Any

from smartcache.cache.models import CacheEntry, ensure_utc
from smartcache.storage.base_record_store import BaseRecordStore


class InMemoryRecordStore(BaseRecordStore):
    """Dict-backed record store."""

    backend_name = "memory"

    def __init__(self, entries: list[CacheEntry] | None = None) -> None:
        self._rows: dict[str, CacheEntry] = {}
        for entry in entries or []:
            self._rows[entry.id] = entry.model_copy(deep=True)

    async def find_latest(self, subject_id: str, source: str) -> CacheEntry | None:
        """Return the freshest row for the pair."""
        matches = [
            row for row in self._rows.values()
            if row.subject_id == subject_id and row.source == source
        ]
        if not matches:
            return None
        return max(matches, key=lambda row: row.updated_at).model_copy(deep=True)

    async def insert(
        self,
        subject_id: str,
        source: str,
        payload: Any,
        updated_at: datetime,
    ) -> CacheEntry:
        """Insert a new row with a generated id."""
        entry = CacheEntry(
            id=uuid.uuid4().hex,
            subject_id=subject_id,
            source=source,
            payload=payload,
            updated_at=updated_at,
        )
        self._rows[entry.id] = entry.model_copy(deep=True)
        return entry

    async def update(self, entry_id: str, payload: Any, updated_at: datetime) -> None:
        """Update the row in place; a missing id matches nothing."""
        row = self._rows.get(entry_id)
        if row is None:
            return
        self._rows[entry_id] = row.model_copy(
            update={"payload": copy.deepcopy(payload), "updated_at": ensure_utc(updated_at)}
        )

    async def delete(
        self,
        *,
        subject_id: str | None = None,
        source: str | None = None,
        updated_before: datetime | None = None,
    ) -> int:
        """Delete every row matching all filters."""
        self.check_delete_filter(subject_id, source, updated_before)
        cutoff = ensure_utc(updated_before) if updated_before is not None else None

        doomed = [
            row.id for row in self._rows.values()
            if (subject_id is None or row.subject_id == subject_id)
            and (source is None or row.source == source)
            and (cutoff is None or row.updated_at < cutoff)
        ]
        for entry_id in doomed:
            del self._rows[entry_id]
        return len(doomed)

    def all_entries(self) -> list[CacheEntry]:
        """Snapshot of every row, for inspection."""
        return [row.model_copy(deep=True) for row in self._rows.values()]
