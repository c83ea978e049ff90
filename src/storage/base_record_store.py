# src/storage/base_record_store.py - v1
"""Abstract record store interface consumed by the read-through cache.

Any durable key/value or relational store can back the cache as long as it
supports these four operations. Backends raise ``StoreReadError`` from
``find_latest`` and ``StoreWriteError`` from the mutating operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from smartcache.cache.models import CacheEntry


class BaseRecordStore(ABC):
    """Unified interface for cache record storage backends."""

    backend_name: str = "base"

    @abstractmethod
    async def find_latest(self, subject_id: str, source: str) -> CacheEntry | None:
        """Return the matching row with the greatest updated_at, or None."""

    @abstractmethod
    async def insert(
        self,
        subject_id: str,
        source: str,
        payload: Any,
        updated_at: datetime,
    ) -> CacheEntry:
        """Insert a new row; the store assigns its id."""

    @abstractmethod
    async def update(self, entry_id: str, payload: Any, updated_at: datetime) -> None:
        """Replace payload and updated_at of the row with this id."""

    @abstractmethod
    async def delete(
        self,
        *,
        subject_id: str | None = None,
        source: str | None = None,
        updated_before: datetime | None = None,
    ) -> int:
        """Delete rows matching every given filter; return how many were removed.

        ``updated_before`` is exclusive. Implementations call
        ``check_delete_filter`` first so an empty filter never wipes the store.
        """

    async def close(self) -> None:
        """Release backend resources."""

    async def __aenter__(self) -> BaseRecordStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @staticmethod
    def check_delete_filter(
        subject_id: str | None,
        source: str | None,
        updated_before: datetime | None,
    ) -> None:
        """Reject a delete with no filter at all."""
        if subject_id is None and source is None and updated_before is None:
            raise ValueError(
                "delete() requires at least one of subject_id, source, updated_before"
            )
