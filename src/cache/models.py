# src/cache/models.py - v2
"""Cache domain models: CacheEntry, CacheResult."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, field_validator

T = TypeVar("T")


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CacheEntry(BaseModel):
    """One persisted row of the cache, keyed by (subject_id, source).

    ``id`` is assigned by the record store and only used to target updates.
    """

    id: str
    subject_id: str
    source: str
    payload: Any = None
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _normalize_updated_at(cls, v: datetime) -> datetime:  # noqa: N805
        return ensure_utc(v)

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the last write."""
        return ensure_utc(now) - self.updated_at

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """True when strictly older than ``ttl``; an entry exactly ``ttl`` old is fresh."""
        return self.age(now) > ttl


class CacheResult(BaseModel, Generic[T]):
    """Value returned by ``ReadThroughCache.get_or_fetch``."""

    data: T
    from_cache: bool
    cached_at: datetime
