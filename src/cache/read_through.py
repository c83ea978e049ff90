# src/cache/read_through.py - v1
"""TTL-based read-through cache over a record store.

Lookup protocol for ``get_or_fetch``:

1. Read the newest row for (subject_id, source).
2. Row present and not older than the TTL: return its payload, no fetch.
3. Otherwise await ``fetch_fn``. A failure propagates as-is and the store
   is left untouched.
4. Write the fresh value: update the existing row by id, or insert one.
5. Return the fresh value with ``from_cache=False``.

At most one store write happens per call. Concurrent misses for the same
pair each run ``fetch_fn`` and the last write wins; there is no
request coalescing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from smartcache.cache.models import CacheEntry, CacheResult, ensure_utc
from smartcache.config.settings import Settings
from smartcache.logging.context import cache_context
from smartcache.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = timedelta(hours=24)

_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadThroughCache:
    """Read-through cache keyed by (subject_id, source) with a global TTL."""

    def __init__(
        self,
        store: BaseRecordStore,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self._store = store
        self._ttl = ttl
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def store(self) -> BaseRecordStore:
        return self._store

    def now(self) -> datetime:
        """Current time from the configured clock, as aware UTC."""
        return ensure_utc(self._clock())

    async def get_or_fetch(
        self,
        subject_id: str,
        source: str,
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> CacheResult[T]:
        """Return the cached value for the pair, fetching and storing it when missing or stale."""
        _check_key(subject_id, source)

        with cache_context("get_or_fetch", subject_id, source):
            cached = await self._store.find_latest(subject_id, source)

            if cached is not None and not cached.is_expired(self.now(), self._ttl):
                logger.debug("Cache hit (updated_at=%s)", cached.updated_at.isoformat())
                return CacheResult(
                    data=cached.payload,
                    from_cache=True,
                    cached_at=cached.updated_at,
                )

            if cached is None:
                logger.debug("Cache miss, fetching")
            else:
                logger.debug(
                    "Cache stale (updated_at=%s), fetching", cached.updated_at.isoformat()
                )

            fresh = await fetch_fn()

            now = self._write_time(cached)
            if cached is not None:
                await self._store.update(cached.id, fresh, now)
            else:
                await self._store.insert(subject_id, source, fresh, now)
            logger.debug("Stored fresh value (updated_at=%s)", now.isoformat())

            return CacheResult(data=fresh, from_cache=False, cached_at=now)

    async def invalidate(self, subject_id: str, source: str | None = None) -> None:
        """Drop the entry for one source, or every source of the subject when omitted."""
        if not subject_id:
            raise ValueError("subject_id must be a non-empty string")
        if source is not None and not source:
            raise ValueError("source must be a non-empty string when given")

        with cache_context("invalidate", subject_id, source):
            removed = await self._store.delete(subject_id=subject_id, source=source)
            logger.debug("Invalidated %d entr(y/ies)", removed)

    async def clean_expired(self) -> None:
        """Delete every entry older than ``now - ttl``, across all subjects."""
        with cache_context("clean_expired"):
            cutoff = self.now() - self._ttl
            removed = await self._store.delete(updated_before=cutoff)
            logger.info(
                "Removed %d expired cache entr(y/ies) older than %s",
                removed,
                cutoff.isoformat(),
            )

    async def peek(self, subject_id: str, source: str) -> CacheEntry | None:
        """Return the authoritative row for the pair without fetching, fresh or not."""
        _check_key(subject_id, source)
        return await self._store.find_latest(subject_id, source)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.is_expired(self.now(), self._ttl)

    def _write_time(self, previous: CacheEntry | None) -> datetime:
        # updated_at never moves backwards, even if the clock does.
        now = self.now()
        if previous is not None and now <= previous.updated_at:
            return previous.updated_at + _TICK
        return now


def _check_key(subject_id: str, source: str) -> None:
    if not subject_id:
        raise ValueError("subject_id must be a non-empty string")
    if not source:
        raise ValueError("source must be a non-empty string")


def create_cache(settings: Settings | None = None) -> ReadThroughCache:
    """Build a cache wired to the configured record store and TTL."""
    from smartcache.storage.store_factory import create_record_store

    store = create_record_store(settings)
    ttl = DEFAULT_TTL if settings is None else settings.cache_ttl
    return ReadThroughCache(store=store, ttl=ttl)
