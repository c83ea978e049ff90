# src/storage/redis_store.py - v3
"""Redis-based record store (STORE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one Redis.
Each write runs as one MULTI/EXEC transaction, so a failed write leaves
the previous state untouched.

Key layout (all under the configured prefix):
    entry:<id>                         JSON-serialized CacheEntry
    pair:<len(subject)>:<subject>:<source>  sorted set of ids scored by updated_at
    subject:<subject>                  set of sources seen for the subject
    __updated__                        sorted set of every id scored by updated_at
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from smartcache.cache.errors import StoreReadError, StoreWriteError
from smartcache.cache.models import CacheEntry, ensure_utc
from smartcache.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


def _score(value: datetime) -> float:
    return ensure_utc(value).timestamp()


class RedisRecordStore(BaseRecordStore):
    """Redis-backed record store."""

    backend_name = "redis"

    def __init__(self, redis_url: str, key_prefix: str = "smartcache:") -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix
        self._errors: tuple[type[Exception], ...] = (redis.RedisError,)

    # --- keys ---

    def _entry_key(self, entry_id: str) -> str:
        return f"{self._prefix}entry:{entry_id}"

    def _pair_key(self, subject_id: str, source: str) -> str:
        # Length prefix keeps ("a:b", "c") and ("a", "b:c") apart.
        return f"{self._prefix}pair:{len(subject_id)}:{subject_id}:{source}"

    def _subject_key(self, subject_id: str) -> str:
        return f"{self._prefix}subject:{subject_id}"

    @property
    def _updated_key(self) -> str:
        return f"{self._prefix}__updated__"

    # --- operations ---

    async def find_latest(self, subject_id: str, source: str) -> CacheEntry | None:
        """Return the freshest row for the pair."""
        try:
            ids = self._client.zrevrange(self._pair_key(subject_id, source), 0, -1)
            for entry_id in ids:
                entry = self._load(entry_id)
                if entry is not None:
                    return entry
        except self._errors as e:
            raise StoreReadError(self.backend_name, "find_latest", str(e)) from e
        except ValidationError as e:
            raise StoreReadError(self.backend_name, "find_latest", "corrupt entry") from e
        return None

    async def insert(
        self,
        subject_id: str,
        source: str,
        payload: Any,
        updated_at: datetime,
    ) -> CacheEntry:
        """Insert a new row and index it."""
        entry = CacheEntry(
            id=uuid.uuid4().hex,
            subject_id=subject_id,
            source=source,
            payload=payload,
            updated_at=updated_at,
        )
        try:
            self._save(entry, track_source=True)
        except self._errors as e:
            raise StoreWriteError(self.backend_name, "insert", str(e)) from e
        except ValueError as e:
            raise StoreWriteError(self.backend_name, "insert", f"unserializable payload: {e}") from e
        return entry

    async def update(self, entry_id: str, payload: Any, updated_at: datetime) -> None:
        """Rewrite the row and move it in the time indexes."""
        try:
            entry = self._load(entry_id)
            if entry is None:
                return
            self._save(
                entry.model_copy(
                    update={"payload": payload, "updated_at": ensure_utc(updated_at)}
                )
            )
        except self._errors as e:
            raise StoreWriteError(self.backend_name, "update", str(e)) from e
        except ValueError as e:
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
        max_score = "+inf" if updated_before is None else f"({_score(updated_before)}"

        removed = 0
        try:
            if subject_id is not None:
                sources = (
                    [source] if source is not None
                    else sorted(self._client.smembers(self._subject_key(subject_id)))
                )
                for src in sources:
                    pair_key = self._pair_key(subject_id, src)
                    for entry_id in self._client.zrangebyscore(pair_key, "-inf", max_score):
                        self._remove(entry_id, subject_id, src)
                        removed += 1
            else:
                for entry_id in self._client.zrangebyscore(
                    self._updated_key, "-inf", max_score
                ):
                    entry = self._load(entry_id)
                    if entry is None:
                        self._client.zrem(self._updated_key, entry_id)
                        continue
                    if source is not None and entry.source != source:
                        continue
                    self._remove(entry_id, entry.subject_id, entry.source)
                    removed += 1
        except self._errors as e:
            raise StoreWriteError(self.backend_name, "delete", str(e)) from e
        except ValidationError as e:
            raise StoreWriteError(self.backend_name, "delete", "corrupt entry") from e

        logger.debug("Deleted %d entr(y/ies) from redis", removed)
        return removed

    async def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()

    # --- helpers ---

    def _load(self, entry_id: str) -> CacheEntry | None:
        data = self._client.get(self._entry_key(entry_id))
        if data is None:
            return None
        return CacheEntry.model_validate_json(data)

    def _save(self, entry: CacheEntry, *, track_source: bool = False) -> None:
        # Serialize first so a bad payload writes nothing.
        data = entry.model_dump_json()
        score = _score(entry.updated_at)
        pipe = self._client.pipeline(transaction=True)
        pipe.set(self._entry_key(entry.id), data)
        pipe.zadd(self._pair_key(entry.subject_id, entry.source), {entry.id: score})
        pipe.zadd(self._updated_key, {entry.id: score})
        if track_source:
            pipe.sadd(self._subject_key(entry.subject_id), entry.source)
        pipe.execute()

    def _remove(self, entry_id: str, subject_id: str, source: str) -> None:
        pair_key = self._pair_key(subject_id, source)
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(self._entry_key(entry_id))
        pipe.zrem(pair_key, entry_id)
        pipe.zrem(self._updated_key, entry_id)
        pipe.zcard(pair_key)
        *_, remaining = pipe.execute()
        if remaining == 0:
            self._client.srem(self._subject_key(subject_id), source)
