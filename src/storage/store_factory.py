# src/storage/store_factory.py - v2
"""Factory: instantiate the record store from configuration."""

from __future__ import annotations

from smartcache.config.settings import Settings
from smartcache.storage.base_record_store import BaseRecordStore
from smartcache.storage.memory_store import InMemoryRecordStore


def create_record_store(settings: Settings | None = None) -> BaseRecordStore:
    """Instantiate the configured record store backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseRecordStore implementation.

    Raises:
        ValueError: If the backend is unknown or its connection settings are missing.
    """
    if settings is None or settings.store_backend == "memory":
        return InMemoryRecordStore()

    backend = settings.store_backend

    if backend == "sqlite":
        from smartcache.storage.sqlite_store import SqliteRecordStore
        return SqliteRecordStore(db_path=settings.sqlite_path)

    if backend == "redis":
        from smartcache.storage.redis_store import RedisRecordStore
        if not settings.redis_url:
            raise ValueError("REDIS_URL must be set when STORE_BACKEND=redis")
        return RedisRecordStore(
            redis_url=settings.redis_url,
            key_prefix=settings.redis_key_prefix,
        )

    if backend == "supabase":
        from smartcache.storage.supabase_store import SupabaseRecordStore
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set "
                "when STORE_BACKEND=supabase"
            )
        return SupabaseRecordStore(
            url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            table=settings.supabase_table,
            timeout_s=settings.supabase_timeout_s,
        )

    raise ValueError(f"Unsupported store backend: {backend!r}")
