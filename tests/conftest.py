# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Provides a controllable clock, record stores and counting fetch functions.
No external services: Redis and Supabase are faked per test module.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from smartcache.cache.read_through import ReadThroughCache
from smartcache.storage.memory_store import InMemoryRecordStore
from smartcache.storage.sqlite_store import SqliteRecordStore

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class CountingFetch:
    """Async zero-arg fetch function recording how often it ran."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = {"price": 19.99, "currency": "EUR"} if result is None else result
        self.error = error
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


# === FIXTURES: time ===


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# === FIXTURES: fetch functions ===


@pytest.fixture
def fetch() -> CountingFetch:
    """Fetch returning a small price payload."""
    return CountingFetch()


@pytest.fixture
def make_fetch() -> Callable[..., CountingFetch]:
    """Factory for fetch functions with a custom result or error."""
    return CountingFetch


# === FIXTURES: stores ===


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sqlite_store(tmp_path: Path):
    store = SqliteRecordStore(db_path=tmp_path / "cache.db")
    yield store
    store._conn.close()


# === FIXTURES: cache ===


@pytest.fixture
def cache(memory_store: InMemoryRecordStore, clock: FakeClock) -> ReadThroughCache:
    """24h-TTL cache over the in-memory store, driven by the fake clock."""
    return ReadThroughCache(store=memory_store, ttl=timedelta(hours=24), clock=clock)
