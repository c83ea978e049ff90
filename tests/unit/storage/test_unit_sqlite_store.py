# tests/unit/storage/test_unit_sqlite_store.py - v2
"""Tests for storage/sqlite_store.py - schema, persistence and error mapping."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from smartcache.cache.errors import StoreReadError, StoreWriteError
from smartcache.storage.sqlite_store import SqliteRecordStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestSqliteRecordStore:
    def test_creates_parent_dirs(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "cache.db"
        store = SqliteRecordStore(db_path=db_path)
        assert db_path.exists()
        store._conn.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        store = SqliteRecordStore(db_path=":memory:")
        await store.insert("p1", "s", {"a": 1}, T0)
        assert (await store.find_latest("p1", "s")).payload == {"a": 1}
        await store.close()

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "cache.db"
        first = SqliteRecordStore(db_path=db_path)
        inserted = await first.insert("p1", "priceApi", {"price": 3.5}, T0)
        await first.close()

        second = SqliteRecordStore(db_path=db_path)
        found = await second.find_latest("p1", "priceApi")
        await second.close()

        assert found is not None
        assert found.id == inserted.id
        assert found.payload == {"price": 3.5}
        assert found.updated_at == T0

    @pytest.mark.asyncio
    async def test_stores_utc_iso_text(self, sqlite_store):
        await sqlite_store.insert("p1", "s", [], T0)
        row = sqlite_store._conn.execute(
            "SELECT updated_at FROM product_cache"
        ).fetchone()
        assert row[0] == "2026-03-01T12:00:00.000000+00:00"

    @pytest.mark.asyncio
    async def test_unserializable_payload_is_write_error(self, sqlite_store):
        with pytest.raises(StoreWriteError) as exc_info:
            await sqlite_store.insert("p1", "s", {"bad": object()}, T0)
        assert exc_info.value.operation == "insert"
        assert isinstance(exc_info.value.__cause__, TypeError)
        assert await sqlite_store.find_latest("p1", "s") is None

    @pytest.mark.asyncio
    async def test_corrupt_payload_is_read_error(self, sqlite_store):
        sqlite_store._conn.execute(
            "INSERT INTO product_cache VALUES (?, ?, ?, ?, ?)",
            ("r1", "p1", "s", "{not json", T0.isoformat()),
        )
        with pytest.raises(StoreReadError, match="corrupt"):
            await sqlite_store.find_latest("p1", "s")

    @pytest.mark.asyncio
    async def test_closed_connection_errors(self, tmp_path):
        store = SqliteRecordStore(db_path=tmp_path / "c.db")
        await store.close()

        with pytest.raises(StoreReadError) as read_exc:
            await store.find_latest("p1", "s")
        assert isinstance(read_exc.value.__cause__, sqlite3.Error)

        with pytest.raises(StoreWriteError):
            await store.insert("p1", "s", {}, T0)
        with pytest.raises(StoreWriteError):
            await store.update("r1", {}, T0)
        with pytest.raises(StoreWriteError):
            await store.delete(subject_id="p1")
