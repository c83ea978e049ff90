# tests/unit/storage/test_base_record_store.py - v1
"""Tests for storage/base_record_store.py - BaseRecordStore ABC."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from smartcache.storage.base_record_store import BaseRecordStore


class TestBaseRecordStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseRecordStore()  # type: ignore[abstract]

    def test_has_required_methods(self):
        for method in ["find_latest", "insert", "update", "delete", "close"]:
            assert hasattr(BaseRecordStore, method)

    def test_check_delete_filter(self):
        with pytest.raises(ValueError):
            BaseRecordStore.check_delete_filter(None, None, None)
        BaseRecordStore.check_delete_filter("p1", None, None)
        BaseRecordStore.check_delete_filter(None, "src", None)
        BaseRecordStore.check_delete_filter(None, None, datetime.now(timezone.utc))

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self):
        closed = []

        class Dummy(BaseRecordStore):
            async def find_latest(self, subject_id, source):
                return None

            async def insert(self, subject_id, source, payload, updated_at):
                raise NotImplementedError

            async def update(self, entry_id, payload, updated_at):
                return None

            async def delete(self, *, subject_id=None, source=None, updated_before=None):
                return 0

            async def close(self):
                closed.append(True)

        async with Dummy() as store:
            assert await store.find_latest("a", "b") is None
        assert closed == [True]
