"""
Tests for the in-memory cursor store.
"""

import asyncio

import pytest

from core.errors import CursorNotFoundError
from database.cursor_store import MemoryCursorStore


class TestMemoryCursorStore:
    @pytest.mark.asyncio
    async def test_get_after_set(self):
        store = MemoryCursorStore()
        await store.set("acct1", "c1")
        assert await store.get("acct1") == "c1"

    @pytest.mark.asyncio
    async def test_unknown_account_is_not_found(self):
        store = MemoryCursorStore()
        with pytest.raises(CursorNotFoundError) as exc_info:
            await store.get("never-seen")
        assert exc_info.value.account == "never-seen"

    @pytest.mark.asyncio
    async def test_empty_cursor_is_distinct_from_not_found(self):
        store = MemoryCursorStore()
        await store.set("acct1", "")
        assert await store.get("acct1") == ""

    @pytest.mark.asyncio
    async def test_set_overwrites(self):
        store = MemoryCursorStore()
        await store.set("acct1", "c1")
        await store.set("acct1", "c2")
        assert await store.get("acct1") == "c2"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_concurrent_sets_on_distinct_accounts(self):
        store = MemoryCursorStore()
        accounts = [f"acct{i}" for i in range(200)]
        await asyncio.gather(*(store.set(a, f"cursor-{a}") for a in accounts))

        assert len(store) == len(accounts)
        for a in accounts:
            assert await store.get(a) == f"cursor-{a}"

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self):
        store = MemoryCursorStore()
        await store.set("acct1", "c1")
        snap = store.snapshot()
        snap["acct1"] = "tampered"
        assert await store.get("acct1") == "c1"
