"""Tests for SQLiteStateStore."""

from datetime import UTC, datetime

import pytest

from possync.core.entities import CachedState
from possync.infrastructure.storage.sqlite import ConnectionPool, SQLiteStateStore

FETCHED = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteStateStore:
    return SQLiteStateStore(pool)


class TestSQLiteStateStore:
    """Tests for cached remote state persistence."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, store):
        entry = CachedState(
            scope_key="settings:pos-1",
            value={"darkMode": True, "printer": {"width": 58}},
            fetched_at=FETCHED,
        )
        await store.save(entry)

        [loaded] = await store.load_all()

        assert loaded == entry

    @pytest.mark.asyncio
    async def test_default_flag_round_trips(self, store):
        await store.save(CachedState(scope_key="a", fetched_at=FETCHED, is_default=True))

        [loaded] = await store.load_all()

        assert loaded.is_default is True

    @pytest.mark.asyncio
    async def test_invalidation_not_persisted(self, store):
        await store.save(CachedState(scope_key="a", fetched_at=FETCHED, invalidated=True))

        [loaded] = await store.load_all()

        assert loaded.invalidated is False

    @pytest.mark.asyncio
    async def test_save_replaces_scope(self, store):
        await store.save(CachedState(scope_key="a", value={"v": 1}, fetched_at=FETCHED))
        await store.save(CachedState(scope_key="a", value={"v": 2}, fetched_at=FETCHED))

        loaded = await store.load_all()

        assert [e.value for e in loaded] == [{"v": 2}]

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.save(CachedState(scope_key="a", fetched_at=FETCHED))

        assert await store.delete("a") is True
        assert await store.delete("a") is False
