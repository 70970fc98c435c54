"""Unit tests for SQLite connection pool."""

import sqlite3
from pathlib import Path

import aiosqlite
import pytest

from possync.config.settings import StorageSettings
from possync.core.exceptions import DatabaseError
from possync.infrastructure.storage.sqlite import ConnectionPool


class TestConnectionPoolInit:
    """Tests for ConnectionPool construction."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)

        assert pool.db_path == temp_db_path
        assert pool.pool_size == 2
        assert pool.busy_timeout == 30000
        assert pool.is_initialized is False

    def test_from_settings(self, tmp_path: Path):
        settings = StorageSettings(data_dir=tmp_path, db_name="pos.db", pool_size=3)

        pool = ConnectionPool.from_settings(settings)

        assert pool.db_path == tmp_path / "pos.db"
        assert pool.pool_size == 3


class TestConnectionPoolInitialize:
    @pytest.mark.asyncio
    async def test_initialize_creates_directory(self, tmp_path: Path):
        """Initialize creates database directory if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=1)

        await pool.initialize()

        assert db_path.parent.exists()
        await pool.close()

    @pytest.mark.asyncio
    async def test_initialize_idempotent(self, temp_db_path: Path):
        """Multiple initialize calls are safe."""
        pool = ConnectionPool(temp_db_path, pool_size=2)

        await pool.initialize()
        await pool.initialize()

        assert len(pool._connections) == 2
        await pool.close()

    @pytest.mark.asyncio
    async def test_close_resets(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        await pool.close()

        assert pool.is_initialized is False
        assert pool._connections == []


class TestConnectionPragmas:
    """Tests for connection setup."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("pragma", "expected"),
        [
            ("journal_mode", "wal"),
            ("synchronous", 2),
            ("foreign_keys", 1),
        ],
    )
    async def test_pragma(self, temp_db_path: Path, pragma: str, expected):
        pool = ConnectionPool(temp_db_path)
        conn = await pool._create_connection()
        try:
            cursor = await conn.execute(f"PRAGMA {pragma}")
            result = await cursor.fetchone()
        finally:
            await conn.close()

        value = result[0].lower() if isinstance(result[0], str) else result[0]
        assert value == expected

    @pytest.mark.asyncio
    async def test_row_factory_set(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        conn = await pool._create_connection()

        assert conn.row_factory == aiosqlite.Row
        await conn.close()


class TestConnectionPoolTransaction:
    """Tests for acquire() and transaction()."""

    @pytest.mark.asyncio
    async def test_acquire_auto_initializes(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        async with pool.acquire() as conn:
            assert pool.is_initialized
            assert isinstance(conn, aiosqlite.Connection)

        await pool.close()

    @pytest.mark.asyncio
    async def test_acquire_returns_on_exception(self, temp_db_path: Path):
        """Connection is returned even if exception occurs."""
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        with pytest.raises(ValueError):
            async with pool.acquire():
                raise ValueError("Test error")

        assert pool._idle.qsize() == 1
        await pool.close()

    @pytest.mark.asyncio
    async def test_transaction_commits(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")
            await conn.execute("INSERT INTO t VALUES (1)")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 1
        await pool.close()

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")

        with pytest.raises(RuntimeError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("abort")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 0
        await pool.close()

    @pytest.mark.asyncio
    async def test_transaction_holds_write_lock(self, temp_db_path: Path):
        """A second connection can't write while a transaction is open."""
        pool = ConnectionPool(temp_db_path, pool_size=2, busy_timeout=50)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")

        async with pool.transaction() as conn:
            await conn.execute("INSERT INTO t VALUES (1)")
            async with pool.acquire() as other:
                with pytest.raises(sqlite3.OperationalError):
                    await other.execute("INSERT INTO t VALUES (2)")
        await pool.close()


class TestConnectionPoolLifecycle:
    """Tests for ping() and close()."""

    @pytest.mark.asyncio
    async def test_ping_reports_latency(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        latency = await pool.ping()

        assert latency >= 0
        await pool.close()

    @pytest.mark.asyncio
    async def test_unopenable_path_raises_database_error(self, tmp_path: Path):
        """A directory in place of the database file can't be opened."""
        db_path = tmp_path / "pos.db"
        db_path.mkdir()
        pool = ConnectionPool(db_path, pool_size=1)

        with pytest.raises(DatabaseError) as exc_info:
            await pool.initialize()

        assert exc_info.value.code == "DATABASE_ERROR"
        assert pool.is_initialized is False

    @pytest.mark.asyncio
    async def test_close_twice_is_safe(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        await pool.close()
        await pool.close()

        assert pool.is_initialized is False
