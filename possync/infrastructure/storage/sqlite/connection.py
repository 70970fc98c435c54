"""
SQLite connections for the terminal's local store.

The queue, session, sale and cache tables share one database file. The pool
is owned by ``SyncServices``, opened at start and closed at stop.
"""

import asyncio
import sqlite3
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from possync.config import get_logger
from possync.config.settings import StorageSettings
from possync.core.exceptions import DatabaseError

logger = get_logger(__name__)

# Applied to every connection. synchronous=FULL: an acknowledged enqueue
# must survive power loss on the terminal.
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=FULL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """
    Fixed set of aiosqlite connections handed out one caller at a time.

    Connections run in autocommit mode. Writers go through ``transaction()``,
    which takes the write lock up front (``BEGIN IMMEDIATE``) so a multi-row
    queue change such as move-to-tail never interleaves with another writer.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 2,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "ConnectionPool":
        return cls(
            db_path=settings.db_path,
            pool_size=settings.pool_size,
            busy_timeout=settings.busy_timeout,
        )

    @property
    def is_initialized(self) -> bool:
        return bool(self._connections)

    async def initialize(self) -> None:
        """
        Open every connection in the pool.

        Raises:
            DatabaseError: The database file couldn't be opened.
        """
        async with self._open_lock:
            if self._connections:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                for _ in range(self.pool_size):
                    conn = await self._create_connection()
                    self._connections.append(conn)
                    self._idle.put_nowait(conn)
            except sqlite3.Error as e:
                await self._close_all()
                raise DatabaseError("open", str(e)) from e

            logger.info(
                "local_store_opened",
                db_path=str(self.db_path),
                connections=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection for reads; opens the pool on first use."""
        if not self._connections:
            await self.initialize()

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside a write transaction.

        Commits when the block exits cleanly and rolls back when it raises.
        """
        async with self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def ping(self) -> float:
        """Round-trip a trivial query and return the latency in milliseconds."""
        start = time.perf_counter()
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        return (time.perf_counter() - start) * 1000

    async def close(self) -> None:
        """Checkpoint the WAL into the main file and close every connection."""
        async with self._open_lock:
            if not self._connections:
                return
            try:
                await self._connections[0].execute("PRAGMA wal_checkpoint(TRUNCATE)")
            except sqlite3.Error as e:
                logger.warning("wal_checkpoint_failed", error=str(e))
            await self._close_all()
            logger.info("local_store_closed", db_path=str(self.db_path))

    async def _close_all(self) -> None:
        for conn in self._connections:
            await conn.close()
        self._connections.clear()
        self._idle = asyncio.Queue(maxsize=self.pool_size)
