"""SQLite persistence for remote state cache entries."""

import json
from datetime import datetime

import aiosqlite

from possync.core.entities.cache import CachedState
from possync.core.interfaces import IStateStore
from possync.infrastructure.storage.sqlite.connection import ConnectionPool


class SQLiteStateStore(IStateStore):
    """One row per scope key. Invalidation is in-memory only and not stored."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def save(self, entry: CachedState) -> None:
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO cached_state (scope_key, value, fetched_at, is_default)
                VALUES (?, ?, ?, ?)
                """,
                (
                    entry.scope_key,
                    json.dumps(entry.value),
                    entry.fetched_at.isoformat(),
                    int(entry.is_default),
                ),
            )

    async def load_all(self) -> list[CachedState]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM cached_state ORDER BY scope_key")
            rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def delete(self, scope_key: str) -> bool:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM cached_state WHERE scope_key = ?", (scope_key,)
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> CachedState:
        return CachedState(
            scope_key=row["scope_key"],
            value=json.loads(row["value"]),
            fetched_at=datetime.fromisoformat(row["fetched_at"]),
            is_default=bool(row["is_default"]),
        )
