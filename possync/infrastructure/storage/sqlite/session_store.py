"""SQLite implementation of local cash session storage."""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from possync.config import get_logger
from possync.core.entities.cash_session import CashSession, CashSessionStatus
from possync.core.interfaces import ICashSessionStore
from possync.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)


class SQLiteCashSessionStore(ICashSessionStore):
    """Cash sessions keyed by id. Amounts are stored as decimal strings."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def save(self, session: CashSession) -> CashSession:
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO cash_sessions (
                    id, user_id, register_id, status, opening_amount,
                    declared_closing_amount, notes, opened_at, closed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.user_id,
                    session.register_id,
                    session.status.value,
                    str(session.opening_amount),
                    str(session.declared_closing_amount)
                    if session.declared_closing_amount is not None
                    else None,
                    session.notes,
                    session.opened_at.isoformat(),
                    session.closed_at.isoformat() if session.closed_at else None,
                ),
            )
        logger.debug("cash_session_saved", session_id=session.id, status=session.status.value)
        return session

    async def get(self, session_id: str) -> CashSession | None:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM cash_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_session(row) if row else None

    async def find_open_for_user(self, user_id: str) -> list[CashSession]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM cash_sessions
                WHERE user_id = ? AND status = ?
                ORDER BY opened_at
                """,
                (user_id, CashSessionStatus.OPEN.value),
            )
            rows = await cursor.fetchall()
        return [self._row_to_session(row) for row in rows]

    async def list_sessions(
        self, limit: int = 100, offset: int = 0
    ) -> list[CashSession]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM cash_sessions ORDER BY opened_at DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_session(row) for row in rows]

    @staticmethod
    def _row_to_session(row: aiosqlite.Row) -> CashSession:
        """Convert a database row to a CashSession entity."""
        return CashSession(
            id=row["id"],
            user_id=row["user_id"],
            register_id=row["register_id"],
            status=CashSessionStatus(row["status"]),
            opening_amount=Decimal(row["opening_amount"]),
            declared_closing_amount=Decimal(row["declared_closing_amount"])
            if row["declared_closing_amount"] is not None
            else None,
            notes=row["notes"],
            opened_at=datetime.fromisoformat(row["opened_at"]),
            closed_at=datetime.fromisoformat(row["closed_at"]) if row["closed_at"] else None,
        )
