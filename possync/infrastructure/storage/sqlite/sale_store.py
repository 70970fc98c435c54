"""SQLite implementation of local sale storage."""

import json
from datetime import datetime
from decimal import Decimal

import aiosqlite

from possync.config import get_logger
from possync.core.entities.sale import PaymentMethod, Sale, SaleItem, SaleStatus
from possync.core.interfaces import ISaleStore
from possync.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)


class SQLiteSaleStore(ISaleStore):
    """Sales with their items serialized as a JSON column."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def save(self, sale: Sale) -> Sale:
        items = [item.model_dump(mode="json") for item in sale.items]
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO sales (
                    id, session_id, user_id, total, payment_method,
                    status, items, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sale.id,
                    sale.session_id,
                    sale.user_id,
                    str(sale.total),
                    sale.payment_method.value,
                    sale.status.value,
                    json.dumps(items),
                    sale.created_at.isoformat(),
                    sale.updated_at.isoformat(),
                ),
            )
        logger.debug("sale_saved", sale_id=sale.id, status=sale.status.value)
        return sale

    async def get(self, sale_id: str) -> Sale | None:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM sales WHERE id = ?", (sale_id,))
            row = await cursor.fetchone()
        return self._row_to_sale(row) if row else None

    async def list_for_session(self, session_id: str) -> list[Sale]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM sales WHERE session_id = ? ORDER BY created_at",
                (session_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_sale(row) for row in rows]

    @staticmethod
    def _row_to_sale(row: aiosqlite.Row) -> Sale:
        """Convert a database row to a Sale entity."""
        items = json.loads(row["items"]) if row["items"] else []
        return Sale(
            id=row["id"],
            session_id=row["session_id"],
            user_id=row["user_id"],
            total=Decimal(row["total"]),
            payment_method=PaymentMethod(row["payment_method"]),
            status=SaleStatus(row["status"]),
            items=[SaleItem(**item) for item in items],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
