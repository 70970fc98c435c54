"""SQLite implementation of the pending operation log."""

import json
from datetime import datetime

import aiosqlite

from possync.config import get_logger
from possync.core.entities.operation import (
    EntityKind,
    OperationKind,
    OperationStatus,
    PendingOperation,
)
from possync.core.interfaces import IOperationStore
from possync.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)

INSERT_SQL = """
    INSERT INTO pending_operations (
        id, kind, entity_kind, owner_key, payload, idempotency_key,
        attempt_count, status, last_error, created_at, dead_lettered_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SQLiteOperationStore(IOperationStore):
    """Pending operations in insertion order; ``seq`` is the replay order."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def append(self, operation: PendingOperation) -> None:
        async with self._pool.transaction() as conn:
            await conn.execute(INSERT_SQL, self._to_params(operation))

    async def update(self, operation: PendingOperation) -> None:
        async with self._pool.transaction() as conn:
            await conn.execute(
                """
                UPDATE pending_operations
                SET attempt_count = ?, status = ?, last_error = ?, dead_lettered_at = ?
                WHERE id = ?
                """,
                (
                    operation.attempt_count,
                    operation.status.value,
                    operation.last_error,
                    operation.dead_lettered_at.isoformat()
                    if operation.dead_lettered_at
                    else None,
                    operation.id,
                ),
            )

    async def delete(self, op_id: str) -> bool:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM pending_operations WHERE id = ?", (op_id,)
            )
            return cursor.rowcount > 0

    async def move_to_tail(self, operation: PendingOperation) -> None:
        # Re-inserting assigns a new seq behind every live row
        async with self._pool.transaction() as conn:
            await conn.execute("DELETE FROM pending_operations WHERE id = ?", (operation.id,))
            await conn.execute(INSERT_SQL, self._to_params(operation))

    async def load_all(self) -> list[PendingOperation]:
        async with self._pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM pending_operations ORDER BY seq")
            rows = await cursor.fetchall()
        return [self._row_to_operation(row) for row in rows]

    async def purge_dead(self) -> int:
        async with self._pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM pending_operations WHERE status = ?",
                (OperationStatus.DEAD.value,),
            )
            purged = cursor.rowcount
        logger.info("dead_operations_purged", count=purged)
        return purged

    @staticmethod
    def _to_params(operation: PendingOperation) -> tuple:
        return (
            operation.id,
            operation.kind.value,
            operation.entity_kind.value,
            operation.owner_key,
            json.dumps(operation.payload),
            operation.idempotency_key,
            operation.attempt_count,
            operation.status.value,
            operation.last_error,
            operation.created_at.isoformat(),
            operation.dead_lettered_at.isoformat() if operation.dead_lettered_at else None,
        )

    @staticmethod
    def _row_to_operation(row: aiosqlite.Row) -> PendingOperation:
        """Convert a database row to a PendingOperation entity."""
        return PendingOperation(
            id=row["id"],
            kind=OperationKind(row["kind"]),
            entity_kind=EntityKind(row["entity_kind"]),
            owner_key=row["owner_key"],
            payload=json.loads(row["payload"]) if row["payload"] else {},
            idempotency_key=row["idempotency_key"],
            attempt_count=row["attempt_count"],
            status=OperationStatus(row["status"]),
            last_error=row["last_error"],
            created_at=datetime.fromisoformat(row["created_at"]),
            dead_lettered_at=datetime.fromisoformat(row["dead_lettered_at"])
            if row["dead_lettered_at"]
            else None,
        )
