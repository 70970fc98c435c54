"""
Pending operation queue.

Ordered, durable log of local mutations waiting for the remote service.
Storage is written before the in-memory mirror changes, so a crash between
the two leaves storage as the source of truth.
"""

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.entities.operation import (
    EntityKind,
    OperationStatus,
    PendingOperation,
)
from possync.core.exceptions import OperationNotFoundError, QueuePersistenceError
from possync.core.interfaces import IOperationStore

logger = get_logger(__name__)


class PendingOperationQueue:
    """
    FIFO queue of pending operations with a dead-letter set.

    Operations leave the live queue only on confirmed success or when they
    are dead-lettered. Dead-lettered operations stay inspectable until an
    operator purges them.
    """

    def __init__(
        self,
        store: IOperationStore,
        max_attempts: int = 3,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._max_attempts = max_attempts
        self._clock = clock
        self._pending: list[PendingOperation] = []
        self._dead: list[PendingOperation] = []

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def load(self) -> int:
        """Rehydrate the mirror from storage. Returns the live count."""
        operations = await self._store.load_all()
        self._pending = [op for op in operations if not op.is_dead]
        self._dead = [op for op in operations if op.is_dead]
        logger.info(
            "operation_queue_loaded",
            pending=len(self._pending),
            dead=len(self._dead),
        )
        return len(self._pending)

    async def enqueue(self, operation: PendingOperation) -> str:
        """
        Durably append an operation at the tail.

        Raises:
            QueuePersistenceError: The operation could not be stored. The
                caller must treat the business action as not recorded.
        """
        try:
            await self._store.append(operation)
        except Exception as e:
            logger.error("operation_enqueue_failed", op_id=operation.id, error=str(e))
            raise QueuePersistenceError(operation.id, str(e)) from e

        self._pending.append(operation)
        logger.info(
            "operation_enqueued",
            op_id=operation.id,
            kind=operation.kind.value,
            entity_kind=operation.entity_kind.value,
            owner_key=operation.owner_key,
            pending=len(self._pending),
        )
        return operation.id

    def peek_batch(self, n: int) -> list[PendingOperation]:
        """Up to ``n`` live operations in insertion order, not removed."""
        return list(self._pending[:n])

    def pending(self) -> list[PendingOperation]:
        return list(self._pending)

    def pending_for(
        self, entity_kind: EntityKind, owner_key: str | None
    ) -> list[PendingOperation]:
        """Live operations for one ordering key, in insertion order."""
        return [
            op
            for op in self._pending
            if op.entity_kind == entity_kind and op.owner_key == owner_key
        ]

    def get(self, op_id: str) -> PendingOperation | None:
        for op in self._pending + self._dead:
            if op.id == op_id:
                return op
        return None

    async def mark_succeeded(self, op_id: str) -> None:
        """Remove an operation after the remote confirmed it."""
        index = self._index_of(self._pending, op_id)
        await self._store.delete(op_id)
        operation = self._pending.pop(index)
        logger.info(
            "operation_succeeded",
            op_id=op_id,
            attempts=operation.attempt_count,
            pending=len(self._pending),
        )

    async def mark_failed(self, op_id: str, error: str | None = None) -> PendingOperation:
        """
        Count a failed replay.

        The operation moves to the dead-letter set once its attempt count
        reaches ``max_attempts``; otherwise it keeps its place in the queue.
        """
        index = self._index_of(self._pending, op_id)
        current = self._pending[index]
        attempts = current.attempt_count + 1

        if attempts >= self._max_attempts:
            return await self._move_to_dead(index, error, attempts)

        updated = current.model_copy(
            update={"attempt_count": attempts, "last_error": error}
        )
        await self._store.update(updated)
        self._pending[index] = updated
        logger.warning(
            "operation_failed",
            op_id=op_id,
            attempt=attempts,
            max_attempts=self._max_attempts,
            error=error,
        )
        return updated

    async def dead_letter(self, op_id: str, error: str | None = None) -> PendingOperation:
        """Move an operation straight to the dead-letter set."""
        index = self._index_of(self._pending, op_id)
        return await self._move_to_dead(index, error, self._pending[index].attempt_count)

    def drainable_count(self) -> int:
        return len(self._pending)

    def error_count(self) -> int:
        return len(self._dead)

    def dead_letters(self) -> list[PendingOperation]:
        return list(self._dead)

    async def clear_errors(self) -> int:
        """Purge the dead-letter set. Returns the number purged."""
        purged = await self._store.purge_dead()
        count = len(self._dead)
        self._dead = []
        logger.info("dead_letters_cleared", count=count, purged=purged)
        return count

    async def requeue(self, op_id: str) -> PendingOperation:
        """Give a dead-lettered operation a fresh retry budget at the tail."""
        index = self._index_of(self._dead, op_id)
        revived = self._dead[index].model_copy(
            update={
                "attempt_count": 0,
                "status": OperationStatus.PENDING,
                "last_error": None,
                "dead_lettered_at": None,
            }
        )
        await self._store.move_to_tail(revived)
        self._dead.pop(index)
        self._pending.append(revived)
        logger.info("operation_requeued", op_id=op_id, pending=len(self._pending))
        return revived

    async def _move_to_dead(
        self, index: int, error: str | None, attempts: int
    ) -> PendingOperation:
        dead = self._pending[index].model_copy(
            update={
                "attempt_count": attempts,
                "status": OperationStatus.DEAD,
                "last_error": error,
                "dead_lettered_at": self._clock(),
            }
        )
        await self._store.update(dead)
        self._pending.pop(index)
        self._dead.append(dead)
        logger.error(
            "operation_dead_lettered",
            op_id=dead.id,
            entity_kind=dead.entity_kind.value,
            attempts=attempts,
            error=error,
        )
        return dead

    @staticmethod
    def _index_of(operations: list[PendingOperation], op_id: str) -> int:
        for index, op in enumerate(operations):
            if op.id == op_id:
                return index
        raise OperationNotFoundError(op_id)
