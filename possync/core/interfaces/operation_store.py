"""Abstract interface for durable pending operation storage."""

from abc import ABC, abstractmethod

from possync.core.entities.operation import PendingOperation


class IOperationStore(ABC):
    """
    Durable, ordered log of pending operations.

    Insertion order is the replay order and must survive restarts.
    """

    @abstractmethod
    async def append(self, operation: PendingOperation) -> None:
        """Append an operation at the tail."""
        pass

    @abstractmethod
    async def update(self, operation: PendingOperation) -> None:
        """Persist attempt count and dead-letter fields in place."""
        pass

    @abstractmethod
    async def delete(self, op_id: str) -> bool:
        """Remove an operation. Returns False when it wasn't stored."""
        pass

    @abstractmethod
    async def move_to_tail(self, operation: PendingOperation) -> None:
        """Re-append an existing operation after every other one."""
        pass

    @abstractmethod
    async def load_all(self) -> list[PendingOperation]:
        """All stored operations, pending and dead, in insertion order."""
        pass

    @abstractmethod
    async def purge_dead(self) -> int:
        """Delete dead-lettered operations. Returns the number removed."""
        pass
