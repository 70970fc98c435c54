"""Abstract interface for persisted cache entries."""

from abc import ABC, abstractmethod

from possync.core.entities.cache import CachedState


class IStateStore(ABC):
    """Keeps cache entries so degraded reads survive a restart."""

    @abstractmethod
    async def save(self, entry: CachedState) -> None:
        """Insert or replace the entry for its scope key."""
        pass

    @abstractmethod
    async def load_all(self) -> list[CachedState]:
        """All stored entries."""
        pass

    @abstractmethod
    async def delete(self, scope_key: str) -> bool:
        """Remove the entry for a scope key."""
        pass
