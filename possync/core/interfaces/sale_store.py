"""Abstract interface for local sale storage."""

from abc import ABC, abstractmethod

from possync.core.entities.sale import Sale


class ISaleStore(ABC):
    """Local record of sales rung up on this terminal."""

    @abstractmethod
    async def save(self, sale: Sale) -> Sale:
        """Insert or replace a sale with its items."""
        pass

    @abstractmethod
    async def get(self, sale_id: str) -> Sale | None:
        """Get sale by ID."""
        pass

    @abstractmethod
    async def list_for_session(self, session_id: str) -> list[Sale]:
        """Sales recorded against a session, oldest first."""
        pass
