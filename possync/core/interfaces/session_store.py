"""Abstract interface for local cash session storage."""

from abc import ABC, abstractmethod

from possync.core.entities.cash_session import CashSession


class ICashSessionStore(ABC):
    """Local record of cash sessions opened on this terminal."""

    @abstractmethod
    async def save(self, session: CashSession) -> CashSession:
        """Insert or replace a session."""
        pass

    @abstractmethod
    async def get(self, session_id: str) -> CashSession | None:
        """Get session by ID."""
        pass

    @abstractmethod
    async def find_open_for_user(self, user_id: str) -> list[CashSession]:
        """Open sessions held by a user, oldest first."""
        pass

    @abstractmethod
    async def list_sessions(
        self, limit: int = 100, offset: int = 0
    ) -> list[CashSession]:
        """List sessions, newest first."""
        pass
