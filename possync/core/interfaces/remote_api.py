"""Abstract interface for the remote system of record."""

from abc import ABC, abstractmethod
from typing import Any

from possync.core.entities.cash_session import CashSession
from possync.core.entities.operation import PendingOperation
from possync.core.entities.sale import Sale


class IRemoteApi(ABC):
    """
    Remote CRUD service.

    Implementations raise ``TransientNetworkError`` for timeouts, network
    failures and 5xx responses, and ``ApplicationError`` for 4xx responses.
    """

    @abstractmethod
    async def check_health(self, timeout: float | None = None) -> bool:
        """Cheap reachability probe. Never raises."""
        pass

    @abstractmethod
    async def apply(self, operation: PendingOperation) -> dict[str, Any] | None:
        """Replay a queued mutation. Returns the remote body, if any."""
        pass

    @abstractmethod
    async def fetch_settings(self, scope_key: str) -> dict[str, Any]:
        """Fetch the settings document for a scope (user id)."""
        pass

    @abstractmethod
    async def get_cash_session(self, session_id: str) -> CashSession | None:
        """Get a cash session, or None when the remote doesn't know it."""
        pass

    @abstractmethod
    async def list_open_sessions(self, user_id: str) -> list[CashSession]:
        """List the user's open cash sessions."""
        pass

    @abstractmethod
    async def list_sales(self, session_id: str) -> list[Sale]:
        """List sales recorded against a session."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
        pass
