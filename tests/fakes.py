"""Test doubles shared across the suite."""

from datetime import UTC, datetime, timedelta
from typing import Any

from possync.core.entities import CashSession, PendingOperation, Sale
from possync.core.exceptions import ApplicationError, RemoteError
from possync.core.interfaces import (
    ICashSessionStore,
    INetworkMonitor,
    IRemoteApi,
    ISaleStore,
)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeNetwork(INetworkMonitor):
    """Device link that tests switch on and off."""

    def __init__(self, connected: bool = True):
        self.connected = connected

    async def is_connected(self) -> bool:
        return self.connected


class FakeRemoteApi(IRemoteApi):
    """
    In-memory remote system of record.

    ``apply_errors`` is consumed one error per ``apply`` call, so tests can
    script a sequence like "timeout, then success".
    """

    def __init__(self) -> None:
        self.healthy = True
        self.applied: list[PendingOperation] = []
        self.apply_errors: list[Exception] = []
        self.settings: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, CashSession] = {}
        self.sales: list[Sale] = []
        self.read_error: RemoteError | None = None
        self.fetch_calls: list[str] = []
        self.health_checks = 0
        self.closed = False

    async def check_health(self, timeout: float | None = None) -> bool:
        self.health_checks += 1
        return self.healthy

    async def apply(self, operation: PendingOperation) -> dict[str, Any] | None:
        if self.apply_errors:
            raise self.apply_errors.pop(0)
        self.applied.append(operation)
        return None

    async def fetch_settings(self, scope_key: str) -> dict[str, Any]:
        self.fetch_calls.append(scope_key)
        if self.read_error is not None:
            raise self.read_error
        if scope_key not in self.settings:
            raise ApplicationError(f"no settings for {scope_key}", status_code=404)
        return dict(self.settings[scope_key])

    async def get_cash_session(self, session_id: str) -> CashSession | None:
        if self.read_error is not None:
            raise self.read_error
        return self.sessions.get(session_id)

    async def list_open_sessions(self, user_id: str) -> list[CashSession]:
        if self.read_error is not None:
            raise self.read_error
        return [s for s in self.sessions.values() if s.user_id == user_id and s.is_open]

    async def list_sales(self, session_id: str) -> list[Sale]:
        if self.read_error is not None:
            raise self.read_error
        return [sale for sale in self.sales if sale.session_id == session_id]

    async def close(self) -> None:
        self.closed = True

    def applied_ids(self) -> list[str]:
        return [op.id for op in self.applied]


class InMemoryCashSessionStore(ICashSessionStore):
    """Dict-backed session store."""

    def __init__(self) -> None:
        self.sessions: dict[str, CashSession] = {}

    async def save(self, session: CashSession) -> CashSession:
        self.sessions[session.id] = session.model_copy(deep=True)
        return session

    async def get(self, session_id: str) -> CashSession | None:
        session = self.sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def find_open_for_user(self, user_id: str) -> list[CashSession]:
        return [s for s in self.sessions.values() if s.user_id == user_id and s.is_open]

    async def list_sessions(self, limit: int = 100, offset: int = 0) -> list[CashSession]:
        return list(self.sessions.values())[offset : offset + limit]


class InMemorySaleStore(ISaleStore):
    """Dict-backed sale store."""

    def __init__(self) -> None:
        self.sales: dict[str, Sale] = {}

    async def save(self, sale: Sale) -> Sale:
        self.sales[sale.id] = sale.model_copy(deep=True)
        return sale

    async def get(self, sale_id: str) -> Sale | None:
        sale = self.sales.get(sale_id)
        return sale.model_copy(deep=True) if sale else None

    async def list_for_session(self, session_id: str) -> list[Sale]:
        return [sale for sale in self.sales.values() if sale.session_id == session_id]
