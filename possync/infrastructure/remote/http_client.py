"""
HTTP client for the remote system of record.

Failures are classified here, at the transport, into a typed error kind:
timeouts, any other httpx failure and 5xx are transient; 4xx and documents
that can't be mapped are application errors. Reads are retried in-call;
writes are left to the operation queue.
"""

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from possync.config import get_logger
from possync.config.settings import RemoteSettings
from possync.core.entities.cash_session import CashSession
from possync.core.entities.operation import EntityKind, OperationKind, PendingOperation
from possync.core.entities.sale import Sale
from possync.core.exceptions import (
    ApplicationError,
    RemoteErrorKind,
    TransientNetworkError,
)
from possync.core.interfaces import IRemoteApi
from possync.infrastructure.remote.mapping import (
    sale_from_remote,
    session_from_remote,
    to_remote,
    unwrap,
)

logger = get_logger(__name__)

T = TypeVar("T")

RESOURCE_PATHS: dict[EntityKind, str] = {
    EntityKind.SALE: "/sales",
    EntityKind.PRODUCT: "/products",
    EntityKind.USER: "/users",
    EntityKind.CASH_REGISTER: "/cash-registers",
    EntityKind.CASH_SESSION: "/cash-sessions",
    EntityKind.SETTINGS: "/settings",
}


class HttpRemoteApi(IRemoteApi):
    """
    httpx-based remote API client.

    One AsyncClient is kept for the life of the service so connections are
    reused between drain passes.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        health_path: str = "/health",
        read_retries: int = 3,
        read_retry_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_path = health_path
        self.read_retries = read_retries
        self.read_retry_delay = read_retry_delay
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(
        cls,
        settings: RemoteSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpRemoteApi":
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout,
            health_path=settings.health_path,
            read_retries=settings.read_retries,
            read_retry_delay=settings.read_retry_delay,
            transport=transport,
        )

    # =========================================================================
    # Health
    # =========================================================================

    async def check_health(self, timeout: float | None = None) -> bool:
        try:
            response = await self._client.get(
                self.health_path, timeout=timeout or self.timeout
            )
        except httpx.HTTPError as e:
            logger.debug("remote_health_failed", error=str(e))
            return False
        return response.is_success

    # =========================================================================
    # Writes
    # =========================================================================

    async def apply(self, operation: PendingOperation) -> dict[str, Any] | None:
        """Replay one queued mutation. Never retried here."""
        method, path = self._route(operation)
        body = None
        if operation.kind != OperationKind.DELETE:
            body = to_remote(operation.entity_kind, operation.payload)

        result = await self._request(
            method,
            path,
            json=body,
            headers={"Idempotency-Key": operation.idempotency_key},
            require_json=False,
        )
        logger.debug(
            "remote_operation_applied",
            op_id=operation.id,
            method=method,
            path=path,
        )
        return unwrap(result) if isinstance(result, dict) else None

    def _route(self, operation: PendingOperation) -> tuple[str, str]:
        if operation.entity_kind == EntityKind.SETTINGS:
            if operation.owner_key:
                return "PUT", f"/users/{operation.owner_key}/settings"
            return "PUT", RESOURCE_PATHS[EntityKind.SETTINGS]

        resource = RESOURCE_PATHS[operation.entity_kind]
        if operation.kind == OperationKind.CREATE:
            return "POST", resource

        entity_id = operation.entity_id
        if entity_id is None:
            # Can never succeed; let the queue dead-letter it
            raise ApplicationError(
                f"{operation.kind.value} {operation.entity_kind.value} has no entity id",
                status_code=422,
            )
        method = "PUT" if operation.kind == OperationKind.UPDATE else "DELETE"
        return method, f"{resource}/{entity_id}"

    # =========================================================================
    # Reads
    # =========================================================================

    async def fetch_settings(self, scope_key: str) -> dict[str, Any]:
        body = await self._read(f"/users/{scope_key}/settings")
        data = unwrap(body)
        return dict(data) if isinstance(data, dict) else {}

    async def get_cash_session(self, session_id: str) -> CashSession | None:
        try:
            body = await self._read(f"/cash-sessions/{session_id}")
        except ApplicationError as e:
            if e.status_code == 404:
                return None
            raise
        data = unwrap(body)
        if not isinstance(data, dict):
            return None
        [session] = self._mapped(f"/cash-sessions/{session_id}", session_from_remote, [data])
        return session

    async def list_open_sessions(self, user_id: str) -> list[CashSession]:
        body = await self._read(
            "/cash-sessions", params={"status": "ACTIVE", "userId": user_id}
        )
        sessions = self._mapped("/cash-sessions", session_from_remote, self._as_list(body))
        # The server may ignore the filters
        return [s for s in sessions if s.is_open and s.user_id == user_id]

    async def list_sales(self, session_id: str) -> list[Sale]:
        body = await self._read("/sales", params={"cashSessionId": session_id})
        sales = self._mapped("/sales", sale_from_remote, self._as_list(body))
        return [sale for sale in sales if sale.session_id == session_id]

    async def close(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _read(self, path: str, params: dict[str, Any] | None = None) -> Any:
        retry_decorator = retry(
            stop=stop_after_attempt(max(self.read_retries, 1)),
            wait=wait_fixed(self.read_retry_delay),
            retry=retry_if_exception_type(TransientNetworkError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return await retry_decorator(self._request)("GET", path, params=params)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "remote_read_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        require_json: bool = True,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as e:
            raise TransientNetworkError(
                f"{method} {path} timed out after {self.timeout}s",
                kind=RemoteErrorKind.TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise TransientNetworkError(
                f"{method} {path} failed: {e}",
                kind=RemoteErrorKind.NETWORK,
            ) from e

        if response.status_code >= 500:
            raise TransientNetworkError(
                f"{method} {path} returned {response.status_code}",
                kind=RemoteErrorKind.SERVER,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise ApplicationError(
                f"{method} {path} returned {response.status_code}: {self._error_detail(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            if not require_json:
                # The write was accepted; the body is only informational
                logger.debug("non_json_write_response", method=method, path=path)
                return None
            raise ApplicationError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)[:200]
        return str(body)[:200]

    @staticmethod
    def _mapped(
        path: str, mapper: Callable[[dict[str, Any]], T], items: list[dict[str, Any]]
    ) -> list[T]:
        try:
            return [mapper(item) for item in items]
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise ApplicationError(f"GET {path} returned an unusable document: {e!r}") from e

    @staticmethod
    def _as_list(body: Any) -> list[dict[str, Any]]:
        data = unwrap(body)
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []
