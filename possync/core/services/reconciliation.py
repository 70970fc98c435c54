"""
Reconciliation engine.

Decides whether a cash session may close and compares the declared drawer
count against recorded sales. All money math is Decimal at two places.
"""

from decimal import Decimal

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.entities.cash_session import CashSession
from possync.core.entities.money import ZERO, money_sum, to_money
from possync.core.entities.operation import EntityKind, OperationKind, PendingOperation
from possync.core.entities.reconciliation import (
    ClosingValidation,
    ReconciliationSummary,
    SummarySource,
)
from possync.core.entities.sale import Sale, SaleStatus
from possync.core.exceptions import (
    ApplicationError,
    RemoteError,
    SessionAlreadyClosedError,
    SessionNotFoundError,
    SessionNotValidatedError,
)
from possync.core.interfaces import ICashSessionStore, IRemoteApi, ISaleStore
from possync.core.services.connectivity import ConnectivityGate
from possync.core.services.sync_coordinator import SyncCoordinator

logger = get_logger(__name__)

SESSION_NOT_FOUND = "session not found"
REMOTE_UNAVAILABLE = (
    "remote service unavailable: pending sales and other open sessions "
    "could not be verified"
)


class ReconciliationEngine:
    """
    Validation, summary and close for cash sessions.

    Closing a session is a normal user decision, so blocking reasons come
    back as ``ClosingValidation.issues`` rather than exceptions.

    Required interfaces for DI:
    - ICashSessionStore: local session records
    - ISaleStore: local sale records
    - IRemoteApi: authoritative sales and sessions when reachable
    """

    def __init__(
        self,
        sessions: ICashSessionStore,
        sales: ISaleStore,
        remote: IRemoteApi,
        gate: ConnectivityGate,
        coordinator: SyncCoordinator,
        permissive_when_offline: bool = True,
        cash_methods: list[str] | None = None,
        clock: Clock = utc_now,
    ):
        self._sessions = sessions
        self._sales = sales
        self._remote = remote
        self._gate = gate
        self._coordinator = coordinator
        self._permissive = permissive_when_offline
        self._cash_methods = set(cash_methods or ["CASH"])
        self._clock = clock

        self._validated: set[str] = set()
        self._closing: set[str] = set()

    async def validate_for_closing(self, session_id: str) -> ClosingValidation:
        """
        Check that a session can close.

        Blocks when the session isn't open, when any of its sales is still
        pending, or when the same user holds another open session. With the
        remote unreachable and the permissive policy on, only the local
        status check applies and the result is flagged ``degraded``.
        """
        session = await self._find_session(session_id)
        if session is None:
            self._validated.discard(session_id)
            return ClosingValidation(
                session_id=session_id, can_close=False, issues=[SESSION_NOT_FOUND]
            )

        issues: list[str] = []
        degraded = False
        if not session.is_open:
            issues.append(f"session is {session.status.value.lower()}")

        remote_sales: list[Sale] = []
        remote_open: list[CashSession] = []
        remote_ok = await self._gate.is_online()
        if remote_ok:
            try:
                remote_sales = await self._remote.list_sales(session_id)
                remote_open = await self._remote.list_open_sessions(session.user_id)
            except ApplicationError as e:
                issues.append(f"remote closing check failed: {e.message}")
            except RemoteError as e:
                logger.warning(
                    "closing_check_remote_failed", session_id=session_id, error=e.message
                )
                remote_ok = False

        if remote_ok:
            sales = self._merge_sales(await self._sales.list_for_session(session_id), remote_sales)
            pending = [sale.id for sale in sales if sale.is_pending]
            if pending:
                issues.append(f"{len(pending)} sale(s) still pending for this session")

            local_open = await self._sessions.find_open_for_user(session.user_id)
            others = sorted(
                {s.id for s in local_open + remote_open if s.id != session_id}
            )
            if others:
                issues.append(
                    f"user {session.user_id} has another open session: {', '.join(others)}"
                )
        elif self._permissive:
            degraded = True
        else:
            issues.append(REMOTE_UNAVAILABLE)

        validation = ClosingValidation(
            session_id=session_id,
            can_close=not issues,
            issues=issues,
            degraded=degraded,
        )
        if validation.can_close:
            self._validated.add(session_id)
        else:
            self._validated.discard(session_id)

        logger.info(
            "closing_validated",
            session_id=session_id,
            can_close=validation.can_close,
            issues=len(issues),
            degraded=degraded,
        )
        return validation

    def revoke_validation(self, session_id: str) -> None:
        """Require a fresh validation before the next close, e.g. after a new pending sale."""
        if session_id in self._validated:
            self._validated.discard(session_id)
            logger.info("closing_validation_revoked", session_id=session_id)

    async def summarize(
        self, session_id: str, declared_closing_amount: Decimal | float | str
    ) -> ReconciliationSummary:
        """
        Compare the declared drawer count with completed sales.

        ``expected_cash_amount = opening + cash sales`` and
        ``difference = declared - expected``. Card and wallet totals are
        reported but don't move the expected cash.
        """
        session = await self._require_session(session_id)
        sales, source = await self._collect_sales(session_id)
        completed = [sale for sale in sales if sale.status == SaleStatus.COMPLETED]

        totals: dict[str, Decimal] = {}
        for sale in completed:
            method = sale.payment_method.value
            totals[method] = totals.get(method, ZERO) + sale.total

        cash_total = money_sum(
            amount for method, amount in totals.items() if method in self._cash_methods
        )
        declared = to_money(declared_closing_amount)
        opening = session.opening_amount
        expected = to_money(opening + cash_total)

        return ReconciliationSummary(
            session_id=session_id,
            sales_count=len(completed),
            totals_by_method={method: to_money(amount) for method, amount in totals.items()},
            opening_amount=opening,
            total_sales=money_sum(sale.total for sale in completed),
            expected_cash_amount=expected,
            declared_closing_amount=declared,
            difference=to_money(declared - expected),
            net_amount=to_money(declared - opening),
            source=source,
        )

    async def close_session(
        self, session_id: str, declared_closing_amount: Decimal | float | str
    ) -> CashSession:
        """
        Close an open, validated session and queue the close for the remote.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionAlreadyClosedError: The session is closed or a close is
                already running for it.
            SessionNotValidatedError: No passing validation since the last
                close attempt.
            QueuePersistenceError: The close couldn't be queued; the local
                session stays open.
        """
        if session_id in self._closing:
            raise SessionAlreadyClosedError(session_id)

        self._closing.add(session_id)
        try:
            session = await self._require_session(session_id)
            if not session.is_open:
                raise SessionAlreadyClosedError(session_id)
            if session_id not in self._validated:
                raise SessionNotValidatedError(session_id)

            closed = session.model_copy(deep=True)
            closed.close(to_money(declared_closing_amount), self._clock())

            await self._coordinator.submit(
                PendingOperation(
                    kind=OperationKind.UPDATE,
                    entity_kind=EntityKind.CASH_SESSION,
                    owner_key=closed.user_id,
                    payload=closed.model_dump(mode="json"),
                )
            )
            await self._sessions.save(closed)
            self._validated.discard(session_id)
        finally:
            self._closing.discard(session_id)

        logger.info(
            "cash_session_closed",
            session_id=session_id,
            user_id=closed.user_id,
            declared=str(closed.declared_closing_amount),
        )
        return closed

    async def _find_session(self, session_id: str) -> CashSession | None:
        session = await self._sessions.get(session_id)
        if session is not None or not self._gate.last_known:
            return session

        try:
            session = await self._remote.get_cash_session(session_id)
        except RemoteError as e:
            logger.warning("remote_session_lookup_failed", session_id=session_id, error=e.message)
            return None
        if session is not None:
            await self._sessions.save(session)
        return session

    async def _require_session(self, session_id: str) -> CashSession:
        session = await self._find_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def _collect_sales(self, session_id: str) -> tuple[list[Sale], SummarySource]:
        local = await self._sales.list_for_session(session_id)
        if not await self._gate.is_online():
            return local, SummarySource.LOCAL
        try:
            remote = await self._remote.list_sales(session_id)
        except RemoteError as e:
            logger.warning("remote_sales_unavailable", session_id=session_id, error=e.message)
            return local, SummarySource.LOCAL
        return self._merge_sales(local, remote), SummarySource.REMOTE

    @staticmethod
    def _merge_sales(local: list[Sale], remote: list[Sale]) -> list[Sale]:
        # Remote wins on id; local-only sales are still queued for upload
        merged = {sale.id: sale for sale in local}
        merged.update({sale.id: sale for sale in remote})
        return list(merged.values())
