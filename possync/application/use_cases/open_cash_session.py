"""Open Cash Session Use Case: one open session per user."""

from dataclasses import dataclass

from possync.application.dto.requests import OpenCashSessionRequest
from possync.config import get_logger
from possync.core.entities import CashSession, EntityKind, OperationKind, PendingOperation
from possync.core.exceptions import RemoteError, SessionAlreadyOpenError
from possync.core.interfaces import ICashSessionStore, IRemoteApi
from possync.core.services import ConnectivityGate, SyncCoordinator

logger = get_logger(__name__)


@dataclass
class OpenCashSessionResult:
    """Result of opening a cash session."""

    session: CashSession
    adopted: bool = False


class OpenCashSessionUseCase:
    """
    Open a drawer session for a user.

    A user holds at most one open session. An existing one, local or remote,
    is adopted instead of opening a second, unless it is bound to a different
    register than the one requested.
    """

    def __init__(
        self,
        sessions: ICashSessionStore,
        remote: IRemoteApi,
        gate: ConnectivityGate,
        coordinator: SyncCoordinator,
    ):
        self._sessions = sessions
        self._remote = remote
        self._gate = gate
        self._coordinator = coordinator

    async def execute(self, request: OpenCashSessionRequest) -> OpenCashSessionResult:
        """
        Execute open cash session use case.

        Raises:
            SessionAlreadyOpenError: The user's open session is on another
                register.
            QueuePersistenceError: The new session couldn't be queued.
        """
        existing = await self._find_open(request.user_id)
        if existing is not None:
            if (
                request.register_id
                and existing.register_id
                and existing.register_id != request.register_id
            ):
                raise SessionAlreadyOpenError(request.user_id, existing.id)
            logger.info(
                "cash_session_adopted",
                session_id=existing.id,
                user_id=request.user_id,
            )
            return OpenCashSessionResult(session=existing, adopted=True)

        session = CashSession(
            user_id=request.user_id,
            register_id=request.register_id,
            opening_amount=request.opening_amount,
            notes=request.notes,
        )

        # Queue first: a session the remote will never hear about is worse
        # than no session
        await self._coordinator.submit(
            PendingOperation(
                kind=OperationKind.CREATE,
                entity_kind=EntityKind.CASH_SESSION,
                owner_key=session.user_id,
                payload=session.model_dump(mode="json"),
            )
        )
        await self._sessions.save(session)

        logger.info(
            "cash_session_opened",
            session_id=session.id,
            user_id=session.user_id,
            opening_amount=str(session.opening_amount),
        )
        return OpenCashSessionResult(session=session)

    async def _find_open(self, user_id: str) -> CashSession | None:
        local = await self._sessions.find_open_for_user(user_id)
        if local:
            return local[0]

        if not await self._gate.is_online():
            return None
        try:
            remote = await self._remote.list_open_sessions(user_id)
        except RemoteError as e:
            logger.warning("remote_open_session_lookup_failed", user_id=user_id, error=e.message)
            return None
        if not remote:
            return None

        session = remote[0]
        await self._sessions.save(session)
        return session
