"""Record Sale Use Case."""

from dataclasses import dataclass

from possync.application.dto.requests import RecordSaleRequest
from possync.config import get_logger
from possync.core.entities import (
    EntityKind,
    OperationKind,
    PendingOperation,
    Sale,
    SaleItem,
    money_sum,
)
from possync.core.exceptions import NoOpenSessionError, SessionNotFoundError
from possync.core.interfaces import ICashSessionStore, ISaleStore
from possync.core.services import ReconciliationEngine, SyncCoordinator

logger = get_logger(__name__)


@dataclass
class RecordSaleResult:
    """Result of recording a sale."""

    sale: Sale
    op_id: str


class RecordSaleUseCase:
    """
    Record a sale against an open session and queue it for the remote.

    A pending sale revokes any passing closing validation for its session.
    """

    def __init__(
        self,
        sessions: ICashSessionStore,
        sales: ISaleStore,
        coordinator: SyncCoordinator,
        reconciliation: ReconciliationEngine | None = None,
    ):
        self._sessions = sessions
        self._sales = sales
        self._coordinator = coordinator
        self._reconciliation = reconciliation

    async def execute(self, request: RecordSaleRequest) -> RecordSaleResult:
        """Execute record sale use case."""
        session = await self._sessions.get(request.session_id)
        if session is None:
            raise SessionNotFoundError(request.session_id)
        if not session.is_open:
            raise NoOpenSessionError(request.session_id)

        items = [
            SaleItem(
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in request.items
        ]
        total = request.total if request.total is not None else money_sum(
            item.line_total for item in items
        )
        sale = Sale(
            session_id=session.id,
            user_id=request.user_id or session.user_id,
            total=total,
            payment_method=request.payment_method,
            status=request.status,
            items=items,
        )

        op_id = await self._coordinator.submit(
            PendingOperation(
                kind=OperationKind.CREATE,
                entity_kind=EntityKind.SALE,
                owner_key=session.id,
                payload=sale.model_dump(mode="json"),
            )
        )
        await self._sales.save(sale)
        if sale.is_pending and self._reconciliation is not None:
            self._reconciliation.revoke_validation(session.id)

        logger.info(
            "sale_recorded",
            sale_id=sale.id,
            session_id=session.id,
            total=str(sale.total),
            payment_method=sale.payment_method.value,
            status=sale.status.value,
        )
        return RecordSaleResult(sale=sale, op_id=op_id)
