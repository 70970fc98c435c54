"""Update Sale Status Use Case: settle a pending sale."""

from dataclasses import dataclass

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.entities import EntityKind, OperationKind, PendingOperation, Sale, SaleStatus
from possync.core.exceptions import InvalidSaleStateError, SaleNotFoundError
from possync.core.interfaces import ISaleStore
from possync.core.services import SyncCoordinator

logger = get_logger(__name__)


@dataclass
class UpdateSaleStatusResult:
    """Result of updating a sale's status."""

    sale: Sale
    op_id: str


class UpdateSaleStatusUseCase:
    """
    Move a PENDING sale to a terminal status.

    The update is queued under the same ordering key as the sale's create,
    so the remote never sees it first.
    """

    def __init__(
        self,
        sales: ISaleStore,
        coordinator: SyncCoordinator,
        clock: Clock = utc_now,
    ):
        self._sales = sales
        self._coordinator = coordinator
        self._clock = clock

    async def execute(self, sale_id: str, status: SaleStatus) -> UpdateSaleStatusResult:
        """Execute update sale status use case."""
        sale = await self._sales.get(sale_id)
        if sale is None:
            raise SaleNotFoundError(sale_id)
        if not sale.can_transition_to(status):
            raise InvalidSaleStateError(sale_id, sale.status.value, status.value)

        updated = sale.model_copy(update={"status": status, "updated_at": self._clock()})
        op_id = await self._coordinator.submit(
            PendingOperation(
                kind=OperationKind.UPDATE,
                entity_kind=EntityKind.SALE,
                owner_key=updated.session_id,
                payload=updated.model_dump(mode="json"),
            )
        )
        await self._sales.save(updated)

        logger.info("sale_status_updated", sale_id=sale_id, status=status.value)
        return UpdateSaleStatusResult(sale=updated, op_id=op_id)
