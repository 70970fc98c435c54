"""Close Cash Session Use Case: validate, summarize, close."""

from dataclasses import dataclass
from decimal import Decimal

from possync.config import get_logger
from possync.core.entities import CashSession, ClosingValidation, ReconciliationSummary
from possync.core.services import ReconciliationEngine

logger = get_logger(__name__)


@dataclass
class CloseCashSessionResult:
    """Result of a close attempt. ``session`` is None when validation blocked it."""

    validation: ClosingValidation
    summary: ReconciliationSummary | None = None
    session: CashSession | None = None

    @property
    def closed(self) -> bool:
        return self.session is not None


class CloseCashSessionUseCase:
    """Run the full closing flow for the cash-register screen."""

    def __init__(self, engine: ReconciliationEngine):
        self._engine = engine

    async def execute(
        self, session_id: str, declared_closing_amount: Decimal
    ) -> CloseCashSessionResult:
        """Execute close cash session use case."""
        validation = await self._engine.validate_for_closing(session_id)
        if not validation.can_close:
            logger.info(
                "cash_session_close_blocked", session_id=session_id, issues=validation.issues
            )
            return CloseCashSessionResult(validation=validation)

        summary = await self._engine.summarize(session_id, declared_closing_amount)
        session = await self._engine.close_session(session_id, declared_closing_amount)
        return CloseCashSessionResult(validation=validation, summary=summary, session=session)
