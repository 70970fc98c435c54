"""Cash session endpoints: open, validate, summarize, close."""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status

from possync.api.dependencies import (
    get_close_cash_session_use_case,
    get_open_cash_session_use_case,
    get_reconciliation,
    get_session_store,
)
from possync.application.dto.requests import CloseCashSessionRequest, OpenCashSessionRequest
from possync.application.dto.responses import (
    CashSessionResponse,
    CloseCashSessionResponse,
    ClosingValidationResponse,
    OpenCashSessionResponse,
    ReconciliationSummaryResponse,
)
from possync.application.use_cases import CloseCashSessionUseCase, OpenCashSessionUseCase
from possync.core.exceptions import SessionNotFoundError
from possync.core.interfaces import ICashSessionStore
from possync.core.services import ReconciliationEngine

router = APIRouter(prefix="/api/cash-sessions", tags=["cash-sessions"])


@router.post(
    "",
    response_model=OpenCashSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_cash_session(
    request: OpenCashSessionRequest,
    use_case: OpenCashSessionUseCase = Depends(get_open_cash_session_use_case),
) -> OpenCashSessionResponse:
    """Open a session, or return the user's existing open session."""
    result = await use_case.execute(request)
    return OpenCashSessionResponse(
        session=CashSessionResponse.from_entity(result.session),
        adopted=result.adopted,
    )


@router.get("/{session_id}", response_model=CashSessionResponse)
async def get_cash_session(
    session_id: str,
    store: ICashSessionStore = Depends(get_session_store),
) -> CashSessionResponse:
    """Get a locally known session."""
    session = await store.get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return CashSessionResponse.from_entity(session)


@router.get("/{session_id}/validation", response_model=ClosingValidationResponse)
async def validate_for_closing(
    session_id: str,
    engine: ReconciliationEngine = Depends(get_reconciliation),
) -> ClosingValidationResponse:
    """Check whether the session may close. Blocking reasons come back as issues."""
    return ClosingValidationResponse.from_entity(
        await engine.validate_for_closing(session_id)
    )


@router.get("/{session_id}/summary", response_model=ReconciliationSummaryResponse)
async def summarize(
    session_id: str,
    declared_closing_amount: Decimal = Query(..., ge=0),
    engine: ReconciliationEngine = Depends(get_reconciliation),
) -> ReconciliationSummaryResponse:
    """Expected cash, per-method totals and the discrepancy for a declared count."""
    return ReconciliationSummaryResponse.from_entity(
        await engine.summarize(session_id, declared_closing_amount)
    )


@router.post("/{session_id}/close", response_model=CloseCashSessionResponse)
async def close_cash_session(
    session_id: str,
    request: CloseCashSessionRequest,
    use_case: CloseCashSessionUseCase = Depends(get_close_cash_session_use_case),
) -> CloseCashSessionResponse:
    """Validate, summarize and close. A blocked validation returns ``closed: false``."""
    result = await use_case.execute(session_id, request.declared_closing_amount)
    return CloseCashSessionResponse(
        closed=result.closed,
        validation=ClosingValidationResponse.from_entity(result.validation),
        summary=ReconciliationSummaryResponse.from_entity(result.summary)
        if result.summary
        else None,
        session=CashSessionResponse.from_entity(result.session) if result.session else None,
    )
