"""Sale endpoints."""

from fastapi import APIRouter, Depends, Query, status

from possync.api.dependencies import (
    get_record_sale_use_case,
    get_sale_store,
    get_update_sale_status_use_case,
)
from possync.application.dto.requests import RecordSaleRequest, UpdateSaleStatusRequest
from possync.application.dto.responses import SaleListResponse, SaleResponse
from possync.application.use_cases import RecordSaleUseCase, UpdateSaleStatusUseCase
from possync.core.interfaces import ISaleStore

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def record_sale(
    request: RecordSaleRequest,
    use_case: RecordSaleUseCase = Depends(get_record_sale_use_case),
) -> SaleResponse:
    """Record a sale locally and queue it for the remote."""
    result = await use_case.execute(request)
    return SaleResponse.from_entity(result.sale)


@router.get("", response_model=SaleListResponse)
async def list_sales(
    session_id: str = Query(..., min_length=1),
    store: ISaleStore = Depends(get_sale_store),
) -> SaleListResponse:
    """Locally recorded sales for a session."""
    sales = await store.list_for_session(session_id)
    return SaleListResponse(
        sales=[SaleResponse.from_entity(sale) for sale in sales],
        total=len(sales),
    )


@router.patch("/{sale_id}/status", response_model=SaleResponse)
async def update_sale_status(
    sale_id: str,
    request: UpdateSaleStatusRequest,
    use_case: UpdateSaleStatusUseCase = Depends(get_update_sale_status_use_case),
) -> SaleResponse:
    """Settle a pending sale."""
    result = await use_case.execute(sale_id, request.status)
    return SaleResponse.from_entity(result.sale)
