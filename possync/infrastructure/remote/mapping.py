"""
Translation between local entities and the remote API's JSON.

The remote speaks camelCase and calls an open session ACTIVE.
"""

from datetime import datetime
from typing import Any

from pydantic.alias_generators import to_camel

from possync.config import get_logger
from possync.core.clock import utc_now
from possync.core.entities.cash_session import CashSession, CashSessionStatus
from possync.core.entities.operation import EntityKind
from possync.core.entities.sale import PaymentMethod, Sale, SaleItem, SaleStatus

logger = get_logger(__name__)

REMOTE_SESSION_STATUS = {
    CashSessionStatus.OPEN: "ACTIVE",
    CashSessionStatus.CLOSED: "CLOSED",
}

LOCAL_SESSION_STATUS = {
    "ACTIVE": CashSessionStatus.OPEN,
    "OPEN": CashSessionStatus.OPEN,
    "CLOSED": CashSessionStatus.CLOSED,
    "CONSOLIDATED": CashSessionStatus.CLOSED,
}


def unwrap(body: Any) -> Any:
    """Some endpoints wrap results in ``{"data": ...}``."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def to_remote(entity_kind: EntityKind, payload: dict[str, Any]) -> dict[str, Any]:
    """Shape an operation payload for the remote API."""
    if entity_kind == EntityKind.SETTINGS:
        return dict(payload)

    body = {to_camel(key): value for key, value in payload.items()}
    if entity_kind == EntityKind.CASH_SESSION:
        status = payload.get("status")
        if status in CashSessionStatus.__members__:
            body["status"] = REMOTE_SESSION_STATUS[CashSessionStatus(status)]
        if "declared_closing_amount" in payload:
            body["closingAmount"] = body.pop("declaredClosingAmount")
        if payload.get("register_id"):
            body["cashRegisterId"] = body.pop("registerId")
    elif entity_kind == EntityKind.SALE:
        if "session_id" in payload:
            body["cashSessionId"] = body.pop("sessionId")
        if "items" in payload:
            body["items"] = [
                {
                    "productId": item.get("product_id"),
                    "productName": item.get("name", ""),
                    "quantity": item.get("quantity", 1),
                    "price": item.get("unit_price", 0),
                }
                for item in payload["items"]
            ]
    return body


def session_from_remote(data: dict[str, Any]) -> CashSession:
    """Build a CashSession from a remote cash-session document."""
    status = str(data.get("status", "ACTIVE")).upper()
    return CashSession(
        id=str(data["id"]),
        user_id=str(data.get("userId") or data.get("user_id") or ""),
        register_id=data.get("cashRegisterId"),
        status=LOCAL_SESSION_STATUS.get(status, CashSessionStatus.CLOSED),
        opening_amount=data.get("openingAmount") or 0,
        declared_closing_amount=data.get("closingAmount"),
        notes=data.get("sessionName"),
        opened_at=_parse_time(data.get("openedAt") or data.get("createdAt")),
        closed_at=_parse_time(data["closedAt"]) if data.get("closedAt") else None,
    )


def sale_from_remote(data: dict[str, Any]) -> Sale:
    """Build a Sale from a remote sale document."""
    session_id = (
        data.get("cashSessionId") or data.get("sessionId") or data.get("cashRegisterId") or ""
    )
    items = [
        SaleItem(
            product_id=str(item.get("productId", "")),
            name=item.get("productName", ""),
            quantity=item.get("quantity", 1),
            unit_price=item.get("price", 0),
        )
        for item in data.get("items") or []
    ]
    created_at = _parse_time(data.get("createdAt"))
    return Sale(
        id=str(data["id"]),
        session_id=str(session_id),
        user_id=data.get("userId"),
        total=data.get("total", data.get("totalAmount", 0)),
        payment_method=_payment_method(data.get("paymentMethod")),
        status=_sale_status(data.get("status")),
        items=items,
        created_at=created_at,
        updated_at=_parse_time(data.get("updatedAt")) if data.get("updatedAt") else created_at,
    )


def _sale_status(value: Any) -> SaleStatus:
    # Anything unrecognised is treated as unsettled so it blocks closing
    try:
        return SaleStatus(str(value).upper())
    except ValueError:
        logger.warning("unknown_sale_status", value=value)
        return SaleStatus.PENDING


def _payment_method(value: Any) -> PaymentMethod:
    try:
        return PaymentMethod(str(value).upper())
    except ValueError:
        # Unknown tenders count as card: informational, never expected cash
        logger.warning("unknown_payment_method", value=value)
        return PaymentMethod.CARD


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return utc_now()
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
