"""Translate Shopify payloads to domain snapshots and back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shipsync.domain.model import (
    Fulfillment,
    FulfillmentOrder,
    FulfillmentOrderStatus,
    FulfillmentStatus,
    OrderRef,
)

if TYPE_CHECKING:
    from shipsync.domain.model import FulfillmentRequest

    from .schema import FulfillmentOrderPayload, FulfillmentPayload, OrderPayload


def parse_tags(raw: str | None) -> tuple[str, ...]:
    """Split Shopify's comma-delimited tag string, dropping blanks."""

    if not raw:
        return ()
    return tuple(tag.strip() for tag in raw.split(",") if tag.strip())


def parse_fulfillment_status(raw: str | None) -> FulfillmentStatus | None:
    if raw is None:
        return None
    try:
        return FulfillmentStatus(raw.lower())
    except ValueError:
        return None


def parse_fulfillment_order_status(raw: str) -> FulfillmentOrderStatus:
    try:
        return FulfillmentOrderStatus(raw.lower())
    except ValueError:
        return FulfillmentOrderStatus.OTHER


def to_fulfillment(payload: FulfillmentPayload) -> Fulfillment:
    return Fulfillment(
        id=payload.id,
        status=parse_fulfillment_status(payload.status),
        service=payload.service,
        tracking_company=payload.tracking_company,
        created_at=payload.created_at,
    )


def to_fulfillment_order(payload: FulfillmentOrderPayload) -> FulfillmentOrder:
    return FulfillmentOrder(
        id=payload.id,
        status=parse_fulfillment_order_status(payload.status),
        delivery_method=payload.delivery_method.method_type if payload.delivery_method else None,
    )


def to_order(payload: OrderPayload) -> OrderRef:
    return OrderRef(
        id=payload.id,
        name=payload.name,
        email=payload.email,
        tags=parse_tags(payload.tags),
        fulfillments=tuple(to_fulfillment(item) for item in payload.fulfillments),
    )


def fulfillment_request_body(request: FulfillmentRequest) -> dict[str, object]:
    body: dict[str, object] = {
        "line_items_by_fulfillment_order": [
            {"fulfillment_order_id": fulfillment_order_id}
            for fulfillment_order_id in request.fulfillment_order_ids
        ]
    }
    if request.tracking_info is not None:
        tracking: dict[str, str] = {
            "number": request.tracking_info.number,
            "company": request.tracking_info.company,
        }
        if request.tracking_info.url:
            tracking["url"] = request.tracking_info.url
        body["tracking_info"] = tracking
    if request.notify_customer:
        body["notify_customer"] = True
    if request.keep_open:
        body["status"] = "open"
    return {"fulfillment": body}
