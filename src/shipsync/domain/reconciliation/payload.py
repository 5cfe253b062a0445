"""Recognised webhook payload shapes and the order identity resolver.

Shipping providers post either the order itself (``{"id": ...}``) or an
envelope (``{"data": {"order": {"id": ...}}}``). Anything else is rejected;
payloads are never searched at arbitrary depth.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from shipsync.domain.model import TrackingInfo

from .errors import MissingOrderIdentifier

if TYPE_CHECKING:
    from shipsync.domain.model import OrderId

    from .tracer import FlowTracer

DEFAULT_TRACKING_NUMBER = "PENDING"
DEFAULT_TRACKING_COMPANY = "Local Delivery"


@dataclass(slots=True, frozen=True)
class TopLevelOrderPayload:
    order_id: OrderId


@dataclass(slots=True, frozen=True)
class NestedOrderPayload:
    order_id: OrderId


@dataclass(slots=True, frozen=True)
class UnrecognizedPayload:
    pass


type PayloadShape = TopLevelOrderPayload | NestedOrderPayload | UnrecognizedPayload


def _as_mapping(value: object) -> Mapping[str, object] | None:
    if isinstance(value, Mapping):
        return cast(Mapping[str, object], value)
    return None


def _as_order_id(value: object) -> OrderId | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _nested(payload: Mapping[str, object] | None, *path: str) -> object:
    current: object = payload
    for key in path:
        mapping = _as_mapping(current)
        if mapping is None:
            return None
        current = mapping.get(key)
    return current


def classify_payload(raw: object) -> PayloadShape:
    payload = _as_mapping(raw)
    top_level = _as_order_id(_nested(payload, "id"))
    if top_level is not None:
        return TopLevelOrderPayload(order_id=top_level)
    nested = _as_order_id(_nested(payload, "data", "order", "id"))
    if nested is not None:
        return NestedOrderPayload(order_id=nested)
    return UnrecognizedPayload()


def resolve_order_id(raw: object, *, tracer: FlowTracer) -> OrderId:
    """Return the order identifier carried by ``raw`` or raise ``MissingOrderIdentifier``."""

    payload = _as_mapping(raw)
    top_level = _as_order_id(_nested(payload, "id"))
    tracer.add("Initial Order ID check", {"orderId": top_level})

    match classify_payload(raw):
        case TopLevelOrderPayload(order_id=order_id):
            return order_id
        case NestedOrderPayload(order_id=order_id):
            tracer.add("Found Order ID in nested payload", {"orderId": order_id})
            return order_id
        case UnrecognizedPayload():
            tracer.add("Error: No Order ID found")
            raise MissingOrderIdentifier("No Order ID found")


def _first_text(payload: Mapping[str, object] | None, *paths: tuple[str, ...]) -> str | None:
    for path in paths:
        value = _nested(payload, *path)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def extract_tracking_info(
    raw: object,
    *,
    default_number: str = DEFAULT_TRACKING_NUMBER,
    default_company: str = DEFAULT_TRACKING_COMPANY,
) -> TrackingInfo:
    payload = _as_mapping(raw)
    number = _first_text(
        payload,
        ("awb_no",),
        ("data", "awb_no"),
        ("tracking_number",),
        ("data", "tracking_number"),
    )
    company = _first_text(payload, ("tracking_company",), ("data", "tracking_company"))
    url = _first_text(payload, ("tracking_url",), ("data", "tracking_url"))
    return TrackingInfo(
        number=number or default_number,
        company=company or default_company,
        url=url,
    )


def extract_customer_email(raw: object) -> str | None:
    payload = _as_mapping(raw)
    return _first_text(
        payload,
        ("email",),
        ("customer", "email"),
        ("data", "order", "email"),
        ("data", "customer", "email"),
    )
