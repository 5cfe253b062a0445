"""Public interface for the Shopify adapter."""

from __future__ import annotations

from .client import ShopifyAdminClient, ShopifyAPIError
from .schema import (
    FulfillmentOrderPayload,
    FulfillmentPayload,
    OrderPayload,
    OrderResponse,
)
from .translator import fulfillment_request_body, parse_tags, to_order

__all__ = [
    "FulfillmentOrderPayload",
    "FulfillmentPayload",
    "OrderPayload",
    "OrderResponse",
    "ShopifyAPIError",
    "ShopifyAdminClient",
    "fulfillment_request_body",
    "parse_tags",
    "to_order",
]
