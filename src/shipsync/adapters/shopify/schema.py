"""Pydantic models describing the Shopify REST Admin API payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ShopifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FulfillmentPayload(ShopifyBaseModel):
    id: int
    status: str | None = None
    service: str | None = None
    tracking_company: str | None = None
    created_at: datetime | None = None

    _normalize_status = field_validator("status", "service", "tracking_company", mode="before")(
        _blank_to_none
    )


class OrderPayload(ShopifyBaseModel):
    id: int
    name: str | None = None
    email: str | None = None
    tags: str | None = None
    fulfillments: list[FulfillmentPayload] = Field(default_factory=list[FulfillmentPayload])

    _normalize_text = field_validator("name", "email", "tags", mode="before")(_blank_to_none)

    @field_validator("fulfillments", mode="before")
    @classmethod
    def _null_fulfillments(cls, value: object) -> object:
        return [] if value is None else value


class DeliveryMethodPayload(ShopifyBaseModel):
    method_type: str | None = None


class FulfillmentOrderPayload(ShopifyBaseModel):
    id: int
    status: str
    delivery_method: DeliveryMethodPayload | None = None


class OrderResponse(ShopifyBaseModel):
    order: OrderPayload


class OrdersResponse(ShopifyBaseModel):
    orders: list[OrderPayload]


class FulfillmentOrdersResponse(ShopifyBaseModel):
    fulfillment_orders: list[FulfillmentOrderPayload]


class FulfillmentResponse(ShopifyBaseModel):
    fulfillment: FulfillmentPayload


class ErrorResponse(ShopifyBaseModel):
    errors: object = None
    error: object = None

    def describe(self) -> str:
        detail = self.errors if self.errors is not None else self.error
        if detail is None:
            return "unknown error"
        return str(detail)
