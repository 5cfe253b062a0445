"""Async client for the Shopify REST Admin API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from shipsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from shipsync.config.shopify import ShopifyConfig
from shipsync.domain.ports import DEFAULT_ORDER_FIELDS, CommercePlatform, RemoteCallError

from .schema import (
    ErrorResponse,
    FulfillmentOrdersResponse,
    FulfillmentResponse,
    OrderResponse,
    OrdersResponse,
)
from .translator import fulfillment_request_body, to_fulfillment, to_fulfillment_order, to_order

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from shipsync.domain.model import (
        Fulfillment,
        FulfillmentOrder,
        FulfillmentOrderAction,
        FulfillmentRequest,
        OrderId,
        OrderRef,
    )

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class ShopifyAPIError(RemoteCallError):
    """Raised when a Shopify call fails at the transport or application level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.errors = errors


def _error_details(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict):
        try:
            return ErrorResponse.model_validate(payload).describe()
        except ValidationError:
            pass
    return str(payload)


@dataclass(slots=True)
class ShopifyAdminClient:
    """``CommercePlatform`` implementation; use as an async context manager."""

    config: ShopifyConfig = field(default_factory=ShopifyConfig.from_environment)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> ShopifyAdminClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_order(
        self, order_id: OrderId, *, fields: Sequence[str] = DEFAULT_ORDER_FIELDS
    ) -> OrderRef:
        payload = await self._request(
            "GET", f"orders/{order_id}.json", params={"fields": ",".join(fields)}
        )
        return to_order(self._validate(OrderResponse, payload).order)

    async def find_order_by_name(self, name: str) -> OrderRef | None:
        payload = await self._request(
            "GET", "orders.json", params={"name": name, "status": "any", "limit": "1"}
        )
        orders = self._validate(OrdersResponse, payload).orders
        if not orders:
            return None
        return to_order(orders[0])

    async def update_order_tags(self, order_id: OrderId, tags: str) -> None:
        await self._request(
            "PUT", f"orders/{order_id}.json", json={"order": {"id": order_id, "tags": tags}}
        )

    async def list_fulfillment_orders(self, order_id: OrderId) -> list[FulfillmentOrder]:
        payload = await self._request("GET", f"orders/{order_id}/fulfillment_orders.json")
        response = self._validate(FulfillmentOrdersResponse, payload)
        return [to_fulfillment_order(item) for item in response.fulfillment_orders]

    async def create_fulfillment_event(
        self, order_id: OrderId, fulfillment_id: OrderId, status: str
    ) -> None:
        await self._request(
            "POST",
            f"orders/{order_id}/fulfillments/{fulfillment_id}/events.json",
            json={"event": {"status": status}},
        )

    async def create_fulfillment(self, request: FulfillmentRequest) -> Fulfillment:
        payload = await self._request(
            "POST", "fulfillments.json", json=fulfillment_request_body(request)
        )
        return to_fulfillment(self._validate(FulfillmentResponse, payload).fulfillment)

    async def reopen_fulfillment(self, order_id: OrderId, fulfillment_id: OrderId) -> None:
        await self._request("POST", f"orders/{order_id}/fulfillments/{fulfillment_id}/open.json")

    async def mark_fulfillment_order(
        self, fulfillment_order_id: OrderId, action: FulfillmentOrderAction
    ) -> None:
        path = f"fulfillment_orders/{fulfillment_order_id}/{action.value}.json"
        await self._request("POST", path)

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            raise RuntimeError("ShopifyAdminClient used outside of 'async with'")
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
    ) -> dict[str, object]:
        try:
            response = await self.client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            log.warning(f"Shopify {method} {path} failed: {exc}")
            raise ShopifyAPIError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            details = _error_details(response)
            log.warning(f"Shopify API error {response.status_code} on {method} {path}: {details}")
            raise ShopifyAPIError(
                f"Shopify API error {response.status_code}: {details}",
                status_code=response.status_code,
                errors=details,
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise ShopifyAPIError(
                f"Invalid JSON from {method} {path}", status_code=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise ShopifyAPIError(
                f"Unexpected payload from {method} {path}", status_code=response.status_code
            )
        return payload  # pyright: ignore[reportUnknownVariableType]

    @staticmethod
    def _validate[TModel: BaseModel](model: type[TModel], payload: dict[str, object]) -> TModel:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ShopifyAPIError(
                f"Unexpected Shopify payload: {exc.error_count()} errors"
            ) from exc


if TYPE_CHECKING:
    _platform_check: CommercePlatform = ShopifyAdminClient()
