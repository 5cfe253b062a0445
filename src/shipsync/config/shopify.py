"""Shopify Admin API connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

if TYPE_CHECKING:
    import httpx

log = getLogger(__name__)

SHOPIFY_DEFAULT_API_VERSION = "2024-01"
SHOPIFY_TIMEOUT_SECONDS = 20.0
# REST Admin API leaky bucket refills at two requests per second.
SHOPIFY_RATE_LIMIT = RateLimit(max_calls=2, per_seconds=1.0)
CALL_LIMIT_HEADER = "X-Shopify-Shop-Api-Call-Limit"
CALL_LIMIT_WARNING_RATIO = 0.8


async def warn_on_call_limit(response: httpx.Response) -> None:
    """Log when the shop's API bucket (e.g. ``"32/40"``) is close to full."""

    raw = response.headers.get(CALL_LIMIT_HEADER)
    if not raw:
        return
    used, _, capacity = raw.partition("/")
    try:
        ratio = int(used) / int(capacity)
    except (ValueError, ZeroDivisionError):
        return
    if ratio >= CALL_LIMIT_WARNING_RATIO:
        log.warning(f"Shopify API call limit at {raw} after {response.request.url.path}")


def normalize_shop_domain(value: str) -> str:
    """Return the ``<shop>.myshopify.com`` host for a shop name or host."""

    host = value.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
    if "." not in host:
        host = f"{host}.myshopify.com"
    return host


@dataclass(frozen=True)
class ShopifyConfig:
    """Holds Shopify Admin API configuration values."""

    shop_domain: str
    access_token: str
    api_version: str = SHOPIFY_DEFAULT_API_VERSION

    @property
    def base_url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/"

    def resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name="shopify",
            base_url=self.base_url,
            timeout_seconds=SHOPIFY_TIMEOUT_SECONDS,
            ratelimit=SHOPIFY_RATE_LIMIT,
            response_hooks=(warn_on_call_limit,),
            default_headers={
                "X-Shopify-Access-Token": self.access_token,
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_environment(cls) -> ShopifyConfig:
        values = require_env_vars(("SHOPIFY_SHOP_DOMAIN", "SHOPIFY_ACCESS_TOKEN"))
        api_version = os.getenv("SHOPIFY_API_VERSION", "").strip() or SHOPIFY_DEFAULT_API_VERSION
        return cls(
            shop_domain=normalize_shop_domain(values["SHOPIFY_SHOP_DOMAIN"]),
            access_token=values["SHOPIFY_ACCESS_TOKEN"],
            api_version=api_version,
        )


def get_shopify_config() -> ShopifyConfig:
    return ShopifyConfig.from_environment()
