"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from shipsync.adapters.shopify import ShopifyAdminClient
from shipsync.adapters.sqlalchemy import (
    SqlAlchemyLogStore,
    SqlAlchemySettingsStore,
    StartupError,
    is_started,
    startup,
)
from shipsync.config.reconciliation import ReconciliationConfig, get_reconciliation_config
from shipsync.domain.model import Policy
from shipsync.domain.reconciliation import OverrideOptions, ReconcilerOptions
from shipsync.domain.shipping_updates import (
    ForceStatusResult,
    WebhookResult,
    force_fulfillment_status,
    process_shipping_update,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from shipsync.domain.model import OrderId, WebhookLogRecord
    from shipsync.domain.ports import CommercePlatform, LogStore, SettingsStore

log = getLogger(__name__)


def _ensure_storage() -> None:
    """Bind storage on first use.

    A database that cannot be opened leaves storage unbound. The stores then
    fail open on their own: settings fall back to defaults and log records are
    dropped.
    """

    if is_started():
        return
    try:
        startup()
    except (SQLAlchemyError, StartupError, OSError):
        log.exception("Storage unavailable; continuing without persistence")


def reconciler_options(config: ReconciliationConfig) -> ReconcilerOptions:
    return ReconcilerOptions(
        max_attempts=config.max_attempts,
        inter_attempt_delay=config.retry_delay_seconds,
        success_is_actionable=config.success_is_actionable,
    )


def override_options(config: ReconciliationConfig) -> OverrideOptions:
    return OverrideOptions(
        settle_delay=config.settle_delay_seconds,
        success_is_actionable=config.success_is_actionable,
    )


def handle_shipping_webhook(
    payload: object,
    headers: Mapping[str, str] | None = None,
    *,
    platform: CommercePlatform | None = None,
    settings_store: SettingsStore | None = None,
    log_store: LogStore | None = None,
    config: ReconciliationConfig | None = None,
) -> WebhookResult:
    """Process one shipping webhook with the configured adapters."""

    effective_config = config or get_reconciliation_config()
    if settings_store is None or log_store is None:
        _ensure_storage()
    effective_settings = settings_store or SqlAlchemySettingsStore()
    effective_logs = log_store or SqlAlchemyLogStore()

    async def _run() -> WebhookResult:
        options = reconciler_options(effective_config)
        if platform is not None:
            return await process_shipping_update(
                payload,
                headers,
                platform=platform,
                settings_store=effective_settings,
                log_store=effective_logs,
                options=options,
            )
        async with ShopifyAdminClient() as client:
            return await process_shipping_update(
                payload,
                headers,
                platform=client,
                settings_store=effective_settings,
                log_store=effective_logs,
                options=options,
            )

    result = asyncio.run(_run())
    log.info(
        f"Webhook handled: status_code={result.status_code}, accepted={result.accepted}, "
        f"reason={result.reason}"
    )
    return result


def handle_force_status(
    order_reference: OrderId | None,
    status: str | None,
    *,
    tracking_number: str | None = None,
    tracking_company: str | None = None,
    platform: CommercePlatform | None = None,
    log_store: LogStore | None = None,
    config: ReconciliationConfig | None = None,
) -> ForceStatusResult:
    """Force a fulfillment status on one order, bypassing the webhook flow."""

    effective_config = config or get_reconciliation_config()
    if log_store is None:
        _ensure_storage()
    effective_logs = log_store or SqlAlchemyLogStore()

    async def _run() -> ForceStatusResult:
        options = override_options(effective_config)
        if platform is not None:
            return await force_fulfillment_status(
                order_reference,
                status,
                platform=platform,
                log_store=effective_logs,
                tracking_number=tracking_number,
                tracking_company=tracking_company,
                options=options,
            )
        async with ShopifyAdminClient() as client:
            return await force_fulfillment_status(
                order_reference,
                status,
                platform=client,
                log_store=effective_logs,
                tracking_number=tracking_number,
                tracking_company=tracking_company,
                options=options,
            )

    result = asyncio.run(_run())
    log.info(f"Force status handled: success={result.success}, message={result.message}")
    return result


def read_settings(*, settings_store: SettingsStore | None = None) -> Policy:
    """Return the effective policy; stored values override defaults."""

    if settings_store is None:
        _ensure_storage()
    store = settings_store or SqlAlchemySettingsStore()
    return Policy.from_settings(store.load())


def update_settings(
    values: Mapping[str, object], *, settings_store: SettingsStore | None = None
) -> Policy:
    """Upsert the supplied settings and return the resulting policy."""

    if settings_store is None:
        _ensure_storage()
    store = settings_store or SqlAlchemySettingsStore()
    store.update(values)
    return Policy.from_settings(store.load())


def recent_logs(*, limit: int = 50, log_store: LogStore | None = None) -> list[WebhookLogRecord]:
    if log_store is None:
        _ensure_storage()
    store = log_store or SqlAlchemyLogStore()
    return store.recent(limit=limit)
