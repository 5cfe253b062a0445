from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from shipsync import app
from shipsync.adapters.sqlalchemy import (
    SqlAlchemyLogStore,
    SqlAlchemySettingsStore,
    is_started,
    shutdown,
)
from shipsync.config.reconciliation import ReconciliationConfig
from shipsync.domain.model import FulfillmentUpdateStatus, LogStatus, TagStatus, TargetStatus
from tests.helpers.commerce import FakeCommercePlatform, make_order, open_fulfillment
from tests.helpers.stores import FakeLogStore, FakeSettingsStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from shipsync.adapters.sqlalchemy import SqlAlchemyUnitOfWork

FAST = ReconciliationConfig(retry_delay_seconds=0.0, settle_delay_seconds=0.0)


def test_options_follow_configuration() -> None:
    config = ReconciliationConfig(
        max_attempts=5,
        retry_delay_seconds=1.5,
        settle_delay_seconds=0.5,
        success_is_actionable=False,
    )

    reconciler = app.reconciler_options(config)
    override = app.override_options(config)

    assert reconciler.max_attempts == 5
    assert reconciler.inter_attempt_delay == 1.5
    assert reconciler.success_is_actionable is False
    assert override.settle_delay == 0.5


def test_webhook_with_injected_collaborators(platform: FakeCommercePlatform) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))
    settings_store = FakeSettingsStore(
        values={"fulfillment_update_enabled": True, "fulfillment_status": "delivered"}
    )
    log_store = FakeLogStore()

    result = app.handle_shipping_webhook(
        {"id": 123},
        {"x-shopify-topic": "fulfillments/update"},
        platform=platform,
        settings_store=settings_store,
        log_store=log_store,
        config=FAST,
    )

    assert result.status_code == 200
    assert platform.calls[-1] == ("create_fulfillment_event", (123, 555, "delivered"))
    assert log_store.last.status is LogStatus.SUCCESS


def test_webhook_persists_log_and_reads_settings_from_database(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    platform: FakeCommercePlatform,
) -> None:
    platform.add_order(make_order(123))
    settings = SqlAlchemySettingsStore(unit_of_work_factory=sqlite_unit_of_work)
    settings.update({"tagging_enabled": True, "tag_name": "ofd"})

    result = app.handle_shipping_webhook({"id": 123}, platform=platform, config=FAST)

    assert result.status_code == 200
    assert platform.orders["123"].tags == ("ofd",)
    logs = app.recent_logs(log_store=SqlAlchemyLogStore(unit_of_work_factory=sqlite_unit_of_work))
    assert logs[0].message == "Processed Order 123"
    assert logs[0].summary == {
        "tag": {"status": "success", "tagName": "ofd"},
        "fulfillment": {"status": "skipped", "retries": 0},
    }


def test_update_settings_returns_effective_policy() -> None:
    store = FakeSettingsStore()

    policy = app.update_settings(
        {"fulfillment_update_enabled": "true", "fulfillment_status": "out_for_delivery"},
        settings_store=store,
    )

    assert policy.fulfillment_update_enabled is True
    assert policy.target_status is TargetStatus.OUT_FOR_DELIVERY
    assert app.read_settings(settings_store=store) == policy


def test_force_status_with_injected_platform(platform: FakeCommercePlatform) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))
    log_store = FakeLogStore()

    result = app.handle_force_status(
        "123", "delivered", platform=platform, log_store=log_store, config=FAST
    )

    assert result.success is True
    assert result.message == "Status updated successfully"
    assert log_store.last.message == "Manually forced status: delivered for Order 123"


@pytest.fixture
def unreachable_database(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    shutdown()
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:////nonexistent-dir/shipsync/x.db")
    try:
        yield
    finally:
        shutdown()


@pytest.mark.usefixtures("unreachable_database")
def test_webhook_runs_with_default_policy_when_database_is_unreachable(
    platform: FakeCommercePlatform, caplog: pytest.LogCaptureFixture
) -> None:
    platform.add_order(make_order(123))

    with caplog.at_level(logging.ERROR):
        result = app.handle_shipping_webhook({"id": 123}, platform=platform, config=FAST)

    assert result.status_code == 200
    assert result.accepted is True
    assert result.outcome is not None
    assert result.outcome.tag.status is TagStatus.SKIPPED
    assert result.outcome.fulfillment.status is FulfillmentUpdateStatus.SKIPPED
    assert is_started() is False
    assert "Storage unavailable" in caplog.text
    assert "Database Error while recording webhook log" in caplog.text


@pytest.mark.usefixtures("unreachable_database")
def test_force_status_runs_when_database_is_unreachable(platform: FakeCommercePlatform) -> None:
    platform.add_order(make_order(123, fulfillments=[open_fulfillment(555)]))

    result = app.handle_force_status("123", "delivered", platform=platform, config=FAST)

    assert result.success is True
    assert platform.calls[-1] == ("create_fulfillment_event", (123, 555, "delivered"))
