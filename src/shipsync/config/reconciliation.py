"""Tuning knobs for the fulfillment reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 3.0
DEFAULT_SETTLE_DELAY_SECONDS = 3.0


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    success_is_actionable: bool = True


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        max_attempts=env_int("SHIPSYNC_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, minimum=1),
        retry_delay_seconds=env_float(
            "SHIPSYNC_RETRY_DELAY_SECONDS", DEFAULT_RETRY_DELAY_SECONDS, minimum=0.0
        ),
        settle_delay_seconds=env_float(
            "SHIPSYNC_SETTLE_DELAY_SECONDS", DEFAULT_SETTLE_DELAY_SECONDS, minimum=0.0
        ),
        success_is_actionable=env_bool("SHIPSYNC_SUCCESS_IS_ACTIONABLE", True),  # noqa: FBT003
    )
