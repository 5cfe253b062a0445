"""Policy loading and the gates that may short-circuit an invocation."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from shipsync.domain.model import DEFAULT_POLICY, Policy
from shipsync.domain.ports import SettingsUnavailable

if TYPE_CHECKING:
    from shipsync.domain.ports import SettingsStore

    from .tracer import FlowTracer

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GateDecision:
    proceed: bool
    reason: str | None = None


PROCEED = GateDecision(proceed=True)


def load_policy(store: SettingsStore, *, tracer: FlowTracer) -> Policy:
    """Read the policy snapshot, failing open to the defaults."""

    try:
        settings = store.load()
    except SettingsUnavailable as exc:
        log.warning(f"Error loading settings: {exc}")
        tracer.add("Error loading settings", {"message": "Using defaults", "error": str(exc)})
        return DEFAULT_POLICY

    policy = Policy.from_settings(settings)
    tracer.add("Settings Loaded", policy.as_settings())
    return policy


def check_system_enabled(policy: Policy, *, tracer: FlowTracer) -> GateDecision:
    if policy.system_enabled:
        return PROCEED
    tracer.add("System Disabled", {"message": "Skipping processing"})
    return GateDecision(proceed=False, reason="System disabled")


def check_test_filter(policy: Policy, email: str | None, *, tracer: FlowTracer) -> GateDecision:
    wanted = policy.test_email_filter
    if not wanted:
        return PROCEED
    if email is not None and email.strip().lower() == wanted.strip().lower():
        tracer.add("Test email filter matched", {"email": email})
        return PROCEED
    tracer.add("Skipped by test email filter", {"email": email, "filter": wanted})
    return GateDecision(proceed=False, reason="Order does not match test email filter")
