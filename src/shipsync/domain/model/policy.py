"""Per-invocation policy snapshot loaded from the settings store."""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .enums import TargetStatus

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

DEFAULT_TAG_NAME: Final[str] = "test-ofd"

SETTING_KEYS: Final[tuple[str, ...]] = (
    "system_enabled",
    "tagging_enabled",
    "tag_name",
    "fulfillment_update_enabled",
    "fulfillment_status",
    "test_email",
)
_BOOLEAN_KEYS: Final[frozenset[str]] = frozenset(
    {"system_enabled", "tagging_enabled", "fulfillment_update_enabled"}
)
_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"false", "0", "no", "n", "off", ""})


def coerce_bool(value: object) -> bool:
    """Normalise loosely typed flags (``"true"``, ``1``, ``True``) to ``bool``."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    return bool(value)


def _coerce_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True, frozen=True, kw_only=True)
class Policy:
    """Immutable configuration snapshot; never mutated by the engine."""

    system_enabled: bool = True
    tagging_enabled: bool = False
    tag_name: str = DEFAULT_TAG_NAME
    fulfillment_update_enabled: bool = False
    target_status: TargetStatus = TargetStatus.IN_TRANSIT
    test_email_filter: str | None = None

    @classmethod
    def from_settings(cls, settings: Mapping[str, object]) -> Policy:
        """Build a policy from raw store values; unknown keys are ignored."""

        policy = cls()
        updates: dict[str, object] = {}
        for key, value in settings.items():
            if key in _BOOLEAN_KEYS:
                updates[key] = coerce_bool(value)
            elif key == "tag_name":
                updates["tag_name"] = _coerce_text(value) or ""
            elif key == "fulfillment_status":
                updates["target_status"] = _coerce_target_status(value, policy.target_status)
            elif key == "test_email":
                updates["test_email_filter"] = _coerce_text(value)
        return replace(policy, **updates)

    def as_settings(self) -> dict[str, object]:
        return {
            "system_enabled": self.system_enabled,
            "tagging_enabled": self.tagging_enabled,
            "tag_name": self.tag_name,
            "fulfillment_update_enabled": self.fulfillment_update_enabled,
            "fulfillment_status": self.target_status.value,
            "test_email": self.test_email_filter or "",
        }


def _coerce_target_status(value: object, default: TargetStatus) -> TargetStatus:
    text = _coerce_text(value)
    if text is None:
        return default
    try:
        return TargetStatus(text.lower())
    except ValueError:
        log.warning(f"Unknown fulfillment status setting {text!r}; using {default.value}")
        return default


DEFAULT_POLICY: Final[Policy] = Policy()
