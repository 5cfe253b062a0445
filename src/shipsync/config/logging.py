"""Process-wide logging setup for the CLI entry point."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "SHIPSYNC_LOG_LEVEL"
# Each Admin API request is already traced in the flow log.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def resolve_log_level(default: int = logging.INFO) -> int:
    raw = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelNamesMapping().get(raw)
    return default if level is None else level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Route flow-trace lines and adapter warnings to stderr.

    ``level`` defaults to ``SHIPSYNC_LOG_LEVEL`` (INFO when unset).
    """

    logging.basicConfig(
        level=level if level is not None else resolve_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
