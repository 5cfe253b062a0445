"""Error taxonomy for reconciliation invocations."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for errors that end an invocation early."""


class MissingOrderIdentifier(ReconciliationError):
    """Raised when no order identifier can be extracted from an event payload."""


class OrderNotFound(ReconciliationError):
    """Raised when a manual override cannot resolve the requested order."""


class OperationError(ReconciliationError):
    """Raised when an unexpected failure aborts the rest of an invocation."""
