"""Reconcile Shopify fulfillment statuses from shipping-provider webhooks."""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("shipsync")
except metadata.PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0+local"
