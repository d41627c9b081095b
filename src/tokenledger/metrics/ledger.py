from __future__ import annotations

from typing import Optional
import logging
import os
from prometheus_client import Counter, Gauge, REGISTRY

log = logging.getLogger(__name__)

_transfers_total: Optional[Counter] = None
_transfer_volume_total: Optional[Counter] = None
_approvals_total: Optional[Counter] = None
_rejected_total: Optional[Counter] = None
_total_supply: Optional[Gauge] = None
_holders: Optional[Gauge] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None


def _disabled() -> bool:
    return os.getenv("DISABLE_PROMETHEUS", "0") == "1"


def _existing(name: str):
    """Look up a collector already registered under `name` in the default REGISTRY."""
    coll = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
    if coll is not None:
        return coll
    for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):
        if getattr(coll, "_name", None) == name:
            return coll
    return None


def _safe_counter(name: str, doc: str, labelnames):
    if _disabled():
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        # Duplicate registration (module reloads, repeated getters in tests)
        coll = _existing(name)
        if coll is not None:
            return coll
        log.warning("metric %s unavailable; using no-op", name)
        return _NoOp()


def _safe_gauge_labels(name: str, doc: str, labelnames):
    if _disabled():
        return _NoOp()
    try:
        return Gauge(name, doc, labelnames)
    except ValueError:
        coll = _existing(name)
        if isinstance(coll, Gauge):
            return coll
        log.warning("metric %s unavailable; using no-op", name)
        return _NoOp()


def get_transfers_total():
    """Counter: successful token movements, by token and method (transfer|transferFrom)."""
    global _transfers_total
    if _transfers_total is None:
        _transfers_total = _safe_counter("token_transfers_total", "Token transfers", ["token", "method"])
    return _transfers_total


def get_transfer_volume_total():
    """Counter: whole-token volume moved (float; smallest units overflow a double's precision)."""
    global _transfer_volume_total
    if _transfer_volume_total is None:
        _transfer_volume_total = _safe_counter(
            "token_transfer_volume_total", "Token volume moved in whole-token units", ["token"]
        )
    return _transfer_volume_total


def get_approvals_total():
    global _approvals_total
    if _approvals_total is None:
        _approvals_total = _safe_counter("token_approvals_total", "Token approvals", ["token"])
    return _approvals_total


def get_operations_rejected_total():
    global _rejected_total
    if _rejected_total is None:
        _rejected_total = _safe_counter(
            "token_operations_rejected_total", "Rejected ledger operations", ["token", "method", "reason"]
        )
    return _rejected_total


def get_total_supply_gauge():
    global _total_supply
    if _total_supply is None:
        _total_supply = _safe_gauge_labels("token_total_supply", "Total supply in whole-token units", ["token"])
    return _total_supply


def get_holders_gauge():
    global _holders
    if _holders is None:
        _holders = _safe_gauge_labels("token_holders", "Accounts with a non-zero balance", ["token"])
    return _holders
