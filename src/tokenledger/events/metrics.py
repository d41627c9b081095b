from __future__ import annotations

from typing import Optional
from prometheus_client import Counter

from ..metrics.ledger import _safe_counter

_events_total: Optional[Counter] = None
_publish_failures_total: Optional[Counter] = None


def get_events_total():
    global _events_total
    if _events_total is None:
        _events_total = _safe_counter("ledger_events_total", "Ledger events published", ["type"])
    return _events_total


def get_publish_failures_total():
    global _publish_failures_total
    if _publish_failures_total is None:
        _publish_failures_total = _safe_counter(
            "ledger_event_publish_failures_total", "Event bus writes that failed", ["stream"]
        )
    return _publish_failures_total
