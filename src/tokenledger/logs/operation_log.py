from __future__ import annotations

import json
import os
from typing import Any, Dict, List
import logging
import time

from ..metrics.ledger import _safe_counter

log = logging.getLogger("tokenledger.ledger")


def _get_append_counters():
    app = _safe_counter("operation_log_appends_total", "Receipts appended to the operation log", ["token"])
    err = _safe_counter("operation_log_errors_total", "Operation log errors", ["reason", "token"])
    return app, err


REQUIRED_KEYS = {"tx_index", "token", "method", "caller", "status", "events"}


def validate_record(rec: Dict[str, Any]) -> List[str]:
    return sorted(k for k in REQUIRED_KEYS if k not in rec)


def append_jsonl(path: str, rec: Dict[str, Any]) -> bool:
    """Append one receipt record as a JSON line; return False if it was dropped."""
    token = str(rec.get("token", "unknown"))
    app, err = _get_append_counters()
    missing = validate_record(rec)
    if missing:
        err.labels("missing_fields", token).inc()
        log.warning("operation log record dropped, missing %s", ",".join(missing))
        return False
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    except OSError as e:
        err.labels("io_error", token).inc()
        log.warning("operation log write to %s failed: %s", path, e)
        return False
    app.labels(token).inc()
    return True


def read_jsonl(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def log_ledger_event(event_type: str, token: str, **fields: Any) -> None:
    """Emit a single-line JSON structured log for a ledger lifecycle event.

    Keys: event, token, ts, severity, component, schema_version, plus `fields`.
    """
    payload: Dict[str, Any] = {
        "event": str(event_type),
        "token": str(token),
        "ts": int(time.time() * 1000),
        "severity": "INFO",
        "component": "ledger",
        "schema_version": "v1",
    }
    payload.update(fields)
    log.info(json.dumps(payload, separators=(",", ":"), default=str))
