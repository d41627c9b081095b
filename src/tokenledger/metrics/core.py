"""Exporter helpers for tokenledger.

The ledger registers its collectors in the default Prometheus REGISTRY; this
module only decides the port and starts the HTTP exporter. A port that cannot
be bound is logged and skipped so a demo run still completes.
"""

import logging
import os
from typing import Optional

from prometheus_client import start_http_server

log = logging.getLogger(__name__)


def resolve_port(default: int) -> int:
    """PROMETHEUS_PORT wins over the configured port; 0 disables the exporter."""
    raw = os.getenv("PROMETHEUS_PORT")
    if raw is None or raw == "":
        return int(default)
    return int(raw)


def start_server_safe(port: int) -> Optional[int]:
    """Start the exporter on `port`; return the port, or None if disabled or unbindable."""
    if port <= 0:
        log.info("Prometheus exporter disabled")
        return None
    try:
        start_http_server(port)
    except OSError as e:
        log.warning("Failed to start Prometheus server on :%d: %s", port, e)
        return None
    log.info("Prometheus metrics server started on :%d", port)
    return port
