from __future__ import annotations

import json
import os
import logging

import redis

from .schema import EventEnvelope
from .metrics import get_events_total, get_publish_failures_total


STREAM_EVENTS = os.getenv("EVENTS_STREAM", "tokenledger.events")
STREAM_DLQ = os.getenv("EVENTS_DLQ", "tokenledger.dlq")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

log = logging.getLogger("tokenledger.events")


def _get_redis():
    return redis.Redis.from_url(os.getenv("REDIS_URL", REDIS_URL), decode_responses=True)


def encode(env: EventEnvelope) -> str:
    """Compact JSON line for an envelope; event fields use their wire names (from/to/value)."""
    event = env.event.model_dump(by_alias=True)
    event["value"] = str(event["value"])
    return json.dumps({
        "schema_version": env.schema_version,
        "correlation_id": env.correlation_id,
        "sequence": env.sequence,
        "event": event,
    }, separators=(",", ":"))


def publish(env: EventEnvelope) -> None:
    """Publish an event to Redis Streams and log a single-line JSON record.

    Bus errors are logged and counted but never raised; a ledger call that has
    already committed must not look failed because the stream is down.
    """
    get_events_total().labels(env.event.event_type).inc()
    line = encode(env)
    try:
        _get_redis().xadd(STREAM_EVENTS, {"json": line})
    except redis.RedisError as e:
        get_publish_failures_total().labels(STREAM_EVENTS).inc()
        log.warning("event stream write failed: %s", e)
        try:
            _get_redis().xadd(STREAM_DLQ, {"json": line})
        except redis.RedisError as e2:
            get_publish_failures_total().labels(STREAM_DLQ).inc()
            log.warning("dead-letter write failed: %s", e2)
    log.info(line)


def ensure_group(group: str) -> None:
    r = _get_redis()
    try:
        r.xgroup_create(name=STREAM_EVENTS, groupname=group, id="$", mkstream=True)
    except redis.ResponseError as e:
        if "BUSYGROUP" not in str(e):
            raise


def consume(group: str, consumer: str, block_ms: int = 15000):
    """Generator yielding (id, json_str) from the stream consumer group, or None on timeout.

    Caller is responsible for acknowledging XACK.
    """
    r = _get_redis()
    ensure_group(group)
    while True:
        resp = r.xreadgroup(group, consumer, {STREAM_EVENTS: ">"}, count=100, block=block_ms)
        if not resp:
            yield None
            continue
        # resp is list[(stream, [(id, {field:value}), ...])]
        for _stream, entries in resp:
            for msg_id, fields in entries:
                yield (msg_id, fields.get("json", ""))
