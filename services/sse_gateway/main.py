from __future__ import annotations

import os
import json
from typing import AsyncGenerator, FrozenSet, Optional, Tuple
from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

import redis.asyncio as aioredis
from redis.exceptions import ResponseError

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
STREAM = os.getenv("EVENTS_STREAM", "tokenledger.events")
GROUP = os.getenv("SSE_GROUP", "sse_gateway")

# Event fields that name an account, per event type
ACCOUNT_FIELDS = ("from", "to", "owner", "spender")

app = FastAPI(title="tokenledger SSE Gateway")


async def ensure_group(r):
    try:
        await r.xgroup_create(name=STREAM, groupname=GROUP, id="$", mkstream=True)
    except ResponseError as e:
        if "BUSYGROUP" not in str(e):
            raise


Filters = Tuple[Optional[FrozenSet[str]], Optional[FrozenSet[str]]]


def parse_filters(types: Optional[str], accounts: Optional[str]) -> Filters:
    """Split the comma-separated query params once; accounts are lowercased to match ledger addresses."""
    ty = frozenset(t.strip() for t in types.split(",") if t.strip()) if types else None
    acc = frozenset(a.strip().lower() for a in accounts.split(",") if a.strip()) if accounts else None
    return ty or None, acc or None


def _match_filters(js: str, types: Optional[FrozenSet[str]], accounts: Optional[FrozenSet[str]]) -> bool:
    """True when the envelope's event type is wanted and it touches one of `accounts`."""
    try:
        data = json.loads(js)
    except ValueError:
        return False
    ev = data.get("event") if isinstance(data, dict) else None
    if not isinstance(ev, dict):
        return False
    if types and ev.get("event_type") not in types:
        return False
    if not accounts:
        return True
    # ledger addresses are already lowercase on the wire
    return any(ev.get(k) in accounts for k in ACCOUNT_FIELDS)


def _frame(msg_id: str, js: str) -> bytes:
    """SSE frame named after the ledger event type; the stream id lets clients resume via Last-Event-ID."""
    try:
        name = json.loads(js)["event"]["event_type"]
    except (ValueError, KeyError, TypeError):
        name = "event"
    return f"id: {msg_id}\nevent: {name}\ndata: {js}\n\n".encode()


async def event_stream(types: Optional[FrozenSet[str]], accounts: Optional[FrozenSet[str]]) -> AsyncGenerator[bytes, None]:
    r = aioredis.from_url(REDIS_URL, decode_responses=True)
    await ensure_group(r)
    consumer = os.getenv("SSE_CONSUMER", os.uname().nodename)
    try:
        while True:
            resp = await r.xreadgroup(GROUP, consumer, {STREAM: ">"}, count=100, block=15000)
            if resp:
                for _stream, entries in resp:
                    for msg_id, fields in entries:
                        js = fields.get("json", "")
                        if _match_filters(js, types, accounts):
                            yield _frame(msg_id, js)
                        await r.xack(STREAM, GROUP, msg_id)
            else:
                yield b": keep-alive\n\n"
    finally:
        await r.aclose()


@app.get("/events")
async def sse(request: Request, types: Optional[str] = None, accounts: Optional[str] = None):
    ty, acc = parse_filters(types, accounts)
    generator = event_stream(ty, acc)
    return StreamingResponse(generator, media_type="text/event-stream")
