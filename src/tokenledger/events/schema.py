from __future__ import annotations

from typing import Literal, Union
from pydantic import BaseModel, ConfigDict, Field


# ---- Base + envelope ----

class BaseEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str
    token: str
    tx_index: int = 0
    log_index: int = 0


class TransferEvent(BaseEvent):
    event_type: Literal["Transfer"] = "Transfer"
    from_: str = Field(alias="from")
    to: str
    value: int = Field(ge=0)


class ApprovalEvent(BaseEvent):
    event_type: Literal["Approval"] = "Approval"
    owner: str
    spender: str
    value: int = Field(ge=0)


AnyEvent = Union[TransferEvent, ApprovalEvent]


class EventEnvelope(BaseModel):
    schema_version: str = "v1"
    correlation_id: str
    sequence: int = 0
    event: AnyEvent = Field(discriminator="event_type")
