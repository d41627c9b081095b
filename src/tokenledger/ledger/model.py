from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

from ..events.schema import AnyEvent

Method = Literal["transfer", "approve", "transferFrom"]


@dataclass
class Receipt:
    """Outcome of a successful mutating call; failed calls raise instead."""

    tx_index: int
    token: str
    method: Method
    caller: str
    events: List[AnyEvent] = field(default_factory=list)
    status: int = 1

    def to_record(self) -> dict:
        return {
            "tx_index": self.tx_index,
            "token": self.token,
            "method": self.method,
            "caller": self.caller,
            "status": self.status,
            # amounts exceed JSON-safe ints for most consumers
            "events": [
                {k: (str(v) if k == "value" else v) for k, v in e.model_dump(by_alias=True).items()}
                for e in self.events
            ],
        }


@dataclass
class HolderRow:
    address: str
    balance: int
