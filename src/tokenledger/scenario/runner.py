from __future__ import annotations

"""
ScenarioRunner replays scripted ledger calls and checks their outcomes.

A scenario is a list of steps, for example::

    - call: transfer
      from: deployer
      to: receiver
      amount: 100
    - call: approve
      from: deployer
      spender: exchange
      amount: 100000000
      expect: revert
    - call: expect_balance
      account: receiver
      amount: 100

`amount` is in whole tokens (may be fractional, "0.5"); `raw_amount` is in
smallest units. Account fields take an alias from the accounts mapping or a
literal address.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import yaml

from ..ledger.accounts import ZERO_ADDRESS
from ..ledger.errors import OperationRejected
from ..ledger.ledger import TokenLedger
from ..ledger.model import Receipt
from ..ledger.units import parse_units

log = logging.getLogger(__name__)

CALLS = ("transfer", "approve", "transferFrom", "expect_balance", "expect_allowance")


@dataclass
class StepResult:
    index: int
    call: str
    ok: bool
    reverted: bool = False
    reason: Optional[str] = None
    message: str = ""
    receipt: Optional[Receipt] = None


@dataclass
class ScenarioResult:
    steps: List[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    @property
    def failures(self) -> List[StepResult]:
        return [s for s in self.steps if not s.ok]

    @property
    def receipts(self) -> List[Receipt]:
        return [s.receipt for s in self.steps if s.receipt is not None]


def load_scenario(path: str) -> List[Dict[str, Any]]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("steps", [])
    if not isinstance(data, list):
        raise ValueError(f"scenario {path} must be a list of steps")
    return data


class ScenarioRunner:
    def __init__(self, ledger: TokenLedger, accounts: Optional[Dict[str, str]] = None):
        self.ledger = ledger
        self.accounts: Dict[str, str] = {"zero": ZERO_ADDRESS, "deployer": ledger.deployer}
        self.accounts.update(accounts or {})

    def resolve(self, ref: str) -> str:
        return self.accounts.get(ref, ref)

    def amount_of(self, step: Dict[str, Any]) -> int:
        if "raw_amount" in step:
            raw = step["raw_amount"]
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ValueError(f"raw_amount must be an integer, got {raw!r}")
            return raw
        if "amount" in step:
            return parse_units(step["amount"], self.ledger.decimals)
        raise ValueError("step needs `amount` or `raw_amount`")

    def run(self, steps: List[Dict[str, Any]]) -> ScenarioResult:
        result = ScenarioResult()
        for i, step in enumerate(steps):
            res = self.run_step(i, step)
            if not res.ok:
                log.warning("scenario step %d (%s) failed: %s", i, res.call, res.message)
            result.steps.append(res)
        return result

    def run_step(self, index: int, step: Dict[str, Any]) -> StepResult:
        call = str(step.get("call", ""))
        if call not in CALLS:
            return StepResult(index, call, ok=False, message=f"unknown call {call!r}")
        try:
            if call == "expect_balance":
                return self._expect(index, call, self.ledger.balance_of(self.resolve(step["account"])), step)
            if call == "expect_allowance":
                got = self.ledger.allowance(self.resolve(step["owner"]), self.resolve(step["spender"]))
                return self._expect(index, call, got, step)
        except (ValueError, KeyError) as e:
            return StepResult(index, call, ok=False, message=f"malformed step: {e}")

        expect_revert = step.get("expect") == "revert"
        try:
            receipt = self._invoke(call, step)
        except (ValueError, KeyError) as e:
            # bad alias, missing field or non-integer amount; nothing was sent to the ledger
            return StepResult(index, call, ok=False, message=f"malformed step: {e}")
        except OperationRejected as e:
            if expect_revert:
                return StepResult(index, call, ok=True, reverted=True, reason=e.reason)
            return StepResult(index, call, ok=False, reverted=True, reason=e.reason, message=str(e))
        if expect_revert:
            return StepResult(index, call, ok=False, receipt=receipt, message="expected revert, call succeeded")
        return StepResult(index, call, ok=True, receipt=receipt)

    def _invoke(self, call: str, step: Dict[str, Any]) -> Receipt:
        signer = self.ledger.connect(self.resolve(step.get("from", "deployer")))
        amount = self.amount_of(step)
        if call == "transfer":
            return signer.transfer(self.resolve(step["to"]), amount)
        if call == "approve":
            return signer.approve(self.resolve(step["spender"]), amount)
        return signer.transfer_from(self.resolve(step["owner"]), self.resolve(step["to"]), amount)

    def _expect(self, index: int, call: str, got: int, step: Dict[str, Any]) -> StepResult:
        want = self.amount_of(step)
        if got == want:
            return StepResult(index, call, ok=True)
        return StepResult(index, call, ok=False, message=f"expected {want}, got {got}")
