from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple
import logging
import os
import pandas as pd
from .accounts import ZERO_ADDRESS, normalize_address
from .errors import (
    APPROVAL_EXCEEDS_SUPPLY,
    INSUFFICIENT_ALLOWANCE,
    INSUFFICIENT_BALANCE,
    INVALID_AMOUNT,
    INVALID_RECIPIENT,
    INVALID_SPENDER,
    OperationRejected,
)
from .model import HolderRow, Method, Receipt
from .units import DECIMALS
from ..events.schema import AnyEvent, ApprovalEvent, EventEnvelope, TransferEvent
from ..logs.operation_log import log_ledger_event
from ..metrics.ledger import (
    get_approvals_total,
    get_holders_gauge,
    get_operations_rejected_total,
    get_total_supply_gauge,
    get_transfer_volume_total,
    get_transfers_total,
)

log = logging.getLogger("tokenledger.ledger")

MAX_UINT256 = 2**256 - 1

APPROVAL_CAP_TOTAL_SUPPLY = "total_supply"
APPROVAL_CAP_NONE = "none"

Publisher = Callable[[EventEnvelope], None]


class TokenLedger:
    """Fixed-supply fungible token: balances, allowances and the event log.

    Every mutating call validates all of its preconditions before touching
    state, so a rejected call (OperationRejected) leaves no trace other than
    the rejection metric and log line.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        initial_supply: int,
        deployer: str,
        approval_cap: str = APPROVAL_CAP_TOTAL_SUPPLY,
        publisher: Optional[Publisher] = None,
    ):
        if not name or not symbol:
            raise ValueError("token name and symbol are required")
        if isinstance(initial_supply, bool) or not isinstance(initial_supply, int) or initial_supply < 0:
            raise ValueError(f"initial supply must be a non-negative integer, got {initial_supply!r}")
        if approval_cap not in (APPROVAL_CAP_TOTAL_SUPPLY, APPROVAL_CAP_NONE):
            raise ValueError(f"unknown approval cap policy: {approval_cap!r}")
        deployer = normalize_address(deployer)
        if deployer == ZERO_ADDRESS:
            raise ValueError("deployer cannot be the zero address")
        total = initial_supply * 10**DECIMALS
        if total > MAX_UINT256:
            raise ValueError("initial supply overflows uint256")

        self.name = name
        self.symbol = symbol
        self.decimals = DECIMALS
        self.total_supply = total
        self.deployer = deployer
        self.approval_cap = approval_cap
        self.publisher = publisher
        self.balances: Dict[str, int] = {deployer: total}
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.events: List[AnyEvent] = []
        self.receipts: List[Receipt] = []
        # Metrics
        self._transfers = get_transfers_total()
        self._volume = get_transfer_volume_total()
        self._approvals = get_approvals_total()
        self._rejected = get_operations_rejected_total()
        self._holders_gauge = get_holders_gauge()
        get_total_supply_gauge().labels(symbol).set(initial_supply)
        self._holders_gauge.labels(symbol).set(self._holder_count())
        log_ledger_event("deployed", symbol, name=name, deployer=deployer, total_supply=str(total))

    # ---- reads ----

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def holders(self) -> List[HolderRow]:
        rows = [HolderRow(address=a, balance=b) for a, b in self.balances.items() if b > 0]
        rows.sort(key=lambda r: (-r.balance, r.address))
        return rows

    def connect(self, caller: str) -> "BoundLedger":
        return BoundLedger(self, caller)

    # ---- mutations ----

    def transfer(self, sender: str, to: str, amount: int) -> Receipt:
        sender, to = normalize_address(sender), normalize_address(to)
        self._check_amount("transfer", amount)
        if to == ZERO_ADDRESS:
            self._reject("transfer", INVALID_RECIPIENT)
        balance = self.balances.get(sender, 0)
        if balance < amount:
            self._reject("transfer", INSUFFICIENT_BALANCE, f"balance {balance} < {amount}")
        self._move(sender, to, amount)
        return self._commit("transfer", sender, TransferEvent(token=self.symbol, from_=sender, to=to, value=amount))

    def approve(self, owner: str, spender: str, amount: int) -> Receipt:
        owner, spender = normalize_address(owner), normalize_address(spender)
        self._check_amount("approve", amount)
        if spender == ZERO_ADDRESS:
            self._reject("approve", INVALID_SPENDER)
        if self.approval_cap == APPROVAL_CAP_TOTAL_SUPPLY and amount > self.total_supply:
            self._reject("approve", APPROVAL_EXCEEDS_SUPPLY, f"{amount} > total supply {self.total_supply}")
        # Absolute set, not additive
        self.allowances[(owner, spender)] = amount
        self._approvals.labels(self.symbol).inc()
        return self._commit("approve", owner, ApprovalEvent(token=self.symbol, owner=owner, spender=spender, value=amount))

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> Receipt:
        spender, owner, to = normalize_address(spender), normalize_address(owner), normalize_address(to)
        self._check_amount("transferFrom", amount)
        allowed = self.allowances.get((owner, spender), 0)
        if amount > allowed:
            self._reject("transferFrom", INSUFFICIENT_ALLOWANCE, f"allowance {allowed} < {amount}")
        balance = self.balances.get(owner, 0)
        if amount > balance:
            self._reject("transferFrom", INSUFFICIENT_BALANCE, f"balance {balance} < {amount}")
        if to == ZERO_ADDRESS:
            self._reject("transferFrom", INVALID_RECIPIENT)
        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, to, amount)
        return self._commit("transferFrom", spender, TransferEvent(token=self.symbol, from_=owner, to=to, value=amount))

    # ---- internals ----

    def _check_amount(self, method: Method, amount) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= MAX_UINT256:
            self._reject(method, INVALID_AMOUNT, repr(amount))

    def _reject(self, method: Method, reason: str, detail: str = "") -> None:
        self._rejected.labels(self.symbol, method, reason).inc()
        log.info("%s %s rejected: %s %s", self.symbol, method, reason, detail)
        raise OperationRejected(method, reason, detail)

    def _holder_count(self) -> int:
        return sum(1 for b in self.balances.values() if b > 0)

    def _move(self, src: str, dst: str, amount: int) -> None:
        self.balances[src] = self.balances.get(src, 0) - amount
        self.balances[dst] = self.balances.get(dst, 0) + amount
        if self.balances[src] == 0:
            del self.balances[src]

    def _commit(self, method: Method, caller: str, event: AnyEvent) -> Receipt:
        tx_index = len(self.receipts)
        event.tx_index = tx_index
        event.log_index = len(self.events)
        receipt = Receipt(tx_index=tx_index, token=self.symbol, method=method, caller=caller, events=[event])
        self.events.append(event)
        self.receipts.append(receipt)
        if isinstance(event, TransferEvent):
            self._transfers.labels(self.symbol, method).inc()
            self._volume.labels(self.symbol).inc(event.value / 10**self.decimals)
            self._holders_gauge.labels(self.symbol).set(self._holder_count())
        log.debug("%s tx=%d %s by %s", self.symbol, tx_index, method, caller)
        if self.publisher is not None:
            env = EventEnvelope(correlation_id=f"{self.symbol}:{tx_index}", sequence=event.log_index, event=event)
            try:
                self.publisher(env)
            except Exception as e:
                # state is already committed; publisher errors are logged, never raised
                log.warning("event publisher failed for tx %d: %s", tx_index, e)
        return receipt

    # ---- artifacts ----

    def write_parquet(self, base_dir: str = "data") -> None:
        os.makedirs(base_dir, exist_ok=True)
        balances_df = pd.DataFrame(
            [{"address": r.address, "balance": str(r.balance)} for r in self.holders()],
            columns=["address", "balance"],
        )
        events_df = pd.DataFrame(
            [{**e.model_dump(by_alias=True), "value": str(e.value)} for e in self.events]
        )
        balances_df.to_parquet(os.path.join(base_dir, "balances.parquet"))
        events_df.to_parquet(os.path.join(base_dir, "events.parquet"))


class BoundLedger:
    """A ledger view with the caller fixed, like a signer-connected contract handle."""

    def __init__(self, ledger: TokenLedger, caller: str):
        self.ledger = ledger
        self.caller = normalize_address(caller)

    def transfer(self, to: str, amount: int) -> Receipt:
        return self.ledger.transfer(self.caller, to, amount)

    def approve(self, spender: str, amount: int) -> Receipt:
        return self.ledger.approve(self.caller, spender, amount)

    def transfer_from(self, owner: str, to: str, amount: int) -> Receipt:
        return self.ledger.transfer_from(self.caller, owner, to, amount)


def deploy(
    name: str,
    symbol: str,
    initial_supply: int,
    deployer: str,
    approval_cap: str = APPROVAL_CAP_TOTAL_SUPPLY,
    publisher: Optional[Publisher] = None,
) -> TokenLedger:
    """Create a ledger with `initial_supply` whole tokens minted to `deployer`."""
    return TokenLedger(name, symbol, initial_supply, deployer, approval_cap=approval_cap, publisher=publisher)
