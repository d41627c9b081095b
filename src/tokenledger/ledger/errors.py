from __future__ import annotations

INVALID_RECIPIENT = "invalid_recipient"
INVALID_SPENDER = "invalid_spender"
INSUFFICIENT_BALANCE = "insufficient_balance"
INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
INVALID_AMOUNT = "invalid_amount"
APPROVAL_EXCEEDS_SUPPLY = "approval_exceeds_supply"


class OperationRejected(Exception):
    """A ledger call violated a precondition; no state was changed."""

    def __init__(self, method: str, reason: str, detail: str = ""):
        self.method = method
        self.reason = reason
        self.detail = detail
        msg = f"{method} rejected: {reason}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
