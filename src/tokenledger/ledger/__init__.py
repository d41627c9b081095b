"""Ledger package.

Public API:
- TokenLedger / deploy: fixed-supply token with transfer, approve, transferFrom.
- OperationRejected: raised when a call violates a precondition (state untouched).
- Receipt: record of a successful call and the events it emitted.
"""

from .errors import OperationRejected  # re-export
from .ledger import BoundLedger, TokenLedger, deploy  # re-export
from .model import Receipt  # re-export
