from __future__ import annotations

"""
Account identities for the token ledger.

Addresses are `0x` + 40 hex digits, stored lowercase. The zero address is the
"no account" sentinel and can never receive tokens or an allowance.
"""

import hashlib
import re
from typing import List

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(addr: str) -> str:
    """Return the canonical (lowercase) form of an address.

    Raises ValueError for anything that is not a 20-byte hex address.
    """
    if not isinstance(addr, str) or not _ADDRESS_RE.match(addr):
        raise ValueError(f"invalid address: {addr!r}")
    return addr.lower()


def is_zero_address(addr: str) -> bool:
    return normalize_address(addr) == ZERO_ADDRESS


def signer_accounts(n: int = 10, seed: str = "tokenledger") -> List[str]:
    """Deterministic list of `n` addresses; index 0 is the deployer by convention."""
    out: List[str] = []
    for i in range(n):
        digest = hashlib.sha256(f"{seed}:{i}".encode("utf-8")).hexdigest()
        out.append("0x" + digest[-40:])
    return out
