from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

DECIMALS = 18

Number = Union[int, str, Decimal]


def parse_units(value: Number, decimals: int = DECIMALS) -> int:
    """Convert a whole-token amount ("100", "0.5", 100) to smallest units."""
    if isinstance(value, bool):
        raise ValueError("bool is not an amount")
    if isinstance(value, int):
        return value * 10**decimals
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"invalid amount: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    with localcontext() as ctx:
        # default 28-digit precision would round 18-decimal amounts above ~10**10
        ctx.prec = 100
        scaled = d.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value!r} has more than {decimals} fractional digits")
    return int(scaled)


def format_units(amount: int, decimals: int = DECIMALS) -> str:
    """Inverse of parse_units; trailing fractional zeros are dropped."""
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(int(amount)), 10**decimals)
    if not frac:
        return f"{sign}{whole}"
    frac_s = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_s}"


def tokens(n: Number) -> int:
    return parse_units(n)
