"""
Fixed-point unit helpers.

Amounts on chain are integers in the smallest denomination (18 decimals for
the native coin and for LINK). These helpers convert human decimal strings to
that representation exactly, without going through floats:

    parse_ether("0.25")  -> 250000000000000000
    format_ether(10**16) -> "0.01"
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

ETHER_DECIMALS = 18

Amount = Union[str, int, Decimal]


def parse_units(value: Amount, decimals: int) -> int:
    """
    Convert a decimal amount to an integer count of the smallest unit.

    Floats are rejected (binary rounding would silently change the amount).
    Raises ValueError on malformed input, negative amounts, or more fractional
    digits than `decimals` allows.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"amount must be str, int or Decimal, got {type(value).__name__}")
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    try:
        d = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal amount: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"amount must be finite, got {value!r}")
    if d < 0:
        raise ValueError(f"amount must be non-negative, got {value!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value!r} has more than {decimals} fractional digits")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Render an integer smallest-unit amount as a trimmed decimal string."""
    if amount < 0:
        raise ValueError("amount must be non-negative")
    whole, frac = divmod(int(amount), 10 ** decimals)
    if frac == 0:
        return str(whole)
    digits = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{digits}"


def parse_ether(value: Amount) -> int:
    return parse_units(value, ETHER_DECIMALS)


def format_ether(amount: int) -> str:
    return format_units(amount, ETHER_DECIMALS)


__all__ = ["ETHER_DECIMALS", "parse_units", "format_units", "parse_ether", "format_ether"]
