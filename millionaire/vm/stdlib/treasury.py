"""
Native balance primitives.

`transfer` moves value out of the executing contract and reports success as
a bool rather than raising, like a low-level `call{value: ...}("")`: it fails
when the contract balance is too low, or when the recipient is a contract
without a payable `receive` entrypoint (or whose `receive` reverts).
"""

from __future__ import annotations

from typing import Optional

from ..context import current


def balance(address: Optional[str] = None) -> int:
    """Balance of `address`, or of the executing contract when omitted."""
    frame = current()
    return frame.host.balance(address if address is not None else frame.address)


def transfer(to: str, amount: int) -> bool:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"transfer amount must be a non-negative int, got {amount!r}")
    frame = current()
    if frame.static and amount:
        raise PermissionError("value transfer in a static (view) call")
    return frame.host.transfer_value(frame, to, amount)


__all__ = ["balance", "transfer"]
