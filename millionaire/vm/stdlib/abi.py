"""
Revert helpers.

Contracts signal failure with named custom errors, mirroring Solidity's
`revert Name(args)`:

    abi.revert("Millionaire__UpkeepNotNeeded", balance, players, state)
    abi.require(msg_value >= fee, "Millionaire__NotEnoughEthEntered")

A revert aborts the whole transaction (or the nested call, when caught via
`calls.try_call`) and rolls back every state change it made.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional, Union

from ...errors import ContractRevert, VmContextError
from ..context import current


def _name(error: Union[bytes, str, None]) -> Optional[str]:
    if error is None:
        return None
    if isinstance(error, (bytes, bytearray)):
        return bytes(error).decode("utf-8", "replace")
    return str(error)


def revert(error: Union[bytes, str, None] = None, *args: Any) -> NoReturn:
    try:
        address: Optional[str] = current().address
    except VmContextError:
        address = None
    raise ContractRevert(_name(error), args, address)


def require(cond: bool, error: Union[bytes, str, None] = None, *args: Any) -> None:
    if not cond:
        revert(error, *args)


__all__ = ["revert", "require"]
