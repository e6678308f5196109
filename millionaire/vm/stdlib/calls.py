"""
Cross-contract calls.

`call` propagates a callee revert to the caller (the whole transaction
reverts). `try_call` contains it: the callee's state changes and events are
discarded and `(False, None)` is returned, while the caller keeps running.
"""

from __future__ import annotations

from typing import Any, Tuple

from ..context import current


def call(address: str, fn: str, *args: Any, value: int = 0) -> Any:
    frame = current()
    return frame.host.nested_call(frame, address, fn, args, value)


def try_call(address: str, fn: str, *args: Any, value: int = 0) -> Tuple[bool, Any]:
    frame = current()
    return frame.host.try_nested_call(frame, address, fn, args, value)


__all__ = ["call", "try_call"]
