"""Transaction and block environment of the executing call."""

from __future__ import annotations

from ..context import current


def sender() -> str:
    """Immediate caller (an account, or the calling contract)."""
    return current().sender


def value() -> int:
    """Native value sent with this call."""
    return current().value


def this() -> str:
    """Address of the executing contract."""
    return current().address


def timestamp() -> int:
    return current().block.timestamp


def block_number() -> int:
    return current().block.number


def chain_id() -> int:
    return current().block.chain_id


__all__ = ["sender", "value", "this", "timestamp", "block_number", "chain_id"]
