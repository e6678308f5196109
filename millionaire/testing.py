"""
Assertion helpers for contract tests.

    with reverts("Millionaire__NotEnoughEthEntered"):
        raffle.enterRaffle()

    rcpt = raffle.enterRaffle(value=fee)
    assert_emitted(rcpt, "MillionaireEnter", player=player.address)

`reverts` only accepts a contract revert: a transaction the chain refuses
(`TransactionError`) or any other exception propagates unchanged. With an
error name it also insists on that exact custom error, so a generic revert
does not satisfy an expectation for a named one.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from .devnet.chain import Receipt
from .errors import ContractRevert
from .vm.context import Log


@dataclass
class RevertInfo:
    """Filled in with the caught revert once the block exits."""

    error: Optional[ContractRevert] = None


def _describe(error: Optional[str], args: tuple) -> str:
    if error is None:
        return "reverted"
    if args:
        return f"reverted with custom error '{error}({', '.join(repr(a) for a in args)})'"
    return f"reverted with custom error '{error}'"


@contextlib.contextmanager
def reverts(error: Optional[str] = None, *args: Any) -> Iterator[RevertInfo]:
    info = RevertInfo()
    try:
        yield info
    except ContractRevert as exc:
        info.error = exc
        if error is not None and exc.error != error:
            raise AssertionError(
                f"Expected transaction to be {_describe(error, args)}, but it {exc}"
            ) from exc
        if args and tuple(args) != exc.error_args:
            raise AssertionError(
                f"Expected custom error args {tuple(args)!r}, got {exc.error_args!r}"
            ) from exc
        return
    raise AssertionError(f"Expected transaction to be {_describe(error, args)}, but it didn't revert")


def events_named(receipt: Receipt, name: str) -> List[Log]:
    return receipt.events(name)


def assert_emitted(receipt: Receipt, event: str, *, emitter: Any = None, **expected: Any) -> Log:
    """
    Assert `receipt` holds an `event` log (from `emitter`, if given) whose args
    include `expected`. Returns the matching log.
    """
    logs = receipt.events(event)
    if emitter is not None:
        address = str(getattr(emitter, "address", emitter)).lower()
        logs = [lg for lg in logs if lg.address == address]
    if not logs:
        emitted = [lg.event for lg in receipt.logs]
        raise AssertionError(f"Expected event {event!r} to be emitted, but it wasn't (emitted: {emitted})")

    want = {k: (v.lower() if isinstance(v, str) and v.startswith("0x") else v) for k, v in expected.items()}
    for lg in logs:
        if all(k in lg.args and lg.args[k] == v for k, v in want.items()):
            return lg
    actual = [dict(lg.args) for lg in logs]
    raise AssertionError(f"Event {event!r} emitted with args {actual}, expected {want}")


__all__ = ["RevertInfo", "reverts", "events_named", "assert_emitted"]
