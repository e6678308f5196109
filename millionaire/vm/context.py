"""
millionaire.vm.context — call frames seen by executing contracts

While the local chain executes a contract function it pushes a `Frame`
describing *who* is calling *what* with *how much* value in *which* block.
The contract-facing stdlib (storage/events/env/treasury/calls) reads the top
frame; using the stdlib with no frame on the stack is a harness bug and
raises `VmContextError`.

Frames hold no reference to contract storage: storage is resolved through
the host on every access, including after a nested call is rolled back.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple

from ..errors import VmContextError

if TYPE_CHECKING:  # pragma: no cover
    from .loader import ContractArtifact


@dataclass(frozen=True)
class BlockEnv:
    """Deterministic per-block environment: number, timestamp, chain id."""

    number: int
    timestamp: int
    chain_id: int

    def to_dict(self) -> Dict[str, int]:
        return {"number": self.number, "timestamp": self.timestamp, "chain_id": self.chain_id}


@dataclass(frozen=True)
class Log:
    """One emitted event, as recorded in a receipt."""

    address: str
    event: str
    args: Mapping[str, Any]
    log_index: int = 0

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "event": self.event, "args": dict(self.args), "logIndex": self.log_index}


class Host(Protocol):
    """What the stdlib needs from the chain executing a frame."""

    def storage_of(self, address: str) -> Dict[str, Any]: ...

    def balance(self, address: str) -> int: ...

    def transfer_value(self, frame: "Frame", to: str, amount: int) -> bool: ...

    def nested_call(self, frame: "Frame", to: str, fn: str, args: Tuple[Any, ...], value: int) -> Any: ...

    def try_nested_call(
        self, frame: "Frame", to: str, fn: str, args: Tuple[Any, ...], value: int
    ) -> Tuple[bool, Any]: ...


@dataclass
class Frame:
    host: Host
    address: str
    sender: str
    value: int
    block: BlockEnv
    artifact: Optional["ContractArtifact"] = None
    logs: List[Log] = field(default_factory=list)
    static: bool = False


_STACK: List[Frame] = []


def current() -> Frame:
    if not _STACK:
        raise VmContextError("No active contract frame (stdlib used outside of a contract call).")
    return _STACK[-1]


@contextlib.contextmanager
def enter(frame: Frame) -> Iterator[Frame]:
    _STACK.append(frame)
    try:
        yield frame
    finally:
        _STACK.pop()


__all__ = ["BlockEnv", "Log", "Host", "Frame", "current", "enter"]
