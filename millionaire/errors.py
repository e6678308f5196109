"""
Harness errors.

A small, typed hierarchy. Callers can catch `HarnessError` to handle every
failure raised by the harness, or the concrete subclasses for finer control:

- ConfigError        : unknown network / invalid configuration values
- DeploymentError    : a deployment could not be carried out (fatal for a run)
- UnknownDeployment  : lookup of a logical name that was never deployed
- TransactionError   : tx-level rejection (bad selector, funds, no code, ...)
- ContractRevert     : the contract reverted, optionally with a named error
- SnapshotError      : revert to an unknown/expired snapshot id
- VmContextError     : contract stdlib used outside of an executing call frame
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


class HarnessError(Exception):
    """Base class for all harness errors."""


class ConfigError(HarnessError, ValueError):
    """Invalid or unknown configuration."""


class TransactionError(HarnessError):
    """Raised when the chain refuses a transaction before/around execution."""


class SnapshotError(HarnessError):
    """Raised when reverting to a snapshot id that does not exist."""


class VmContextError(HarnessError, RuntimeError):
    """Raised when contract stdlib is used with no active call frame."""


class UnknownDeployment(HarnessError, KeyError):
    """Raised when a deployment name is looked up but was never recorded."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No deployment found for: {self.name}"


@dataclass(eq=False)
class DeploymentError(HarnessError):
    """
    A deployment step failed. Not retried: a failing deployment means the
    environment cannot be used for this run.

    Attributes:
        name:   logical deployment name (e.g. "VRFCoordinatorV2Mock").
        reason: human-readable reason (usually the wrapped cause).
    """

    name: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"deployment of {self.name!r} failed: {self.reason}"


@dataclass(eq=False)
class ContractRevert(HarnessError):
    """
    The contract reverted.

    Attributes:
        error:   custom error name (e.g. "Millionaire__NotEnoughEthEntered"),
                 or None for a bare revert without a reason.
        error_args: custom error arguments, in declaration order.
        address: address of the contract that raised the error (if known).
    """

    error: Optional[str] = None
    error_args: Tuple[Any, ...] = field(default_factory=tuple)
    address: Optional[str] = None

    def __post_init__(self) -> None:
        self.error_args = tuple(self.error_args)
        Exception.__init__(self, str(self))

    @property
    def signature(self) -> str:
        if self.error is None:
            return "<no reason>"
        inner = ", ".join(repr(a) for a in self.error_args)
        return f"{self.error}({inner})"

    def __str__(self) -> str:
        if self.error is None:
            return "transaction reverted without a reason"
        return f"reverted with custom error '{self.signature}'"


__all__ = [
    "HarnessError",
    "ConfigError",
    "DeploymentError",
    "UnknownDeployment",
    "TransactionError",
    "ContractRevert",
    "SnapshotError",
    "VmContextError",
]
