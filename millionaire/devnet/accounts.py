"""
Deterministic signers for the local chain.

Addresses are derived from a seed and an index via SHA3, so every run (and
every machine) sees the same accounts in the same order:

    signers = make_signers(20)
    signers[0].address  # deployer
    signers[1].address  # player
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import NAMED_ACCOUNTS
from ..errors import ConfigError

DEFAULT_SEED = "millionaire-devnet"


def _det_address(tag: str) -> str:
    """Stable 20-byte hex address from a tag."""
    return "0x" + hashlib.sha3_256(tag.encode("utf-8")).hexdigest()[:40]


def contract_address(sender: str, nonce: int) -> str:
    """Address of the contract created by `sender` at account nonce `nonce`."""
    return _det_address(f"create|{sender.lower()}|{nonce}")


@dataclass(frozen=True)
class Signer:
    index: int
    address: str

    def __str__(self) -> str:
        return self.address


def make_signers(count: int, seed: str = DEFAULT_SEED) -> List[Signer]:
    if count < 1:
        raise ConfigError("at least one signer is required")
    return [Signer(index=i, address=_det_address(f"{seed}|account|{i}")) for i in range(count)]


def named_accounts(
    signers: Sequence[Signer], mapping: Optional[Mapping[str, int]] = None
) -> Dict[str, Signer]:
    """Resolve role names ("deployer", "player", ...) to signers."""
    m = NAMED_ACCOUNTS if mapping is None else mapping
    out: Dict[str, Signer] = {}
    for role, idx in m.items():
        if not 0 <= idx < len(signers):
            raise ConfigError(f"named account {role!r} -> index {idx} out of range ({len(signers)} signers)")
        out[role] = signers[idx]
    return out


__all__ = ["DEFAULT_SEED", "Signer", "make_signers", "named_accounts", "contract_address"]
