"""
millionaire.network — execution context & environment classifier

The active network is described by a small immutable `NetworkContext` that is
passed explicitly to whatever needs it (deploy scripts, the registry, the
test-suite), instead of being read from ambient global configuration.

Two classifiers are exposed:

- `is_local_network(chain_id)` decides whether mock infrastructure must be
  provisioned. Only the reserved in-process chain id (31337) is local; any
  other value, including garbage, is treated as "not local" so mocks are never
  deployed on an unknown network.
- `is_development_chain(name)` is the name-based check the test-suite uses to
  decide whether unit tests can run at all.

Environment
-----------
MILLIONAIRE_NETWORK   : network name (default: "hardhat")
MILLIONAIRE_CHAIN_ID  : explicit chain id override (decimal or 0x-hex)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

LOCAL_CHAIN_ID: int = 31337

DEVELOPMENT_CHAINS: tuple[str, ...] = ("hardhat", "localhost")

# Chain ids for the network names the harness knows about out of the box.
KNOWN_NETWORKS: Dict[str, int] = {
    "hardhat": LOCAL_CHAIN_ID,
    "localhost": LOCAL_CHAIN_ID,
    "goerli": 5,
    "sepolia": 11155111,
}


def is_local_network(chain_id: Any) -> bool:
    """True iff `chain_id` designates the in-process/ephemeral test network."""
    if isinstance(chain_id, bool) or not isinstance(chain_id, int):
        return False
    return chain_id == LOCAL_CHAIN_ID


def is_development_chain(name: Optional[str]) -> bool:
    """True iff `name` is one of the development network names."""
    return isinstance(name, str) and name in DEVELOPMENT_CHAINS


@dataclass(frozen=True)
class NetworkContext:
    """
    Immutable description of the network a run targets.

    Fields
    ------
    chain_id: integer chain identifier (31337 for the local simulation).
    name:     network name as configured ("hardhat", "localhost", "sepolia", ...).
    """

    chain_id: int
    name: str

    def __post_init__(self) -> None:
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int):
            raise ConfigError(f"chain_id must be int, got {type(self.chain_id).__name__}")
        if self.chain_id <= 0:
            raise ConfigError(f"chain_id must be positive, got {self.chain_id}")
        if not isinstance(self.name, str) or not self.name:
            raise ConfigError("network name must be a non-empty string")

    @property
    def is_local(self) -> bool:
        return is_local_network(self.chain_id)

    @property
    def is_development(self) -> bool:
        return is_development_chain(self.name)

    # ---- constructors ---- #

    @classmethod
    def from_name(cls, name: str, known: Optional[Mapping[str, int]] = None) -> "NetworkContext":
        table = KNOWN_NETWORKS if known is None else known
        try:
            return cls(chain_id=int(table[name]), name=name)
        except KeyError:
            raise ConfigError(
                f"unknown network {name!r}; known: {', '.join(sorted(table))}"
            ) from None

    @classmethod
    def from_env(cls, prefix: str = "MILLIONAIRE_") -> "NetworkContext":
        """
        Read MILLIONAIRE_NETWORK / MILLIONAIRE_CHAIN_ID. An explicit chain id
        wins over the known-network table, which allows custom networks.
        """
        name = os.getenv(prefix + "NETWORK") or "hardhat"
        raw_id = os.getenv(prefix + "CHAIN_ID")
        if raw_id is None or raw_id.strip() == "":
            return cls.from_name(name)
        try:
            chain_id = int(raw_id.strip(), 0)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {prefix}CHAIN_ID: {raw_id!r}") from e
        return cls(chain_id=chain_id, name=name)

    def to_dict(self) -> Dict[str, Any]:
        return {"chain_id": self.chain_id, "name": self.name}


__all__ = [
    "LOCAL_CHAIN_ID",
    "DEVELOPMENT_CHAINS",
    "KNOWN_NETWORKS",
    "is_local_network",
    "is_development_chain",
    "NetworkContext",
]
