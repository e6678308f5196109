"""
Harness configuration.

This file defines typed configuration objects and helpers for:
- Per-chain lottery parameters (entrance fee, interval, VRF wiring)
- Named accounts (which signer index plays which role)
- Harness runtime settings (network, funded accounts, logging)

It provides:
- Dataclass-based configs with validation
- The built-in network table, keyed by chain id
- Loading an override table from a JSON or YAML file
- Loading harness settings from environment variables (prefix configurable)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError
from .network import DEVELOPMENT_CHAINS, LOCAL_CHAIN_ID
from .units import parse_ether

# -------------------------
# Per-network lottery parameters
# -------------------------


@dataclass(frozen=True)
class NetworkConfig:
    """
    Constructor parameters for the Millionaire contract on one chain.

    name:               human network name
    entrance_fee:       minimum entry payment (smallest unit)
    gas_lane:           VRF key hash (0x-prefixed 32-byte hex)
    callback_gas_limit: gas budget for the VRF callback
    interval:           seconds between draws (upkeep cadence)
    vrf_coordinator_v2: coordinator address on real networks; None on local
                        networks, where the mock is deployed instead
    subscription_id:    VRF subscription on real networks (0 = create one)
    block_confirmations: confirmations to wait for after deploying
    """

    name: str
    entrance_fee: int
    gas_lane: str
    callback_gas_limit: int
    interval: int
    vrf_coordinator_v2: Optional[str] = None
    subscription_id: int = 0
    block_confirmations: int = 1

    def validate(self) -> None:
        if not self.name:
            raise ConfigError("network config name must be non-empty")
        if self.entrance_fee < 0:
            raise ConfigError("entrance_fee must be >= 0")
        if self.interval <= 0:
            raise ConfigError("interval must be > 0")
        if self.callback_gas_limit <= 0:
            raise ConfigError("callback_gas_limit must be > 0")
        if self.subscription_id < 0:
            raise ConfigError("subscription_id must be >= 0")
        if self.block_confirmations < 1:
            raise ConfigError("block_confirmations must be >= 1")
        lane = self.gas_lane[2:] if self.gas_lane.startswith("0x") else ""
        if len(lane) != 64:
            raise ConfigError(f"gas_lane must be 0x-prefixed 32-byte hex, got {self.gas_lane!r}")
        try:
            bytes.fromhex(lane)
        except ValueError as e:
            raise ConfigError(f"gas_lane is not valid hex: {self.gas_lane!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "NetworkConfig":
        """
        Build from a plain mapping. `entrance_fee` may be given either as an
        integer amount or as a decimal ether value ("0.01").
        """
        fee = d.get("entrance_fee", d.get("entranceFee"))
        if isinstance(fee, (str, float)):
            # YAML reads a bare 0.01 as float; str() keeps the written digits
            try:
                fee = parse_ether(str(fee))
            except ValueError as e:
                raise ConfigError(f"invalid entrance_fee {fee!r}: {e}") from e
        try:
            cfg = cls(
                name=str(d["name"]),
                entrance_fee=int(fee),  # type: ignore[arg-type]
                gas_lane=str(d.get("gas_lane", d.get("gasLane"))),
                callback_gas_limit=int(d.get("callback_gas_limit", d.get("callbackGasLimit", 500_000))),
                interval=int(d["interval"]),
                vrf_coordinator_v2=d.get("vrf_coordinator_v2", d.get("vrfCoordinatorV2")),
                subscription_id=int(d.get("subscription_id", d.get("subscriptionId", 0))),
                block_confirmations=int(d.get("block_confirmations", d.get("blockConfirmations", 1))),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"invalid network config entry {dict(d)!r}: {e}") from e
        cfg.validate()
        return cfg


_DEFAULT_ENTRANCE_FEE = parse_ether("0.01")

NETWORK_CONFIG: Dict[int, NetworkConfig] = {
    LOCAL_CHAIN_ID: NetworkConfig(
        name="hardhat",
        entrance_fee=_DEFAULT_ENTRANCE_FEE,
        gas_lane="0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c",
        callback_gas_limit=500_000,
        interval=30,
    ),
    5: NetworkConfig(
        name="goerli",
        entrance_fee=_DEFAULT_ENTRANCE_FEE,
        gas_lane="0x79d3d8832d904592c0bf9818b621522c988bb8b0c05cdc3b15aea1b6e8db0c15",
        callback_gas_limit=500_000,
        interval=30,
        vrf_coordinator_v2="0x2Ca8E0C643bDe4C2E08ab1fA0da3401AdAD7734D",
        block_confirmations=6,
    ),
    11155111: NetworkConfig(
        name="sepolia",
        entrance_fee=_DEFAULT_ENTRANCE_FEE,
        gas_lane="0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c",
        callback_gas_limit=500_000,
        interval=30,
        vrf_coordinator_v2="0x8103B0A8A00be2DDC778e6e7eaa21791Cd364625",
        block_confirmations=6,
    ),
}

# Role -> signer index.
NAMED_ACCOUNTS: Dict[str, int] = {"deployer": 0, "player": 1}


def network_config(chain_id: int, table: Optional[Mapping[int, NetworkConfig]] = None) -> NetworkConfig:
    """Look up the lottery parameters for `chain_id`."""
    t = NETWORK_CONFIG if table is None else table
    try:
        return t[chain_id]
    except KeyError:
        raise ConfigError(f"no network config for chain id {chain_id}") from None


# -------------------------
# Override tables from disk
# -------------------------


def _read_text(path: Union[str, Path]) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    if str(path_hint).endswith((".yaml", ".yml")):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML config {path_hint}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse JSON config {path_hint}: {e}") from e


def load_network_config(path: Union[str, Path]) -> Dict[int, NetworkConfig]:
    """
    Load a network table from a JSON or YAML file. Top-level keys are chain
    ids. Example (YAML):

        31337:
          name: hardhat
          entrance_fee: "0.01"
          gas_lane: "0x474e...c56c"
          callback_gas_limit: 500000
          interval: 30
    """
    data = _parse_json_or_yaml(_read_text(path), str(path))
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of chain id -> network config")
    out: Dict[int, NetworkConfig] = {}
    for raw_id, entry in data.items():
        try:
            chain_id = int(raw_id)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{path}: chain id keys must be integers, got {raw_id!r}") from e
        if not isinstance(entry, dict):
            raise ConfigError(f"{path}: entry for {chain_id} must be a mapping")
        out[chain_id] = NetworkConfig.from_dict(entry)
    return out


# -------------------------
# Harness runtime settings
# -------------------------


@dataclass
class HarnessConfig:
    """
    Settings for one harness run.

    network:            network name (selects chain id via the known-network table)
    chain_id:           explicit chain id override (None = derive from network)
    accounts:           number of funded signers on the local chain
    initial_balance:    balance given to each signer (smallest unit)
    log_level:          logging level name
    log_format:         "json" or "plain"
    network_config_file: optional JSON/YAML override for the network table
    """

    network: str = "hardhat"
    chain_id: Optional[int] = None
    accounts: int = 20
    initial_balance: int = field(default_factory=lambda: parse_ether("10000"))
    log_level: str = "INFO"
    log_format: str = "plain"
    network_config_file: Optional[str] = None

    def validate(self) -> None:
        if not self.network:
            raise ConfigError("network must be non-empty")
        if self.chain_id is not None and self.chain_id <= 0:
            raise ConfigError("chain_id must be > 0")
        if self.accounts < len(NAMED_ACCOUNTS):
            raise ConfigError(f"accounts must be >= {len(NAMED_ACCOUNTS)} (named accounts)")
        if self.initial_balance < 0:
            raise ConfigError("initial_balance must be >= 0")
        if self.log_format not in {"json", "plain"}:
            raise ConfigError("log_format must be 'json' or 'plain'")
        if self.network_config_file and not Path(self.network_config_file).is_file():
            raise ConfigError(f"network_config_file not found: {self.network_config_file}")

    @property
    def is_development(self) -> bool:
        return self.network in DEVELOPMENT_CHAINS

    def network_table(self) -> Dict[int, NetworkConfig]:
        """The built-in table, overlaid with the configured override file."""
        table = dict(NETWORK_CONFIG)
        if self.network_config_file:
            table.update(load_network_config(self.network_config_file))
        return table

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_env(prefix: str = "MILLIONAIRE_") -> "HarnessConfig":
        """
        Load settings from environment variables. All variables are optional.

          - MILLIONAIRE_NETWORK=hardhat
          - MILLIONAIRE_CHAIN_ID=31337
          - MILLIONAIRE_ACCOUNTS=20
          - MILLIONAIRE_INITIAL_BALANCE=10000      (ether, decimal string)
          - MILLIONAIRE_LOG_LEVEL=INFO
          - MILLIONAIRE_LOG_FORMAT=plain
          - MILLIONAIRE_NETWORK_CONFIG=./networks.yaml
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw.strip())
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {raw!r}") from e

        cfg = HarnessConfig(
            network=_get("NETWORK", str, "hardhat"),
            chain_id=_get("CHAIN_ID", lambda s: int(s, 0), None),
            accounts=_get("ACCOUNTS", int, 20),
            initial_balance=_get("INITIAL_BALANCE", parse_ether, parse_ether("10000")),
            log_level=_get("LOG_LEVEL", str.upper, "INFO"),
            log_format=_get("LOG_FORMAT", str.lower, "plain"),
            network_config_file=_get("NETWORK_CONFIG", str, None),
        )
        cfg.validate()
        return cfg


__all__ = [
    "NetworkConfig",
    "NETWORK_CONFIG",
    "NAMED_ACCOUNTS",
    "DEVELOPMENT_CHAINS",
    "network_config",
    "load_network_config",
    "HarnessConfig",
]
