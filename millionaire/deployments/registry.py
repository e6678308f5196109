"""
millionaire.deployments.registry — tagged deployment registry & fixtures
=======================================================================

`DeploymentRegistry` records what was deployed on a chain under a logical
name, with the tags of the script that produced it, and rebuilds tagged
deployment sets for tests:

    registry = DeploymentRegistry(chain, DEFAULT_SCRIPTS)
    registry.fixture(["all"])                        # run scripts, snapshot
    raffle = registry.get_contract("Millionaire", player)
    ...
    registry.fixture(["all"])                        # back to the fresh state

Fixtures
--------
The first `fixture(tags)` call for a tag set starts from the registry's base
state (the chain as it was at the first fixture call), runs the matching
scripts and snapshots chain + records. Later calls with the same tags revert
to that snapshot and take a new one. A tag set whose snapshot has been
consumed (because another fixture reverted past it) is rebuilt from the base
state, so a fixture always yields the same deployments at the same addresses.

Failures
--------
Any failure while deploying raises `DeploymentError`; it is never retried or
swallowed, since a broken deployment means the environment is unusable.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import NetworkConfig, network_config
from ..devnet.accounts import Signer
from ..devnet.chain import LocalChain
from ..errors import DeploymentError, HarnessError, UnknownDeployment
from ..logging import context as log_context
from ..logging import get_logger
from ..network import NetworkContext
from ..vm.loader import ContractArtifact, load_artifact
from .handles import ContractHandle, SignerLike
from .scripts import DeployScript, resolve_scripts


@dataclass(frozen=True)
class DeploymentRecord:
    name: str
    address: str
    abi: Mapping[str, Any] = field(repr=False)
    tags: FrozenSet[str]
    args: Tuple[Any, ...]
    deployer: str
    tx_hash: str
    block_number: int
    artifact: ContractArtifact = field(repr=False, compare=False)

    def with_tags(self, tags: Iterable[str]) -> "DeploymentRecord":
        return replace(self, tags=self.tags | frozenset(tags))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "abi": self.abi,
            "tags": sorted(self.tags),
            "args": [_jsonable(a) for a in self.args],
            "deployer": self.deployer,
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "codeHash": self.artifact.code_hash,
        }


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    return v


def canonical_json_str(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"), allow_nan=False)


def atomic_write_text(path: Union[str, os.PathLike], text: str) -> Path:
    """Write text atomically: tmp -> fsync -> rename."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=str(target.parent), delete=False) as tf:
        tf.write(text.encode("utf-8"))
        tf.flush()
        os.fsync(tf.fileno())
        tmp_name = tf.name
    os.replace(tmp_name, target)
    return target


@dataclass
class _Saved:
    snapshot_id: int
    records: Dict[str, DeploymentRecord]


def _tag_key(tags: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = [tags]
    return frozenset(tags)


class DeploymentRegistry:
    """Deployments on one chain, keyed by logical name."""

    def __init__(
        self,
        chain: LocalChain,
        scripts: Sequence[DeployScript] = (),
        *,
        network_table: Optional[Mapping[int, NetworkConfig]] = None,
        artifacts_root: Optional[Union[str, Path]] = None,
    ) -> None:
        self._chain = chain
        self._scripts = list(scripts)
        self._network_table = network_table
        self._artifacts_root = Path(artifacts_root) if artifacts_root is not None else None
        self._records: Dict[str, DeploymentRecord] = {}
        self._active_tags: FrozenSet[str] = frozenset()
        self._base: Optional[_Saved] = None
        self._fixtures: Dict[Optional[FrozenSet[str]], _Saved] = {}
        self._log = get_logger("millionaire.deployments")

    # ---- environment ---- #

    @property
    def chain(self) -> LocalChain:
        return self._chain

    @property
    def network(self) -> NetworkContext:
        return self._chain.network

    @property
    def network_config(self) -> NetworkConfig:
        return network_config(self._chain.chain_id, self._network_table)

    @property
    def scripts(self) -> List[DeployScript]:
        return list(self._scripts)

    def named_accounts(self) -> Dict[str, Signer]:
        return self._chain.named_accounts()

    def log(self, message: str, *args: Any) -> None:
        self._log.info(message, *args)

    # ---- lookups ---- #

    def get(self, name: str) -> DeploymentRecord:
        try:
            return self._records[name]
        except KeyError:
            raise UnknownDeployment(name) from None

    def get_or_none(self, name: str) -> Optional[DeploymentRecord]:
        return self._records.get(name)

    def all(self) -> Dict[str, DeploymentRecord]:
        return dict(self._records)

    def by_tag(self, tag: str) -> Dict[str, DeploymentRecord]:
        return {n: r for n, r in self._records.items() if tag in r.tags}

    def get_contract(self, name: str, signer: Optional[SignerLike] = None) -> ContractHandle:
        """Handle on deployment `name`, bound to `signer` (the deployer by default)."""
        rec = self.get(name)
        if signer is None:
            signer = self.named_accounts()["deployer"]
        return ContractHandle(self._chain, rec.address, rec.artifact, signer)

    # ---- deploying ---- #

    def _resolve_sender(self, from_: SignerLike) -> SignerLike:
        if isinstance(from_, str) and not from_.startswith("0x"):
            accounts = self.named_accounts()
            if from_ not in accounts:
                raise DeploymentError(from_, f"unknown named account {from_!r}")
            return accounts[from_]
        return from_

    def deploy(
        self,
        name: str,
        *,
        from_: SignerLike,
        args: Sequence[Any] = (),
        log: bool = False,
        contract: Optional[Union[str, ContractArtifact]] = None,
        value: int = 0,
    ) -> DeploymentRecord:
        """
        Deploy artifact `contract` (defaults to `name`) and record it as `name`.

        An existing record for `name` with the same code and constructor args
        whose address still holds that code is reused instead of redeployed.
        """
        args = tuple(args)
        try:
            source = contract if contract is not None else name
            artifact = source if isinstance(source, ContractArtifact) else load_artifact(source, self._artifacts_root)
            sender = self._resolve_sender(from_)

            existing = self._records.get(name)
            if (
                existing is not None
                and existing.artifact.code_hash == artifact.code_hash
                and existing.args == args
                and self._chain.code_at(existing.address) is not None
            ):
                rec = existing.with_tags(self._active_tags)
                self._records[name] = rec
                if log:
                    self._log.info('reusing "%s" at %s', name, rec.address)
                return rec

            receipt = self._chain.deploy(artifact, sender=sender, args=args, value=value)
        except DeploymentError:
            raise
        except HarnessError as exc:
            raise DeploymentError(name, str(exc)) from exc

        if receipt.contract_address is None:
            raise DeploymentError(name, f"transaction {receipt.tx_hash} created no contract")
        rec = DeploymentRecord(
            name=name,
            address=receipt.contract_address,
            abi=artifact.abi,
            tags=self._active_tags,
            args=args,
            deployer=receipt.sender,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            artifact=artifact,
        )
        self._records[name] = rec
        if log:
            self._log.info(
                'deploying "%s" (tx: %s)...: deployed at %s',
                name,
                receipt.tx_hash,
                rec.address,
                extra={"deployment": name, "address": rec.address, "tx": receipt.tx_hash},
            )
        return rec

    # ---- scripts & fixtures ---- #

    def run(self, tags: Optional[Iterable[str]] = None) -> Dict[str, DeploymentRecord]:
        """Run the scripts matching `tags` (all when None); returns every record."""
        for script in resolve_scripts(self._scripts, _tag_key(tags)):
            self._run_script(script)
        return self.all()

    def _run_script(self, script: DeployScript) -> None:
        with log_context(network=self.network.name, chain_id=self.network.chain_id, script=script.name):
            self._active_tags = script.tags
            try:
                produced = script(self) or {}
            except DeploymentError:
                raise
            except HarnessError as exc:
                raise DeploymentError(script.name, str(exc)) from exc
            finally:
                self._active_tags = frozenset()
            for name in produced:
                self._records[name] = self.get(name).with_tags(script.tags)

    def fixture(self, tags: Optional[Iterable[str]] = None) -> Dict[str, DeploymentRecord]:
        """Fresh deployment set for `tags`; see the module docstring."""
        key = _tag_key(tags)
        saved = self._fixtures.get(key)
        if saved is not None and self._chain.revert(saved.snapshot_id):
            self._records = dict(saved.records)
            saved.snapshot_id = self._chain.snapshot()
            return self.all()

        self._reset_to_base()
        self.run(key)
        self._fixtures[key] = _Saved(self._chain.snapshot(), dict(self._records))
        return self.all()

    def _reset_to_base(self) -> None:
        if self._base is None:
            self._base = _Saved(self._chain.snapshot(), dict(self._records))
            return
        if not self._chain.revert(self._base.snapshot_id):
            raise DeploymentError("fixture", "base snapshot is no longer available")
        self._records = dict(self._base.records)
        self._base.snapshot_id = self._chain.snapshot()

    # ---- export ---- #

    def export(self, directory: Union[str, Path]) -> Path:
        """Write `<directory>/<chainId>.json` describing every deployment."""
        payload = {
            "chainId": self.network.chain_id,
            "network": self.network.name,
            "deployments": {n: r.to_dict() for n, r in sorted(self._records.items())},
        }
        path = Path(directory) / f"{self.network.chain_id}.json"
        atomic_write_text(path, canonical_json_str(payload))
        self._log.info("deployments written to %s", path)
        return path


__all__ = [
    "DeploymentRecord",
    "DeploymentRegistry",
    "canonical_json_str",
    "atomic_write_text",
]
