"""
Shared pytest fixtures:
- Active network (--network / MILLIONAIRE_NETWORK, optional MILLIONAIRE_CHAIN_ID)
- A session-wide local chain and deployment registry with the default scripts
- `deployments`: the "all" fixture, rebuilt before every test that asks for it
- Named accounts (`deployer`, `player`)
- Helpers to write small inline contracts into tmp_path
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import pytest


# --- stable env for tests -----------------------------------------------------

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

from millionaire.deploy import DEFAULT_SCRIPTS  # noqa: E402
from millionaire.deployments import DeploymentRecord, DeploymentRegistry  # noqa: E402
from millionaire.devnet import LocalChain, Signer  # noqa: E402
from millionaire.network import NetworkContext  # noqa: E402
from millionaire.vm.loader import ContractArtifact, load_artifact_from_dir  # noqa: E402


# ---------- CLI OPTIONS ----------

def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--network",
        action="store",
        default=os.getenv("MILLIONAIRE_NETWORK", "hardhat"),
        help="Network the suite runs against (env: MILLIONAIRE_NETWORK)",
    )


# ---------- NETWORK & CHAIN ----------

@pytest.fixture(scope="session")
def network(pytestconfig: pytest.Config) -> NetworkContext:
    name = pytestconfig.getoption("--network")
    raw_id = os.getenv("MILLIONAIRE_CHAIN_ID")
    if raw_id:
        return NetworkContext(chain_id=int(raw_id, 0), name=name)
    return NetworkContext.from_name(name)


@pytest.fixture(scope="session")
def chain(network: NetworkContext) -> LocalChain:
    return LocalChain(network)


@pytest.fixture(scope="session")
def registry(chain: LocalChain) -> DeploymentRegistry:
    return DeploymentRegistry(chain, DEFAULT_SCRIPTS)


@pytest.fixture
def development_only(network: NetworkContext) -> None:
    """Skip the requesting test unless the active network is a development chain."""
    if not network.is_development:
        pytest.skip(f"unit tests only run on development chains (network: {network.name})")


@pytest.fixture
def deployments(registry: DeploymentRegistry) -> Dict[str, DeploymentRecord]:
    """Fresh "all" deployment set; every test starts from the same state."""
    return registry.fixture(["all"])


@pytest.fixture
def accounts(chain: LocalChain) -> Dict[str, Signer]:
    return chain.named_accounts()


@pytest.fixture
def deployer(accounts: Mapping[str, Signer]) -> Signer:
    return accounts["deployer"]


@pytest.fixture
def player(accounts: Mapping[str, Signer]) -> Signer:
    return accounts["player"]


# ---------- ISOLATED CHAINS ----------

@pytest.fixture
def local_chain() -> LocalChain:
    """A private chain on the local network, independent of the session chain."""
    return LocalChain(NetworkContext.from_name("hardhat"))


@pytest.fixture
def local_registry(local_chain: LocalChain) -> DeploymentRegistry:
    return DeploymentRegistry(local_chain, DEFAULT_SCRIPTS)


# ---------- INLINE CONTRACTS ----------

@pytest.fixture
def write_contract(tmp_path: Path) -> Callable[..., ContractArtifact]:
    """
    Write a contract package into tmp_path and load it:

        art = write_contract("Counter", SOURCE, functions=[...], events=[...])
    """

    def _write(
        name: str,
        source: str,
        *,
        functions: List[Dict[str, Any]],
        constructor: Optional[Dict[str, Any]] = None,
        events: Optional[List[Dict[str, Any]]] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> ContractArtifact:
        d = tmp_path / name
        d.mkdir(parents=True, exist_ok=True)
        (d / "contract.py").write_text(source, encoding="utf-8")
        abi: Dict[str, Any] = {"functions": functions, "events": events or [], "errors": errors or []}
        if constructor is not None:
            abi["constructor"] = constructor
        (d / "manifest.json").write_text(json.dumps({"name": name, "abi": abi}), encoding="utf-8")
        return load_artifact_from_dir(d)

    return _write


def _abi_fn(
    name: str,
    mutability: str = "nonpayable",
    inputs: Optional[List[str]] = None,
    outputs: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Compact ABI function entry; params given as "name:type"."""

    def _params(ps: Optional[List[str]]) -> List[Dict[str, str]]:
        out = []
        for p in ps or []:
            n, t = p.split(":")
            out.append({"name": n, "type": t})
        return out

    return {"name": name, "stateMutability": mutability, "inputs": _params(inputs), "outputs": _params(outputs)}


@pytest.fixture
def abi_fn() -> Callable[..., Dict[str, Any]]:
    return _abi_fn
