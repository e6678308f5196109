"""
millionaire.cli
---------------

Run the deploy scripts against a local simulation of a network, and inspect
the harness configuration.

Examples
--------
# Deploy everything on the local network (mocks included)
millionaire deploy --network hardhat

# Only the mocks, as JSON, and keep a deployments file
millionaire deploy --tags mocks --json --out build/deployments

# Known networks and their lottery parameters
millionaire networks

# Named accounts and signers of the local chain
millionaire accounts --count 5
"""

from __future__ import annotations

import json
from typing import List, NoReturn, Optional

import typer

from .config import HarnessConfig
from .deploy import DEFAULT_SCRIPTS
from .deployments import DeploymentRegistry
from .devnet import LocalChain
from .errors import HarnessError
from .logging import setup_logging
from .network import KNOWN_NETWORKS, NetworkContext
from .units import format_ether
from .version import __version__

app = typer.Typer(
    name="millionaire",
    add_completion=False,
    no_args_is_help=True,
    help="Deploy and inspect the Millionaire lottery on a local simulated chain.",
)


def _fail(msg: str, code: int = 1) -> NoReturn:
    typer.secho(msg, fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


# -------------------- commands --------------------


@app.command("deploy")
def deploy(
    network: str = typer.Option("hardhat", "--network", "-n", help="Network name (hardhat, localhost, sepolia, ...)."),
    chain_id: Optional[int] = typer.Option(None, "--chain-id", help="Override the chain id of the network."),
    tags: List[str] = typer.Option(None, "--tags", "-t", help="Deploy script tags to run (repeatable; default: all)."),
    network_config: Optional[str] = typer.Option(None, "--network-config", help="JSON/YAML network table override."),
    out: Optional[str] = typer.Option(None, "--out", help="Directory for the <chainId>.json deployments file."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run the deploy scripts and print what was deployed."""
    try:
        cfg = HarnessConfig(network=network, chain_id=chain_id, network_config_file=network_config)
        cfg.validate()
        chain = LocalChain.from_config(cfg)
        registry = DeploymentRegistry(chain, DEFAULT_SCRIPTS, network_table=cfg.network_table())
        records = registry.run(tags or ["all"])
        path = registry.export(out) if out else None
    except HarnessError as e:
        _fail(f"error: {e}")

    if json_out:
        payload = {
            "network": chain.network.to_dict(),
            "deployments": {n: {"address": r.address, "tags": sorted(r.tags), "txHash": r.tx_hash} for n, r in records.items()},
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if not records:
        typer.echo(f"No deployments on {chain.network.name} (chain {chain.chain_id}).")
    for name, rec in records.items():
        typer.echo(f"{name:<24} {rec.address}  tags={','.join(sorted(rec.tags))}")
    if path is not None:
        typer.echo(f"deployments written to {path}")


@app.command("networks")
def networks(
    network_config: Optional[str] = typer.Option(None, "--network-config", help="JSON/YAML network table override."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List known networks and their lottery parameters."""
    try:
        cfg = HarnessConfig(network_config_file=network_config)
        cfg.validate()
        table = cfg.network_table()
    except HarnessError as e:
        _fail(f"error: {e}")

    if json_out:
        typer.echo(json.dumps({str(cid): c.to_dict() for cid, c in sorted(table.items())}, indent=2, sort_keys=True))
        return

    for cid, c in sorted(table.items()):
        local = " (local)" if NetworkContext(chain_id=cid, name=c.name).is_local else ""
        typer.echo(
            f"{cid:>10}  {c.name:<10} fee={format_ether(c.entrance_fee)} interval={c.interval}s"
            f" callbackGas={c.callback_gas_limit}{local}"
        )
    names = ", ".join(f"{n}={cid}" for n, cid in sorted(KNOWN_NETWORKS.items()))
    typer.echo(f"known names: {names}")


@app.command("accounts")
def accounts(
    count: int = typer.Option(3, "--count", "-c", min=1, max=1000, help="Number of signers to show."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show named accounts and the first signers of the local chain."""
    chain = LocalChain(accounts=max(count, 2))
    named = {role: s.address for role, s in chain.named_accounts().items()}
    signers = [{"index": s.index, "address": s.address, "balance": format_ether(chain.balance(s))} for s in chain.get_signers()[:count]]
    if json_out:
        typer.echo(json.dumps({"named": named, "signers": signers}, indent=2, sort_keys=True))
        return
    for role, addr in named.items():
        typer.echo(f"{role:<10} {addr}")
    for s in signers:
        typer.echo(f"[{s['index']:>3}] {s['address']}  {s['balance']} ETH")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="plain or json."),
    version: bool = typer.Option(
        False, "--version", help="Print version and exit.", is_eager=True, callback=_print_version
    ),
) -> None:
    setup_logging(level=log_level, fmt=log_format, force=True)


if __name__ == "__main__":
    app()
