"""
00_deploy_mocks — provision the mock VRF coordinator on local networks.

On the reserved local chain id the coordinator mock is deployed from the
deployer account with fixed fee parameters; on any other network this script
deploys nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from ..deployments.scripts import DeployScript
from ..network import is_local_network
from ..units import parse_ether

if TYPE_CHECKING:  # pragma: no cover
    from ..deployments.registry import DeploymentRecord, DeploymentRegistry

# Premium charged per fulfilment, in LINK.
BASE_FEE = parse_ether("0.25")
# LINK per gas, the value a price feed would report.
GAS_PRICE_LINK = 10**9

MOCK_COORDINATOR = "VRFCoordinatorV2Mock"


def provision_mocks(registry: "DeploymentRegistry") -> Dict[str, "DeploymentRecord"]:
    if not is_local_network(registry.network.chain_id):
        return {}

    deployer = registry.named_accounts()["deployer"]
    registry.log("Local network detected! Deploying mocks...")
    rec = registry.deploy(
        MOCK_COORDINATOR,
        from_=deployer,
        log=True,
        args=(BASE_FEE, GAS_PRICE_LINK),
    )
    registry.log("Mocks deployed!")
    registry.log("-" * 50)
    return {rec.name: rec}


SCRIPT = DeployScript(
    name="00_deploy_mocks",
    func=provision_mocks,
    tags=frozenset({"all", "mocks"}),
)

__all__ = ["BASE_FEE", "GAS_PRICE_LINK", "MOCK_COORDINATOR", "provision_mocks", "SCRIPT"]
