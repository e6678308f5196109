"""
01_deploy_millionaire — deploy the lottery.

Local networks get a funded subscription on the coordinator mock and the
lottery is registered as its consumer. Re-running the script against a
lottery that is still deployed and subscribed reuses its subscription, so the
lottery itself is reused too. Real networks take the coordinator address and
subscription id from the network table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

from ..deployments.scripts import DeployScript
from ..errors import ConfigError
from ..units import parse_ether
from .deploy_mocks import MOCK_COORDINATOR

if TYPE_CHECKING:  # pragma: no cover
    from ..deployments.handles import ContractHandle
    from ..deployments.registry import DeploymentRecord, DeploymentRegistry

VRF_SUB_FUND_AMOUNT = parse_ether("2")


def _existing_subscription(registry: "DeploymentRegistry", coordinator: "ContractHandle") -> Optional[int]:
    """Subscription of an already deployed lottery still wired to `coordinator`."""
    rec = registry.get_or_none("Millionaire")
    if rec is None or rec.args[0] != coordinator.address:
        return None
    subscription_id = rec.args[3]
    if not coordinator.consumerIsAdded(subscription_id, rec.address):
        return None
    return subscription_id


def deploy_millionaire(registry: "DeploymentRegistry") -> Dict[str, "DeploymentRecord"]:
    network = registry.network
    cfg = registry.network_config
    deployer = registry.named_accounts()["deployer"]

    coordinator = None
    if network.is_local:
        coordinator = registry.get_contract(MOCK_COORDINATOR, deployer)
        subscription_id = _existing_subscription(registry, coordinator)
        if subscription_id is None:
            rcpt = coordinator.createSubscription()
            subscription_id = rcpt.event("SubscriptionCreated")["subId"]
            coordinator.fundSubscription(subscription_id, VRF_SUB_FUND_AMOUNT)
        vrf_coordinator = coordinator.address
    else:
        if not cfg.vrf_coordinator_v2:
            raise ConfigError(f"{cfg.name}: vrf_coordinator_v2 is not configured")
        vrf_coordinator = cfg.vrf_coordinator_v2
        subscription_id = cfg.subscription_id

    args = (
        vrf_coordinator,
        cfg.entrance_fee,
        cfg.gas_lane,
        subscription_id,
        cfg.callback_gas_limit,
        cfg.interval,
    )
    rec = registry.deploy("Millionaire", from_=deployer, args=args, log=True)

    if coordinator is not None and not coordinator.consumerIsAdded(subscription_id, rec.address):
        coordinator.addConsumer(subscription_id, rec.address)
        registry.log("Consumer %s added to subscription %d", rec.address, subscription_id)
    registry.log("-" * 50)
    return {rec.name: rec}


SCRIPT = DeployScript(
    name="01_deploy_millionaire",
    func=deploy_millionaire,
    tags=frozenset({"all", "millionaire"}),
    dependencies=frozenset({"mocks"}),
)

__all__ = ["VRF_SUB_FUND_AMOUNT", "deploy_millionaire", "SCRIPT"]
