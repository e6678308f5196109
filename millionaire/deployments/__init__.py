"""Deployment registry, deploy-script registry and contract handles."""

from .handles import BoundFunction, ContractHandle
from .registry import DeploymentRecord, DeploymentRegistry
from .scripts import DeployScript, resolve_scripts

__all__ = [
    "BoundFunction",
    "ContractHandle",
    "DeploymentRecord",
    "DeploymentRegistry",
    "DeployScript",
    "resolve_scripts",
]
