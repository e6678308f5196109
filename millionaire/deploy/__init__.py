"""
Deploy scripts, in the order they run.

    registry = DeploymentRegistry(chain, DEFAULT_SCRIPTS)
    registry.fixture(["all"])
"""

from typing import List

from ..deployments.scripts import DeployScript
from . import deploy_millionaire, deploy_mocks

DEFAULT_SCRIPTS: List[DeployScript] = [
    deploy_mocks.SCRIPT,
    deploy_millionaire.SCRIPT,
]

__all__ = ["DEFAULT_SCRIPTS"]
