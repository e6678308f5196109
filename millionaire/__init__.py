"""
Millionaire deployment & verification harness.

This package provisions the Millionaire lottery (and, on local networks, the
mock VRF coordinator it consumes) onto an in-process chain and exposes the
handles the test-suite drives.

Only light, stable exports are surfaced here to avoid import cycles:

    from millionaire import NetworkContext, is_local_network, __version__
"""

from __future__ import annotations

from .network import LOCAL_CHAIN_ID, NetworkContext, is_development_chain, is_local_network
from .version import __version__

__all__ = [
    "__version__",
    "LOCAL_CHAIN_ID",
    "NetworkContext",
    "is_local_network",
    "is_development_chain",
]
