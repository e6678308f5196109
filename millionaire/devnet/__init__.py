"""Ephemeral in-process network used for local deployments and tests."""

from .accounts import Signer, make_signers, named_accounts
from .chain import GENESIS_TIMESTAMP, ZERO_ADDRESS, LocalChain, Receipt

__all__ = [
    "GENESIS_TIMESTAMP",
    "ZERO_ADDRESS",
    "LocalChain",
    "Receipt",
    "Signer",
    "make_signers",
    "named_accounts",
]
