"""
In-process contract VM.

- context: call frames, block environment and event logs
- loader:  contract artifacts (manifest ABI + Python source)
- stdlib:  the contract-facing API (storage, events, abi, env, treasury, calls)
"""

from .context import BlockEnv, Frame, Log
from .loader import AbiFunction, AbiParam, ContractArtifact, load_artifact, load_artifact_from_dir

__all__ = [
    "BlockEnv",
    "Frame",
    "Log",
    "AbiFunction",
    "AbiParam",
    "ContractArtifact",
    "load_artifact",
    "load_artifact_from_dir",
]
