"""
Contract-facing standard library.

Contracts import it as:

    from millionaire.vm.stdlib import abi, calls, env, events, hash, storage, treasury

Every function operates on the frame the local chain is currently executing.
"""

from . import abi, calls, env, events, hash, storage, treasury

__all__ = ["abi", "calls", "env", "events", "hash", "storage", "treasury"]
