"""
Contract handles.

A `ContractHandle` binds a deployed address and its ABI to a signer, and
exposes the ABI functions as attributes:

    raffle = registry.get_contract("Millionaire", player)
    raffle.getEntranceFee()                 # view -> value
    raffle.enterRaffle(value=fee)           # state-changing -> Receipt
    raffle.performUpkeep.call(b"")          # simulate without persisting
    raffle.connect(deployer).performUpkeep(b"")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from ..devnet.accounts import Signer
from ..vm.loader import AbiFunction, ContractArtifact

if TYPE_CHECKING:  # pragma: no cover
    from ..devnet.chain import LocalChain, Receipt

SignerLike = Union[Signer, str]


class ContractHandle:
    def __init__(
        self,
        chain: "LocalChain",
        address: str,
        artifact: ContractArtifact,
        signer: Optional[SignerLike] = None,
    ) -> None:
        self._chain = chain
        self._address = address
        self._artifact = artifact
        self._signer = signer

    @property
    def address(self) -> str:
        return self._address

    @property
    def name(self) -> str:
        return self._artifact.name

    @property
    def abi(self) -> Mapping[str, Any]:
        return self._artifact.abi

    @property
    def artifact(self) -> ContractArtifact:
        return self._artifact

    @property
    def signer(self) -> Optional[SignerLike]:
        return self._signer

    def connect(self, signer: SignerLike) -> "ContractHandle":
        """Same contract, different caller."""
        return ContractHandle(self._chain, self._address, self._artifact, signer)

    def __getattr__(self, name: str) -> "BoundFunction":
        if name.startswith("_"):
            raise AttributeError(name)
        fn = self._artifact.functions.get(name)
        if fn is None:
            raise AttributeError(f"{self._artifact.name} has no ABI function {name!r}")
        return BoundFunction(self, fn)

    def __repr__(self) -> str:
        return f"<ContractHandle {self.name} at {self._address}>"


class BoundFunction:
    def __init__(self, handle: ContractHandle, fn: AbiFunction) -> None:
        self._handle = handle
        self._fn = fn

    @property
    def abi(self) -> AbiFunction:
        return self._fn

    def __call__(self, *args: Any, value: int = 0) -> Any:
        """Views return their value; everything else is sent as a transaction."""
        if self._fn.is_view:
            return self.call(*args, value=value)
        return self.transact(*args, value=value)

    def call(self, *args: Any, value: int = 0) -> Any:
        h = self._handle
        return h._chain.call(h._address, self._fn.name, args, sender=h._signer, value=value)

    def transact(self, *args: Any, value: int = 0) -> "Receipt":
        h = self._handle
        if h._signer is None:
            raise ValueError(f"{h.name}.{self._fn.name}: no signer connected")
        return h._chain.transact(h._address, self._fn.name, args, sender=h._signer, value=value)


__all__ = ["ContractHandle", "BoundFunction"]
