"""
millionaire.devnet.chain — deterministic in-process chain
=========================================================

`LocalChain` is the ephemeral network the harness deploys to and the test
suite drives. It keeps balances, nonces, contract code and storage in memory
and executes Python contracts through `millionaire.vm`.

Behaviour
---------
- Automine: every successful transaction is mined in its own block. The block
  number grows by one; the timestamp grows by one second plus any time added
  with `increase_time` since the previous block.
- Atomicity: a transaction that reverts (or is rejected) leaves no trace; the
  whole state, including block height and the sender nonce, is restored.
- Calls (`call`) execute against the latest block and never persist changes.
- Snapshots (`snapshot`/`revert`) follow the usual devnet semantics: reverting
  consumes the snapshot and every snapshot taken after it.

There is no gas accounting; value transfers are exact.

Example
-------
    chain = LocalChain(NetworkContext.from_name("hardhat"))
    deployer, player = chain.get_signers()[:2]
    rcpt = chain.deploy(load_artifact("VRFCoordinatorV2Mock"), sender=deployer,
                        args=(BASE_FEE, GAS_PRICE_LINK))
    chain.transact(rcpt.contract_address, "createSubscription", sender=deployer)
"""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config import HarnessConfig
from ..errors import ContractRevert, HarnessError, SnapshotError, TransactionError
from ..logging import get_logger
from ..network import NetworkContext
from ..units import parse_ether
from ..vm import context as vmctx
from ..vm.context import BlockEnv, Frame, Log
from ..vm.loader import CONSTRUCTOR, AbiFunction, ContractArtifact, load_artifact
from .accounts import DEFAULT_SEED, Signer, contract_address, make_signers, named_accounts

GENESIS_TIMESTAMP = 1_700_000_000
ZERO_ADDRESS = "0x" + "00" * 20

AddressLike = Union[str, Signer]


# -------------------------
# Receipts
# -------------------------


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    block_number: int
    timestamp: int
    sender: str
    to: Optional[str]
    contract_address: Optional[str]
    value: int
    logs: Tuple[Log, ...]
    return_value: Any = None
    status: int = 1

    def events(self, name: Optional[str] = None) -> List[Log]:
        return [lg for lg in self.logs if name is None or lg.event == name]

    def event(self, name: str) -> Log:
        """First log named `name`; LookupError if the transaction emitted none."""
        for lg in self.logs:
            if lg.event == name:
                return lg
        emitted = [lg.event for lg in self.logs]
        raise LookupError(f"event {name!r} not emitted (emitted: {emitted})")


# -------------------------
# World state
# -------------------------


@dataclass
class _State:
    balances: Dict[str, int]
    nonces: Dict[str, int]
    code: Dict[str, ContractArtifact]
    storage: Dict[str, Dict[bytes, Any]]
    block_number: int
    timestamp: int
    time_offset: int = 0

    def clone(self) -> "_State":
        # artifacts hold live modules and are immutable; share them
        return _State(
            balances=dict(self.balances),
            nonces=dict(self.nonces),
            code=dict(self.code),
            storage=copy.deepcopy(self.storage),
            block_number=self.block_number,
            timestamp=self.timestamp,
            time_offset=self.time_offset,
        )


def _normalize_address(x: Any) -> str:
    if isinstance(x, Signer):
        return x.address
    addr = getattr(x, "address", x)
    if not isinstance(addr, str) or not addr.startswith("0x") or len(addr) != 42:
        raise TransactionError(f"invalid address: {x!r}")
    try:
        int(addr[2:], 16)
    except ValueError:
        raise TransactionError(f"invalid address: {x!r}") from None
    return addr.lower()


class LocalChain:
    """Deterministic automining chain executing Python contracts."""

    def __init__(
        self,
        network: Optional[NetworkContext] = None,
        *,
        accounts: int = 20,
        initial_balance: Optional[int] = None,
        genesis_timestamp: int = GENESIS_TIMESTAMP,
        seed: str = DEFAULT_SEED,
    ) -> None:
        self._network = network or NetworkContext.from_name("hardhat")
        self._signers = make_signers(accounts, seed)
        funded = parse_ether("10000") if initial_balance is None else int(initial_balance)
        self._state = _State(
            balances={s.address: funded for s in self._signers},
            nonces={},
            code={},
            storage={},
            block_number=0,
            timestamp=int(genesis_timestamp),
        )
        self._snapshots: Dict[int, _State] = {}
        self._next_snapshot_id = 1
        self._log = get_logger("millionaire.devnet")

    @classmethod
    def from_config(cls, cfg: HarnessConfig) -> "LocalChain":
        if cfg.chain_id is not None:
            network = NetworkContext(chain_id=cfg.chain_id, name=cfg.network)
        else:
            network = NetworkContext.from_name(cfg.network)
        return cls(network, accounts=cfg.accounts, initial_balance=cfg.initial_balance)

    # ---- network & accounts ---- #

    @property
    def network(self) -> NetworkContext:
        return self._network

    @property
    def chain_id(self) -> int:
        return self._network.chain_id

    def get_signers(self) -> List[Signer]:
        return list(self._signers)

    def signer(self, index: int) -> Signer:
        return self._signers[index]

    def named_accounts(self) -> Dict[str, Signer]:
        return named_accounts(self._signers)

    def balance(self, address: AddressLike) -> int:
        return self._state.balances.get(_normalize_address(address), 0)

    def set_balance(self, address: AddressLike, amount: int) -> None:
        if amount < 0:
            raise ValueError("balance must be >= 0")
        self._state.balances[_normalize_address(address)] = int(amount)

    def nonce(self, address: AddressLike) -> int:
        return self._state.nonces.get(_normalize_address(address), 0)

    def code_at(self, address: AddressLike) -> Optional[ContractArtifact]:
        return self._state.code.get(_normalize_address(address))

    def storage_of(self, address: str) -> Dict[bytes, Any]:
        return self._state.storage[address]

    # ---- blocks & time ---- #

    @property
    def block(self) -> BlockEnv:
        return BlockEnv(self._state.block_number, self._state.timestamp, self.chain_id)

    @property
    def block_number(self) -> int:
        return self._state.block_number

    @property
    def timestamp(self) -> int:
        return self._state.timestamp

    def _pending_block(self) -> BlockEnv:
        s = self._state
        return BlockEnv(s.block_number + 1, s.timestamp + 1 + s.time_offset, self.chain_id)

    def _commit_block(self, env: BlockEnv) -> None:
        self._state.block_number = env.number
        self._state.timestamp = env.timestamp
        self._state.time_offset = 0

    def increase_time(self, seconds: int) -> int:
        """Add `seconds` to the timestamp of the next mined block."""
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
            raise ValueError(f"seconds must be a non-negative int, got {seconds!r}")
        self._state.time_offset += seconds
        return self._state.time_offset

    def mine(self, blocks: int = 1) -> BlockEnv:
        for _ in range(blocks):
            self._commit_block(self._pending_block())
        return self.block

    # ---- snapshots ---- #

    def snapshot(self) -> int:
        sid = self._next_snapshot_id
        self._next_snapshot_id += 1
        self._snapshots[sid] = self._state.clone()
        return sid

    def revert(self, snapshot_id: int) -> bool:
        """
        Restore the state captured by `snapshot_id`. Returns False when the
        snapshot was already consumed by an earlier revert.
        """
        if isinstance(snapshot_id, bool) or not isinstance(snapshot_id, int) or not (
            1 <= snapshot_id < self._next_snapshot_id
        ):
            raise SnapshotError(f"unknown snapshot id {snapshot_id!r}")
        state = self._snapshots.get(snapshot_id)
        if state is None:
            return False
        self._state = state
        for sid in [s for s in self._snapshots if s >= snapshot_id]:
            del self._snapshots[sid]
        return True

    # ---- transactions ---- #

    def deploy(
        self,
        artifact: Union[ContractArtifact, str],
        *,
        sender: AddressLike,
        args: Sequence[Any] = (),
        value: int = 0,
    ) -> Receipt:
        art = load_artifact(artifact) if isinstance(artifact, str) else artifact
        frm = _normalize_address(sender)
        call_args = art.constructor.coerce_args(args)
        self._check_value(art, art.constructor, value)
        self._check_funds(frm, value)

        saved = self._state.clone()
        env = self._pending_block()
        address = contract_address(frm, self.nonce(frm))
        logs: List[Log] = []
        try:
            if address in self._state.code:
                raise TransactionError(f"contract address collision at {address}")
            self._state.code[address] = art
            self._state.storage[address] = {}
            self._move(frm, address, value)
            if art.has_constructor_code():
                frame = Frame(host=self, address=address, sender=frm, value=value, block=env, artifact=art, logs=logs)
                self._execute(frame, CONSTRUCTOR, call_args)
        except Exception:
            self._state = saved
            raise
        return self._finish(frm, None, address, value, env, logs, None)

    def transact(
        self,
        to: AddressLike,
        fn: str,
        args: Sequence[Any] = (),
        *,
        sender: AddressLike,
        value: int = 0,
    ) -> Receipt:
        frm = _normalize_address(sender)
        target = _normalize_address(to)
        art = self._require_code(target)
        abi_fn = art.function(fn)
        call_args = abi_fn.coerce_args(args)
        self._check_value(art, abi_fn, value)
        self._check_funds(frm, value)

        saved = self._state.clone()
        env = self._pending_block()
        logs: List[Log] = []
        try:
            self._move(frm, target, value)
            frame = Frame(host=self, address=target, sender=frm, value=value, block=env, artifact=art, logs=logs)
            ret = self._execute(frame, fn, call_args)
        except Exception as exc:
            self._state = saved
            self._log.debug(
                "transaction reverted",
                extra={"to": target, "fn": fn, "sender": frm, "error": str(exc)},
            )
            raise
        return self._finish(frm, target, None, value, env, logs, ret)

    def call(
        self,
        to: AddressLike,
        fn: str,
        args: Sequence[Any] = (),
        *,
        sender: Optional[AddressLike] = None,
        value: int = 0,
    ) -> Any:
        """Execute `fn` against the latest block and discard every change."""
        frm = _normalize_address(sender) if sender is not None else ZERO_ADDRESS
        target = _normalize_address(to)
        art = self._require_code(target)
        abi_fn = art.function(fn)
        call_args = abi_fn.coerce_args(args)
        self._check_value(art, abi_fn, value)

        saved = self._state.clone()
        try:
            if value:
                self._check_funds(frm, value)
                self._move(frm, target, value)
            frame = Frame(
                host=self, address=target, sender=frm, value=value, block=self.block,
                artifact=art, logs=[], static=abi_fn.is_view,
            )
            return self._execute(frame, fn, call_args)
        finally:
            self._state = saved

    # ---- host interface used by the contract stdlib ---- #

    def transfer_value(self, frame: Frame, to: str, amount: int) -> bool:
        target = _normalize_address(to)
        if self.balance(frame.address) < amount:
            return False
        art = self._state.code.get(target)
        if art is None:
            self._move(frame.address, target, amount)
            return True
        receive = art.functions.get("receive")
        if receive is None or not receive.is_payable:
            return False
        ok, _ = self.try_nested_call(frame, target, "receive", (), amount)
        return ok

    def nested_call(self, frame: Frame, to: str, fn: str, args: Tuple[Any, ...], value: int) -> Any:
        target = _normalize_address(to)
        art = self._require_code(target)
        abi_fn = art.function(fn)
        call_args = abi_fn.coerce_args(args)
        self._check_value(art, abi_fn, value)
        if value:
            if self.balance(frame.address) < value:
                raise ContractRevert(None, (), frame.address)
            self._move(frame.address, target, value)
        child = Frame(
            host=self,
            address=target,
            sender=frame.address,
            value=value,
            block=frame.block,
            artifact=art,
            logs=frame.logs,
            static=frame.static or abi_fn.is_view,
        )
        return self._execute(child, fn, call_args)

    def try_nested_call(
        self, frame: Frame, to: str, fn: str, args: Tuple[Any, ...], value: int
    ) -> Tuple[bool, Any]:
        saved = self._state.clone()
        mark = len(frame.logs)
        try:
            return True, self.nested_call(frame, to, fn, args, value)
        except (ContractRevert, TransactionError) as exc:
            self._state = saved
            del frame.logs[mark:]
            self._log.debug("nested call failed", extra={"to": to, "fn": fn, "error": str(exc)})
            return False, None

    # ---- internals ---- #

    def _require_code(self, address: str) -> ContractArtifact:
        art = self._state.code.get(address)
        if art is None:
            raise TransactionError(f"no contract code at {address}")
        return art

    @staticmethod
    def _check_value(art: ContractArtifact, fn: AbiFunction, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise TransactionError(f"value must be a non-negative int, got {value!r}")
        if value and not fn.is_payable:
            raise TransactionError(f"{art.name}.{fn.name} is non-payable but was sent value {value}")

    def _check_funds(self, address: str, value: int) -> None:
        if self._state.balances.get(address, 0) < value:
            raise TransactionError(f"sender {address} doesn't have enough funds to send {value}")

    def _move(self, frm: str, to: str, amount: int) -> None:
        if not amount:
            return
        b = self._state.balances
        b[frm] = b.get(frm, 0) - amount
        b[to] = b.get(to, 0) + amount

    def _execute(self, frame: Frame, fn: str, args: Tuple[Any, ...]) -> Any:
        art = frame.artifact
        if art is None:
            raise TransactionError(f"no contract code at {frame.address}")
        with vmctx.enter(frame):
            try:
                return art.entrypoint(fn)(*args)
            except HarnessError:
                raise
            except Exception as exc:
                raise TransactionError(f"{art.name}.{fn} raised {type(exc).__name__}: {exc}") from exc

    def _finish(
        self,
        frm: str,
        to: Optional[str],
        created: Optional[str],
        value: int,
        env: BlockEnv,
        logs: List[Log],
        ret: Any,
    ) -> Receipt:
        nonce = self._state.nonces.get(frm, 0)
        self._state.nonces[frm] = nonce + 1
        self._commit_block(env)
        tx_hash = "0x" + hashlib.sha3_256(f"{self.chain_id}|{frm}|{nonce}|{env.number}".encode()).hexdigest()
        indexed = tuple(Log(lg.address, lg.event, lg.args, i) for i, lg in enumerate(logs))
        self._log.debug(
            "transaction mined",
            extra={"tx": tx_hash, "block": env.number, "to": to, "created": created, "logs": len(indexed)},
        )
        return Receipt(
            tx_hash=tx_hash,
            block_number=env.number,
            timestamp=env.timestamp,
            sender=frm,
            to=to,
            contract_address=created,
            value=value,
            logs=indexed,
            return_value=ret,
        )


__all__ = ["GENESIS_TIMESTAMP", "ZERO_ADDRESS", "LocalChain", "Receipt"]
