"""
LocalChain: accounts, blocks and time, snapshots, transaction atomicity and
call semantics, driven through a small inline contract.
"""
from __future__ import annotations

import pytest

from millionaire.devnet import GENESIS_TIMESTAMP, ZERO_ADDRESS, LocalChain, make_signers
from millionaire.errors import ContractRevert, SnapshotError, TransactionError, VmContextError
from millionaire.units import parse_ether
from millionaire.vm import Frame
from millionaire.vm.stdlib import abi, events, storage, treasury

COUNTER = '''
from millionaire.vm.stdlib import abi, env, events, storage, treasury

def constructor(start):
    storage.set(b"count", start)
    storage.set(b"owner", env.sender())

def increment(by):
    n = storage.get(b"count", 0) + by
    storage.set(b"count", n)
    events.emit("Incremented", {"by": by, "count": n})
    abi.require(n <= 10, "TooBig", n)
    return n

def count():
    return storage.get(b"count", 0)

def sneakyWrite():
    storage.set(b"count", 99)
    return 99

def deposit():
    return env.value()

def whoami():
    return [env.sender(), env.this(), env.block_number(), env.timestamp(), env.chain_id()]

def boom():
    return 1 // 0
'''


@pytest.fixture
def counter_artifact(write_contract, abi_fn):
    return write_contract(
        "Counter",
        COUNTER,
        constructor={"inputs": [{"name": "start", "type": "uint256"}]},
        functions=[
            abi_fn("increment", inputs=["by:uint256"], outputs=["n:uint256"]),
            abi_fn("count", "view", outputs=["n:uint256"]),
            abi_fn("sneakyWrite", "view", outputs=["n:uint256"]),
            abi_fn("deposit", "payable", outputs=["v:uint256"]),
            abi_fn("whoami", "view", outputs=[":address", ":address", ":uint256", ":uint256", ":uint256"]),
            abi_fn("boom"),
        ],
        events=[{"name": "Incremented", "inputs": [{"name": "by", "type": "uint256"}, {"name": "count", "type": "uint256"}]}],
        errors=[{"name": "TooBig", "inputs": [{"name": "n", "type": "uint256"}]}],
    )


@pytest.fixture
def counter(local_chain, counter_artifact):
    deployer = local_chain.signer(0)
    rcpt = local_chain.deploy(counter_artifact, sender=deployer, args=(1,))
    return rcpt.contract_address


class TestAccounts:
    def test_signers_are_deterministic_and_funded(self):
        a, b = LocalChain(), LocalChain()
        assert [s.address for s in a.get_signers()] == [s.address for s in b.get_signers()]
        assert len(a.get_signers()) == 20
        assert len({s.address for s in a.get_signers()}) == 20
        assert a.balance(a.signer(0)) == parse_ether("10000")

    def test_seed_changes_addresses(self):
        assert make_signers(1, "other")[0] != make_signers(1)[0]

    def test_named_accounts(self, local_chain):
        named = local_chain.named_accounts()
        assert named["deployer"] == local_chain.signer(0)
        assert named["player"] == local_chain.signer(1)

    def test_invalid_address(self, local_chain):
        with pytest.raises(TransactionError):
            local_chain.balance("not-an-address")


class TestBlocksAndTime:
    def test_genesis(self, local_chain):
        assert local_chain.block_number == 0
        assert local_chain.timestamp == GENESIS_TIMESTAMP

    def test_mine_and_increase_time(self, local_chain):
        local_chain.increase_time(30)
        env = local_chain.mine()
        assert env.number == 1
        assert env.timestamp == GENESIS_TIMESTAMP + 31
        env = local_chain.mine(2)
        assert env.number == 3
        assert env.timestamp == GENESIS_TIMESTAMP + 33

    def test_negative_time_rejected(self, local_chain):
        with pytest.raises(ValueError):
            local_chain.increase_time(-1)

    def test_each_transaction_mines_a_block(self, local_chain, counter):
        before = local_chain.block_number
        rcpt = local_chain.transact(counter, "increment", (1,), sender=local_chain.signer(1))
        assert rcpt.block_number == before + 1
        assert local_chain.block_number == before + 1
        assert rcpt.timestamp == local_chain.timestamp


class TestSnapshots:
    def test_revert_restores_state(self, local_chain, counter):
        sid = local_chain.snapshot()
        assert sid == 1
        local_chain.transact(counter, "increment", (2,), sender=local_chain.signer(0))
        assert local_chain.call(counter, "count") == 3
        assert local_chain.revert(sid) is True
        assert local_chain.call(counter, "count") == 1

    def test_revert_consumes_later_snapshots(self, local_chain):
        first = local_chain.snapshot()
        second = local_chain.snapshot()
        assert local_chain.revert(first) is True
        assert local_chain.revert(second) is False
        assert local_chain.revert(first) is False

    def test_unknown_snapshot(self, local_chain):
        with pytest.raises(SnapshotError):
            local_chain.revert(42)
        with pytest.raises(SnapshotError):
            local_chain.revert(0)


class TestTransactions:
    def test_deploy_runs_constructor(self, local_chain, counter):
        assert local_chain.code_at(counter) is not None
        assert local_chain.call(counter, "count") == 1
        assert local_chain.nonce(local_chain.signer(0)) == 1

    def test_return_value_and_logs(self, local_chain, counter):
        rcpt = local_chain.transact(counter, "increment", (4,), sender=local_chain.signer(0))
        assert rcpt.return_value == 5
        log = rcpt.event("Incremented")
        assert log.address == counter
        assert dict(log.args) == {"by": 4, "count": 5}
        assert log.log_index == 0
        with pytest.raises(LookupError):
            rcpt.event("Decremented")

    def test_revert_is_atomic(self, local_chain, counter):
        sender = local_chain.signer(0)
        block, nonce = local_chain.block_number, local_chain.nonce(sender)
        with pytest.raises(ContractRevert) as ei:
            local_chain.transact(counter, "increment", (20,), sender=sender)
        assert ei.value.error == "TooBig"
        assert ei.value.error_args == (21,)
        assert ei.value.address == counter
        assert local_chain.call(counter, "count") == 1
        assert local_chain.block_number == block
        assert local_chain.nonce(sender) == nonce

    def test_value_to_non_payable(self, local_chain, counter):
        with pytest.raises(TransactionError, match="non-payable"):
            local_chain.transact(counter, "increment", (1,), sender=local_chain.signer(0), value=1)

    def test_payable_moves_value(self, local_chain, counter):
        sender = local_chain.signer(2)
        before = local_chain.balance(sender)
        rcpt = local_chain.transact(counter, "deposit", sender=sender, value=parse_ether("1"))
        assert rcpt.return_value == parse_ether("1")
        assert local_chain.balance(counter) == parse_ether("1")
        assert local_chain.balance(sender) == before - parse_ether("1")

    def test_insufficient_funds(self, local_chain, counter):
        poor = "0x" + "22" * 20
        with pytest.raises(TransactionError, match="enough funds"):
            local_chain.transact(counter, "deposit", sender=poor, value=1)

    def test_unknown_function(self, local_chain, counter):
        with pytest.raises(TransactionError, match="not found"):
            local_chain.transact(counter, "decrement", sender=local_chain.signer(0))

    def test_wrong_arity(self, local_chain, counter):
        with pytest.raises(TransactionError, match="argument"):
            local_chain.transact(counter, "increment", (), sender=local_chain.signer(0))

    def test_no_code(self, local_chain):
        with pytest.raises(TransactionError, match="no contract code"):
            local_chain.transact("0x" + "33" * 20, "count", sender=local_chain.signer(0))

    def test_python_errors_become_transaction_errors(self, local_chain, counter):
        with pytest.raises(TransactionError, match="ZeroDivisionError"):
            local_chain.transact(counter, "boom", sender=local_chain.signer(0))


class TestCalls:
    def test_call_sees_latest_block(self, local_chain, counter):
        sender, this, number, ts, chain_id = local_chain.call(counter, "whoami", sender=local_chain.signer(3))
        assert sender == local_chain.signer(3).address
        assert this == counter
        assert (number, ts) == (local_chain.block_number, local_chain.timestamp)
        assert chain_id == 31337

    def test_call_does_not_persist(self, local_chain, counter):
        block = local_chain.block_number
        assert local_chain.call(counter, "increment", (3,)) == 4
        assert local_chain.call(counter, "count") == 1
        assert local_chain.block_number == block

    def test_view_cannot_write(self, local_chain, counter):
        with pytest.raises(TransactionError, match="PermissionError"):
            local_chain.call(counter, "sneakyWrite")


def test_stdlib_outside_a_frame():
    with pytest.raises(VmContextError):
        storage.get(b"count")
    with pytest.raises(VmContextError):
        events.emit("Anything", {})
    with pytest.raises(VmContextError):
        treasury.balance()


def test_revert_outside_a_frame_has_no_address():
    with pytest.raises(ContractRevert) as ei:
        abi.revert("Nope", 1)
    assert ei.value.address is None
    assert ei.value.signature == "Nope(1)"


def test_frame_without_code_is_rejected(local_chain):
    frame = Frame(host=local_chain, address="0x" + "44" * 20, sender=ZERO_ADDRESS, value=0, block=local_chain.block)
    with pytest.raises(TransactionError, match="no contract code"):
        local_chain._execute(frame, "count", ())
