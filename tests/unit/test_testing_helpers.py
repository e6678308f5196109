import pytest

from millionaire.devnet import Receipt
from millionaire.errors import ContractRevert, TransactionError
from millionaire.testing import assert_emitted, events_named, reverts
from millionaire.vm import Log

ADDR = "0x" + "ab" * 20


def _receipt(*logs):
    return Receipt(
        tx_hash="0x00", block_number=1, timestamp=1, sender=ADDR, to=ADDR,
        contract_address=None, value=0, logs=tuple(logs),
    )


class TestReverts:
    def test_matching_error(self):
        with reverts("Millionaire__NotOpen") as info:
            raise ContractRevert("Millionaire__NotOpen", (), ADDR)
        assert info.error is not None and info.error.address == ADDR

    def test_matching_args(self):
        with reverts("Millionaire__UpkeepNotNeeded", 0, 0, 0):
            raise ContractRevert("Millionaire__UpkeepNotNeeded", (0, 0, 0))

    def test_any_revert(self):
        with reverts():
            raise ContractRevert()

    def test_wrong_error(self):
        with pytest.raises(AssertionError, match="Millionaire__NotOpen"):
            with reverts("Millionaire__NotOpen"):
                raise ContractRevert("Millionaire__NotEnoughEthEntered")

    def test_generic_revert_does_not_satisfy_named(self):
        with pytest.raises(AssertionError):
            with reverts("Millionaire__NotOpen"):
                raise ContractRevert()

    def test_wrong_args(self):
        with pytest.raises(AssertionError, match="args"):
            with reverts("Millionaire__UpkeepNotNeeded", 1, 0, 0):
                raise ContractRevert("Millionaire__UpkeepNotNeeded", (0, 0, 0))

    def test_no_revert(self):
        with pytest.raises(AssertionError, match="didn't revert"):
            with reverts("Millionaire__NotOpen"):
                pass

    def test_other_errors_propagate(self):
        with pytest.raises(TransactionError):
            with reverts():
                raise TransactionError("refused")


class TestEvents:
    def test_assert_emitted(self):
        rcpt = _receipt(Log(ADDR, "MillionaireEnter", {"player": ADDR}, 0))
        lg = assert_emitted(rcpt, "MillionaireEnter", emitter=ADDR.upper().replace("0X", "0x"), player=ADDR.upper().replace("0X", "0x"))
        assert lg["player"] == ADDR
        assert events_named(rcpt, "MillionaireEnter") == [lg]

    def test_missing_event(self):
        with pytest.raises(AssertionError, match="wasn't"):
            assert_emitted(_receipt(), "WinnerPicked")

    def test_wrong_args(self):
        rcpt = _receipt(Log(ADDR, "WinnerPicked", {"winner": ADDR}, 0))
        with pytest.raises(AssertionError, match="expected"):
            assert_emitted(rcpt, "WinnerPicked", winner="0x" + "00" * 20)

    def test_wrong_emitter(self):
        rcpt = _receipt(Log(ADDR, "WinnerPicked", {"winner": ADDR}, 0))
        with pytest.raises(AssertionError):
            assert_emitted(rcpt, "WinnerPicked", emitter="0x" + "01" * 20)
