"""
Upkeep and winner selection, driven through the VRF coordinator mock.
"""
from __future__ import annotations

import hashlib

import pytest

from millionaire.testing import assert_emitted, reverts

pytestmark = pytest.mark.usefixtures("development_only")

OPEN, CALCULATING = 0, 1


@pytest.fixture
def raffle(deployments, registry, player):
    return registry.get_contract("Millionaire", player)


@pytest.fixture
def coordinator(deployments, registry):
    return registry.get_contract("VRFCoordinatorV2Mock")


@pytest.fixture
def entrance_fee(raffle):
    return raffle.getEntranceFee()


@pytest.fixture
def interval(raffle):
    return raffle.getInterval()


def _expected_word(request_id: int, index: int = 0) -> int:
    data = request_id.to_bytes(32, "big") + index.to_bytes(32, "big")
    return int.from_bytes(hashlib.sha3_256(data).digest(), "big")


class TestCheckUpkeep:
    def test_false_if_nobody_entered(self, raffle, interval, chain):
        chain.increase_time(interval + 1)
        chain.mine()
        upkeep_needed, _ = raffle.checkUpkeep(b"")
        assert upkeep_needed is False

    def test_false_if_not_enough_time_passed(self, raffle, entrance_fee, interval, chain):
        raffle.enterRaffle(value=entrance_fee)
        chain.increase_time(interval - 5)
        chain.mine()
        upkeep_needed, _ = raffle.checkUpkeep(b"")
        assert upkeep_needed is False

    def test_true_when_time_passed_with_players_and_balance(self, raffle, entrance_fee, interval, chain):
        raffle.enterRaffle(value=entrance_fee)
        chain.increase_time(interval + 1)
        chain.mine()
        upkeep_needed, _ = raffle.checkUpkeep(b"")
        assert upkeep_needed is True


class TestPerformUpkeep:
    def test_reverts_when_upkeep_not_needed(self, raffle):
        with reverts("Millionaire__UpkeepNotNeeded", 0, 0, OPEN):
            raffle.performUpkeep(b"")

    def test_closes_the_round_and_requests_a_word(self, raffle, coordinator, entrance_fee, interval, chain):
        raffle.enterRaffle(value=entrance_fee)
        chain.increase_time(interval + 1)
        chain.mine()

        rcpt = raffle.performUpkeep(b"")

        requested = assert_emitted(rcpt, "RequestedMillionaireWinner", emitter=raffle)
        assert requested["requestId"] == 1
        assert_emitted(rcpt, "RandomWordsRequested", emitter=coordinator, requestId=1, sender=raffle.address)
        assert raffle.getRaffleState() == CALCULATING

    def test_simulated_upkeep_does_not_persist(self, raffle, entrance_fee, interval, chain):
        raffle.enterRaffle(value=entrance_fee)
        chain.increase_time(interval + 1)
        chain.mine()
        raffle.performUpkeep.call(b"")
        assert raffle.getRaffleState() == OPEN


class TestFulfillRandomWords:
    def test_can_only_be_called_after_perform_upkeep(self, raffle, coordinator):
        for request_id in (0, 1):
            with reverts("NonexistentRequest", request_id):
                coordinator.fulfillRandomWords(request_id, raffle.address)

    def test_only_the_coordinator_can_fulfill(self, raffle, coordinator, player):
        with reverts("OnlyCoordinatorCanFulfill", player.address, coordinator.address):
            raffle.rawFulfillRandomWords(1, [7])

    def test_picks_a_winner_resets_and_sends_money(self, raffle, coordinator, entrance_fee, interval, chain):
        entrants = chain.get_signers()[1:5]
        for signer in entrants:
            raffle.connect(signer).enterRaffle(value=entrance_fee)
        start_ts = raffle.getLatestTimeStamp()

        chain.increase_time(interval + 1)
        chain.mine()
        request_id = raffle.performUpkeep(b"").event("RequestedMillionaireWinner")["requestId"]

        winner = entrants[_expected_word(request_id) % len(entrants)]
        winner_start = chain.balance(winner)

        rcpt = coordinator.fulfillRandomWords(request_id, raffle.address)

        assert_emitted(rcpt, "WinnerPicked", emitter=raffle, winner=winner.address)
        assert_emitted(rcpt, "RandomWordsFulfilled", requestId=request_id, success=True)
        assert raffle.getRecentWinner() == winner.address
        assert raffle.getRaffleState() == OPEN
        assert raffle.getNumberOfPlayers() == 0
        assert raffle.getLatestTimeStamp() > start_ts
        assert chain.balance(winner) == winner_start + entrance_fee * len(entrants)
        assert chain.balance(raffle.address) == 0
