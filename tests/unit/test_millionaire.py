"""
Millionaire unit tests (local development networks only).

Every test starts from a freshly rebuilt "all" deployment set, with the
lottery handle bound to the `player` account (not the deployer).

What we check:
- constructor: state OPEN, interval from the network table
- enterRaffle: underpayment reverts with the named error, a paid entry
  records the player and emits MillionaireEnter
- fixture rebuilds do not leak players between runs
"""
from __future__ import annotations

import pytest

from millionaire.config import network_config
from millionaire.testing import assert_emitted, reverts

pytestmark = pytest.mark.usefixtures("development_only")

OPEN = 0


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


class TestConstructor:
    def test_initializes_the_raffle_correctly(self, raffle, interval, network):
        assert raffle.getRaffleState() == OPEN
        assert interval == network_config(network.chain_id).interval

    def test_entrance_fee_comes_from_network_table(self, entrance_fee, network):
        assert entrance_fee == network_config(network.chain_id).entrance_fee

    def test_is_a_consumer_of_the_mock_subscription(self, raffle, coordinator, deployments):
        sub_id = deployments["Millionaire"].args[3]
        assert coordinator.consumerIsAdded(sub_id, raffle.address) is True


class TestEnterRaffle:
    def test_reverts_when_you_dont_pay_enough(self, raffle):
        with reverts("Millionaire__NotEnoughEthEntered"):
            raffle.enterRaffle()

    def test_reverts_when_one_wei_short(self, raffle, entrance_fee):
        with reverts("Millionaire__NotEnoughEthEntered"):
            raffle.enterRaffle(value=entrance_fee - 1)

    def test_records_players_when_they_enter(self, raffle, entrance_fee, player):
        raffle.enterRaffle(value=entrance_fee)
        assert raffle.getPlayer(0) == player.address

    def test_emits_event_on_enter(self, raffle, entrance_fee, player):
        rcpt = raffle.enterRaffle(value=entrance_fee)
        assert_emitted(rcpt, "MillionaireEnter", emitter=raffle, player=player.address)

    def test_keeps_the_entry_fee(self, raffle, entrance_fee, chain):
        raffle.enterRaffle(value=entrance_fee)
        assert chain.balance(raffle.address) == entrance_fee

    @pytest.mark.skip(reason="entering while a draw is being calculated is not covered yet")
    def test_doesnt_allow_entrance_when_raffle_is_calculating(self, raffle, entrance_fee, interval, chain):
        raffle.enterRaffle(value=entrance_fee)
        chain.increase_time(interval + 1)
        chain.mine()
        raffle.performUpkeep(b"")
        with reverts("Millionaire__RaffleNotOpen"):
            raffle.enterRaffle(value=entrance_fee)


class TestFixtureIsolation:
    def test_rebuild_resets_players(self, registry, player):
        registry.fixture(["all"])
        raffle = registry.get_contract("Millionaire", player)
        raffle.enterRaffle(value=raffle.getEntranceFee())
        assert raffle.getNumberOfPlayers() == 1
        first_address = raffle.address

        registry.fixture(["all"])
        raffle = registry.get_contract("Millionaire", player)
        assert raffle.address == first_address
        assert raffle.getNumberOfPlayers() == 0

        registry.fixture(["all"])
        assert registry.get_contract("Millionaire", player).getNumberOfPlayers() == 0
