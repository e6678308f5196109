# Millionaire: a VRF-drawn lottery for the Millionaire local VM
# -------------------------------------------------------------
# Players enter by paying at least the entrance fee. Once the interval has
# passed and there is at least one player (and a balance), an upkeep call
# closes the round and asks the VRF coordinator for a random word; the
# coordinator's callback picks the winner, pays out the whole balance and
# reopens the lottery.
#
# Interface:
#   constructor(vrfCoordinatorV2, entranceFee, gasLane, subscriptionId,
#               callbackGasLimit, interval)
#   enterRaffle()                          payable
#   checkUpkeep(checkData) -> (upkeepNeeded, performData)
#   performUpkeep(performData)
#   rawFulfillRandomWords(requestId, randomWords)   coordinator only
#   getEntranceFee / getPlayer / getRecentWinner / getRaffleState /
#   getNumWords / getNumberOfPlayers / getLatestTimeStamp /
#   getRequestConfirmations / getInterval
#
# States: OPEN = 0, CALCULATING = 1.

from millionaire.vm.stdlib import abi, calls, env, events, storage, treasury

OPEN = 0
CALCULATING = 1

REQUEST_CONFIRMATIONS = 3
NUM_WORDS = 1

# ---- storage keys -------------------------------------------------------------------
K_COORDINATOR   = b"vrf_coordinator"
K_ENTRANCE_FEE  = b"entrance_fee"
K_GAS_LANE      = b"gas_lane"
K_SUB_ID        = b"subscription_id"
K_CALLBACK_GAS  = b"callback_gas_limit"
K_INTERVAL      = b"interval"
K_PLAYERS       = b"players"
K_RECENT_WINNER = b"recent_winner"
K_STATE         = b"raffle_state"
K_LAST_TS       = b"last_timestamp"

_ZERO_ADDRESS = "0x" + "00" * 20


def _players() -> list:
    return list(storage.get(K_PLAYERS, []))


def constructor(
    vrf_coordinator: str,
    entrance_fee: int,
    gas_lane: str,
    subscription_id: int,
    callback_gas_limit: int,
    interval: int,
) -> None:
    storage.set(K_COORDINATOR, vrf_coordinator)
    storage.set(K_ENTRANCE_FEE, entrance_fee)
    storage.set(K_GAS_LANE, gas_lane)
    storage.set(K_SUB_ID, subscription_id)
    storage.set(K_CALLBACK_GAS, callback_gas_limit)
    storage.set(K_INTERVAL, interval)
    storage.set(K_PLAYERS, [])
    storage.set(K_RECENT_WINNER, _ZERO_ADDRESS)
    storage.set(K_STATE, OPEN)
    storage.set(K_LAST_TS, env.timestamp())


# ---- entry --------------------------------------------------------------------------

def enterRaffle() -> None:
    if env.value() < storage.get(K_ENTRANCE_FEE):
        abi.revert("Millionaire__NotEnoughEthEntered")
    if storage.get(K_STATE) != OPEN:
        abi.revert("Millionaire__RaffleNotOpen")
    storage.set(K_PLAYERS, _players() + [env.sender()])
    events.emit(b"MillionaireEnter", {"player": env.sender()})


# ---- upkeep -------------------------------------------------------------------------

def checkUpkeep(check_data: bytes) -> tuple:
    is_open = storage.get(K_STATE) == OPEN
    time_passed = (env.timestamp() - storage.get(K_LAST_TS)) > storage.get(K_INTERVAL)
    has_players = len(_players()) > 0
    has_balance = treasury.balance() > 0
    return (is_open and time_passed and has_players and has_balance, b"")


def performUpkeep(perform_data: bytes) -> None:
    upkeep_needed, _ = checkUpkeep(b"")
    if not upkeep_needed:
        abi.revert(
            "Millionaire__UpkeepNotNeeded",
            treasury.balance(),
            len(_players()),
            storage.get(K_STATE),
        )
    storage.set(K_STATE, CALCULATING)
    request_id = calls.call(
        storage.get(K_COORDINATOR),
        "requestRandomWords",
        storage.get(K_GAS_LANE),
        storage.get(K_SUB_ID),
        REQUEST_CONFIRMATIONS,
        storage.get(K_CALLBACK_GAS),
        NUM_WORDS,
    )
    events.emit(b"RequestedMillionaireWinner", {"requestId": request_id})


# ---- VRF callback -------------------------------------------------------------------

def rawFulfillRandomWords(request_id: int, random_words: list) -> None:
    coordinator = storage.get(K_COORDINATOR)
    if env.sender() != coordinator:
        abi.revert("OnlyCoordinatorCanFulfill", env.sender(), coordinator)
    _fulfill_random_words(request_id, random_words)


def _fulfill_random_words(request_id: int, random_words: list) -> None:
    players = _players()
    winner = players[random_words[0] % len(players)]
    storage.set(K_RECENT_WINNER, winner)
    storage.set(K_STATE, OPEN)
    storage.set(K_PLAYERS, [])
    storage.set(K_LAST_TS, env.timestamp())
    if not treasury.transfer(winner, treasury.balance()):
        abi.revert("Millionaire__TransferFailed")
    events.emit(b"WinnerPicked", {"winner": winner})


# ---- getters ------------------------------------------------------------------------

def getEntranceFee() -> int:
    return storage.get(K_ENTRANCE_FEE)


def getPlayer(index: int) -> str:
    players = _players()
    abi.require(0 <= index < len(players))
    return players[index]


def getRecentWinner() -> str:
    return storage.get(K_RECENT_WINNER)


def getRaffleState() -> int:
    return storage.get(K_STATE)


def getNumWords() -> int:
    return NUM_WORDS


def getNumberOfPlayers() -> int:
    return len(_players())


def getLatestTimeStamp() -> int:
    return storage.get(K_LAST_TS)


def getRequestConfirmations() -> int:
    return REQUEST_CONFIRMATIONS


def getInterval() -> int:
    return storage.get(K_INTERVAL)
