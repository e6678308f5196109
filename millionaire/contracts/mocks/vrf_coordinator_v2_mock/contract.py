# VRFCoordinatorV2Mock for the Millionaire local VM
# -------------------------------------------------
# Local stand-in for the VRF v2 coordinator. Subscriptions are created and
# funded without a LINK token; randomness requests are fulfilled on demand
# by calling fulfillRandomWords(requestId, consumer) from a test or script.
#
# Interface:
#   constructor(baseFee, gasPriceLink)
#   createSubscription() -> subId
#   fundSubscription(subId, amount)
#   addConsumer(subId, consumer) / removeConsumer(subId, consumer)
#   cancelSubscription(subId, to)
#   getSubscription(subId) -> (balance, reqCount, owner, consumers)
#   consumerIsAdded(subId, consumer) -> bool
#   requestRandomWords(keyHash, subId, minConfs, callbackGasLimit, numWords) -> requestId
#   fulfillRandomWords(requestId, consumer)
#   fulfillRandomWordsWithOverride(requestId, consumer, words)
#
# Notes:
# - Ids start at 1 (subscriptions and requests); preSeed starts at 100.
# - Default words are sha3(abi.encode(requestId, i)) for i in 0..numWords-1.
# - A consumer callback that reverts does not revert the fulfilment; it is
#   reported as success=False in RandomWordsFulfilled.
# - Payment per fulfilment: BASE_FEE + GAS_PRICE_LINK * callbackGasLimit.

from millionaire.vm.stdlib import abi, calls, env, events, hash, storage

# ---- storage keys -------------------------------------------------------------------
K_BASE_FEE       = b"base_fee"
K_GAS_PRICE_LINK = b"gas_price_link"
K_CURRENT_SUB_ID = b"current_sub_id"
K_NEXT_REQUEST   = b"next_request_id"
K_NEXT_PRESEED   = b"next_preseed"

_MAX_CONSUMERS = 100


def _sub_key(sub_id: int) -> bytes:
    return b"sub:" + str(sub_id).encode()


def _req_key(request_id: int) -> bytes:
    return b"req:" + str(request_id).encode()


def _load_sub(sub_id: int) -> dict:
    sub = storage.get(_sub_key(sub_id))
    if sub is None:
        abi.revert("InvalidSubscription")
    return dict(sub)


def _only_sub_owner(sub_id: int) -> dict:
    sub = _load_sub(sub_id)
    if sub["owner"] != env.sender():
        abi.revert("MustBeSubOwner", sub["owner"])
    return sub


# ---- lifecycle ----------------------------------------------------------------------

def constructor(base_fee: int, gas_price_link: int) -> None:
    storage.set(K_BASE_FEE, base_fee)
    storage.set(K_GAS_PRICE_LINK, gas_price_link)
    storage.set(K_CURRENT_SUB_ID, 0)
    storage.set(K_NEXT_REQUEST, 1)
    storage.set(K_NEXT_PRESEED, 100)


def BASE_FEE() -> int:
    return storage.get(K_BASE_FEE)


def GAS_PRICE_LINK() -> int:
    return storage.get(K_GAS_PRICE_LINK)


def MAX_CONSUMERS() -> int:
    return _MAX_CONSUMERS


# ---- subscriptions ------------------------------------------------------------------

def createSubscription() -> int:
    sub_id = storage.get(K_CURRENT_SUB_ID) + 1
    storage.set(K_CURRENT_SUB_ID, sub_id)
    storage.set(_sub_key(sub_id), {"owner": env.sender(), "balance": 0, "consumers": []})
    events.emit(b"SubscriptionCreated", {"subId": sub_id, "owner": env.sender()})
    return sub_id


def fundSubscription(sub_id: int, amount: int) -> None:
    sub = _load_sub(sub_id)
    old = sub["balance"]
    sub["balance"] = old + amount
    storage.set(_sub_key(sub_id), sub)
    events.emit(b"SubscriptionFunded", {"subId": sub_id, "oldBalance": old, "newBalance": old + amount})


def getSubscription(sub_id: int) -> tuple:
    sub = _load_sub(sub_id)
    return (sub["balance"], 0, sub["owner"], list(sub["consumers"]))


def consumerIsAdded(sub_id: int, consumer: str) -> bool:
    sub = storage.get(_sub_key(sub_id))
    return sub is not None and consumer in sub["consumers"]


def addConsumer(sub_id: int, consumer: str) -> None:
    sub = _only_sub_owner(sub_id)
    if len(sub["consumers"]) == _MAX_CONSUMERS:
        abi.revert("TooManyConsumers")
    if consumer in sub["consumers"]:
        return
    sub["consumers"] = list(sub["consumers"]) + [consumer]
    storage.set(_sub_key(sub_id), sub)
    events.emit(b"ConsumerAdded", {"subId": sub_id, "consumer": consumer})


def removeConsumer(sub_id: int, consumer: str) -> None:
    sub = _only_sub_owner(sub_id)
    if consumer not in sub["consumers"]:
        abi.revert("InvalidConsumer", sub_id, consumer)
    sub["consumers"] = [c for c in sub["consumers"] if c != consumer]
    storage.set(_sub_key(sub_id), sub)
    events.emit(b"ConsumerRemoved", {"subId": sub_id, "consumer": consumer})


def cancelSubscription(sub_id: int, to: str) -> None:
    sub = _only_sub_owner(sub_id)
    events.emit(b"SubscriptionCanceled", {"subId": sub_id, "to": to, "amount": sub["balance"]})
    storage.delete(_sub_key(sub_id))


# ---- randomness ---------------------------------------------------------------------

def requestRandomWords(
    key_hash: str,
    sub_id: int,
    minimum_request_confirmations: int,
    callback_gas_limit: int,
    num_words: int,
) -> int:
    consumer = env.sender()
    _load_sub(sub_id)
    if not consumerIsAdded(sub_id, consumer):
        abi.revert("InvalidConsumer", sub_id, consumer)

    request_id = storage.get(K_NEXT_REQUEST)
    pre_seed = storage.get(K_NEXT_PRESEED)
    storage.set(K_NEXT_REQUEST, request_id + 1)
    storage.set(K_NEXT_PRESEED, pre_seed + 1)
    storage.set(
        _req_key(request_id),
        {"subId": sub_id, "callbackGasLimit": callback_gas_limit, "numWords": num_words},
    )
    events.emit(
        b"RandomWordsRequested",
        {
            "keyHash": key_hash,
            "requestId": request_id,
            "preSeed": pre_seed,
            "subId": sub_id,
            "minimumRequestConfirmations": minimum_request_confirmations,
            "callbackGasLimit": callback_gas_limit,
            "numWords": num_words,
            "sender": consumer,
        },
    )
    return request_id


def fulfillRandomWords(request_id: int, consumer: str) -> None:
    fulfillRandomWordsWithOverride(request_id, consumer, [])


def fulfillRandomWordsWithOverride(request_id: int, consumer: str, words: list) -> None:
    req = storage.get(_req_key(request_id))
    if req is None:
        abi.revert("NonexistentRequest", request_id)

    if len(words) == 0:
        words = [
            int.from_bytes(hash.keccak256(hash.encode_uint256(request_id, i)), "big")
            for i in range(req["numWords"])
        ]
    elif len(words) != req["numWords"]:
        abi.revert("InvalidRandomWords")

    success, _ = calls.try_call(consumer, "rawFulfillRandomWords", request_id, list(words))

    payment = storage.get(K_BASE_FEE) + storage.get(K_GAS_PRICE_LINK) * req["callbackGasLimit"]
    sub = _load_sub(req["subId"])
    if sub["balance"] < payment:
        abi.revert("InsufficientBalance")
    sub["balance"] = sub["balance"] - payment
    storage.set(_sub_key(req["subId"]), sub)
    storage.delete(_req_key(request_id))
    events.emit(
        b"RandomWordsFulfilled",
        {"requestId": request_id, "outputSeed": request_id, "payment": payment, "success": success},
    )
