"""Hashing for contracts. keccak256 is aliased to SHA3-256 in this VM."""

from __future__ import annotations

import hashlib
from typing import Union


def _b(data: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def sha3_256(data: Union[bytes, bytearray, str]) -> bytes:
    return hashlib.sha3_256(_b(data)).digest()


def keccak256(data: Union[bytes, bytearray, str]) -> bytes:
    return sha3_256(data)


def encode_uint256(*values: int) -> bytes:
    """Concatenate 32-byte big-endian words, like abi.encode for uint256s."""
    return b"".join(int(v).to_bytes(32, "big") for v in values)


__all__ = ["sha3_256", "keccak256", "encode_uint256"]
