"""
Contract storage.

Each contract account owns a key/value map. Keys are short bytes (or str)
constants; values are plain deterministic Python values (int, bool, str,
bytes, and lists/tuples of those). Reads and writes always go to the storage
of the contract executing the current frame.
"""

from __future__ import annotations

from typing import Any, Dict, Union

from ..context import current

Key = Union[bytes, str]


def _key(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise TypeError(f"storage key must be bytes or str, got {type(key).__name__}")


def _slots() -> Dict[bytes, Any]:
    frame = current()
    return frame.host.storage_of(frame.address)


def get(key: Key, default: Any = None) -> Any:
    """Value stored at `key`, or `default` when the slot was never written."""
    return _slots().get(_key(key), default)


def set(key: Key, value: Any) -> None:
    frame = current()
    if frame.static:
        raise PermissionError("storage write in a static (view) call")
    _slots()[_key(key)] = value


def delete(key: Key) -> None:
    frame = current()
    if frame.static:
        raise PermissionError("storage write in a static (view) call")
    _slots().pop(_key(key), None)


__all__ = ["get", "set", "delete"]
