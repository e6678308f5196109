"""
Contract-facing event emission:

    events.emit(b"MillionaireEnter", {"player": env.sender()})

Names and argument keys may be bytes or str; they are normalized to str. If
the executing contract's manifest declares its events, the name and the
argument keys must match a declaration.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Union

from ...errors import TransactionError
from ..context import Log, current


def _to_str_key(k: Any) -> str:
    if isinstance(k, str):
        return k
    if isinstance(k, (bytes, bytearray)):
        try:
            return k.decode("ascii")
        except UnicodeDecodeError:
            return k.hex()
    return str(k)


def emit(name: Union[bytes, str], args: Mapping[Any, Any]) -> None:
    frame = current()
    ev_name = _to_str_key(name)
    converted: Dict[str, Any] = {_to_str_key(k): v for k, v in args.items()}

    artifact = frame.artifact
    if artifact is not None and artifact.events:
        declared = artifact.events.get(ev_name)
        if declared is None:
            raise TransactionError(f"{artifact.name}: event {ev_name!r} is not declared in the ABI")
        if set(declared) != set(converted):
            raise TransactionError(
                f"{artifact.name}: event {ev_name!r} expects args {list(declared)}, got {sorted(converted)}"
            )
        converted = {k: converted[k] for k in declared}

    frame.logs.append(Log(address=frame.address, event=ev_name, args=converted, log_index=len(frame.logs)))


__all__ = ["emit"]
