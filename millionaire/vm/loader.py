"""
millionaire.vm.loader — contract artifacts (manifest + Python source)

A contract lives in a directory holding two files:

    <package>/contract.py     top-level functions are entrypoints
    <package>/manifest.json   name + ABI

Manifest shape:

    {
      "name": "Millionaire",
      "entry": "contract.py",
      "abi": {
        "constructor": {"inputs": [...], "stateMutability": "nonpayable"},
        "functions": [
          {"name": "enterRaffle", "stateMutability": "payable",
           "inputs": [], "outputs": []},
          ...
        ],
        "events": [{"name": "MillionaireEnter", "inputs": [{"name": "player", "type": "address"}]}],
        "errors": [{"name": "Millionaire__NotEnoughEthEntered", "inputs": []}]
      }
    }

Artifacts are looked up by contract name under the contracts root: the
MILLIONAIRE_CONTRACTS_DIR environment variable when set, otherwise the
contract packages shipped with this distribution (`millionaire/contracts/`).
"""

from __future__ import annotations

import hashlib
import importlib.util
import json
import os
import types
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import ConfigError, TransactionError

_SCALAR_TYPES = {"address", "bool", "bytes", "string", "bytes32"}
_MUTABILITY = {"pure", "view", "nonpayable", "payable"}


def _valid_type(t: str) -> bool:
    base = t[:-2] if t.endswith("[]") else t
    if base in _SCALAR_TYPES:
        return True
    for prefix in ("uint", "int"):
        if base.startswith(prefix):
            bits = base[len(prefix):]
            return bits == "" or (bits.isdigit() and 8 <= int(bits) <= 256 and int(bits) % 8 == 0)
    return False


# -------------------------
# ABI schema
# -------------------------


@dataclass(frozen=True)
class AbiParam:
    name: str
    type: str


@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: Tuple[AbiParam, ...]
    outputs: Tuple[AbiParam, ...]
    state_mutability: str = "nonpayable"

    @property
    def is_view(self) -> bool:
        return self.state_mutability in ("view", "pure")

    @property
    def is_payable(self) -> bool:
        return self.state_mutability == "payable"

    def coerce_args(self, args: Sequence[Any]) -> Tuple[Any, ...]:
        """
        Check arity and normalize address arguments to lowercase hex, so
        contracts can compare addresses with `==` regardless of checksum case.
        """
        if len(args) != len(self.inputs):
            raise TransactionError(
                f"{self.name}: expected {len(self.inputs)} argument(s), got {len(args)}"
            )
        out: List[Any] = []
        for p, a in zip(self.inputs, args):
            if p.type == "address" and isinstance(a, str):
                a = a.lower()
            out.append(a)
        return tuple(out)


def _parse_params(ps: Any, where: str) -> Tuple[AbiParam, ...]:
    if not isinstance(ps, Sequence) or isinstance(ps, (str, bytes)):
        raise ConfigError(f"{where}: params must be a list")
    out: List[AbiParam] = []
    for p in ps:
        if not isinstance(p, Mapping):
            raise ConfigError(f"{where}: param entries must be objects")
        nm = str(p.get("name") or "")
        tp = str(p.get("type") or "").strip()
        if not tp:
            raise ConfigError(f"{where}: param {nm or '<unnamed>'} requires a type")
        if not _valid_type(tp):
            raise ConfigError(f"{where}: unsupported param type {tp!r}")
        out.append(AbiParam(name=nm, type=tp))
    return tuple(out)


def _parse_function(f: Any, where: str) -> AbiFunction:
    if not isinstance(f, Mapping):
        raise ConfigError(f"{where}: function entries must be objects")
    name = str(f.get("name") or "")
    if not name:
        raise ConfigError(f"{where}: function.name missing")
    mut = str(f.get("stateMutability") or f.get("mutability") or "nonpayable").lower()
    if mut not in _MUTABILITY:
        raise ConfigError(f"{where}.{name}: unknown stateMutability {mut!r}")
    return AbiFunction(
        name=name,
        inputs=_parse_params(f.get("inputs", []), f"{where}.{name}.inputs"),
        outputs=_parse_params(f.get("outputs", []), f"{where}.{name}.outputs"),
        state_mutability=mut,
    )


def _parse_named(entries: Any, where: str) -> Dict[str, Tuple[str, ...]]:
    if entries is None:
        return {}
    if not isinstance(entries, Sequence):
        raise ConfigError(f"{where} must be a list")
    out: Dict[str, Tuple[str, ...]] = {}
    for e in entries:
        if not isinstance(e, Mapping) or not e.get("name"):
            raise ConfigError(f"{where}: entries need a name")
        params = _parse_params(e.get("inputs", []), f"{where}.{e['name']}")
        out[str(e["name"])] = tuple(p.name for p in params)
    return out


# -------------------------
# Artifacts
# -------------------------

CONSTRUCTOR = "constructor"


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    source_path: Path
    abi: Mapping[str, Any]
    module: types.ModuleType = field(repr=False, compare=False)
    functions: Mapping[str, AbiFunction] = field(repr=False, compare=False)
    constructor: AbiFunction = field(repr=False, compare=False)
    events: Mapping[str, Tuple[str, ...]] = field(repr=False, compare=False)
    errors: Mapping[str, Tuple[str, ...]] = field(repr=False, compare=False)
    code_hash: str = ""

    def function(self, name: str) -> AbiFunction:
        try:
            return self.functions[name]
        except KeyError:
            raise TransactionError(
                f"{self.name}: function {name!r} not found in ABI (selector not recognized)"
            ) from None

    def entrypoint(self, name: str) -> Callable[..., Any]:
        return getattr(self.module, name)

    def has_constructor_code(self) -> bool:
        return callable(getattr(self.module, CONSTRUCTOR, None))


def _exec_module(source_path: Path) -> Tuple[types.ModuleType, str]:
    src = source_path.read_bytes()
    code_hash = hashlib.sha3_256(src).hexdigest()
    mod_name = "contract_" + code_hash[:16]
    spec = importlib.util.spec_from_loader(mod_name, loader=None)
    module = importlib.util.module_from_spec(spec)  # type: ignore[arg-type]
    module.__file__ = str(source_path)
    exec(compile(src, str(source_path), "exec"), module.__dict__)
    return module, code_hash


def load_artifact_from_dir(path: Union[str, Path]) -> ContractArtifact:
    """Load the contract package in directory `path` (manifest.json + source)."""
    d = Path(path)
    manifest_path = d / "manifest.json"
    if not manifest_path.is_file():
        raise ConfigError(f"missing contract manifest: {manifest_path}")
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse {manifest_path}: {e}") from e

    name = str(manifest.get("name") or "")
    if not name:
        raise ConfigError(f"{manifest_path}: manifest.name missing")
    abi = manifest.get("abi")
    if not isinstance(abi, Mapping):
        raise ConfigError(f"{manifest_path}: manifest.abi must be an object")

    source_path = d / str(manifest.get("entry") or "contract.py")
    if not source_path.is_file():
        raise ConfigError(f"missing contract source: {source_path}")

    functions: Dict[str, AbiFunction] = {}
    for f in abi.get("functions") or []:
        fn = _parse_function(f, name)
        if fn.name in functions:
            raise ConfigError(f"{name}: duplicate function {fn.name!r} (overloads are not supported)")
        functions[fn.name] = fn
    ctor = _parse_function({"name": CONSTRUCTOR, **dict(abi.get("constructor") or {})}, name)

    module, code_hash = _exec_module(source_path)
    missing = [n for n in functions if not callable(getattr(module, n, None))]
    if ctor.inputs and not callable(getattr(module, CONSTRUCTOR, None)):
        missing.append(CONSTRUCTOR)
    if missing:
        raise ConfigError(f"{source_path}: ABI functions without implementation: {', '.join(missing)}")

    return ContractArtifact(
        name=name,
        source_path=source_path,
        abi=abi,
        module=module,
        functions=functions,
        constructor=ctor,
        events=_parse_named(abi.get("events"), f"{name}.events"),
        errors=_parse_named(abi.get("errors"), f"{name}.errors"),
        code_hash=code_hash,
    )


# -------------------------
# Lookup by name
# -------------------------


BUNDLED_CONTRACTS = Path(__file__).resolve().parents[1] / "contracts"


def contracts_root() -> Path:
    env = os.getenv("MILLIONAIRE_CONTRACTS_DIR")
    if env:
        return Path(env)
    if not BUNDLED_CONTRACTS.is_dir():
        raise ConfigError(f"bundled contracts missing at {BUNDLED_CONTRACTS} (set MILLIONAIRE_CONTRACTS_DIR)")
    return BUNDLED_CONTRACTS


_CACHE: Dict[Tuple[str, str], ContractArtifact] = {}


def find_artifact_dir(name: str, root: Optional[Path] = None) -> Path:
    base = root or contracts_root()
    for manifest in sorted(base.glob("**/manifest.json")):
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            continue
        if data.get("name") == name:
            return manifest.parent
    raise ConfigError(f"no contract artifact named {name!r} under {base}")


def load_artifact(name: str, root: Optional[Union[str, Path]] = None) -> ContractArtifact:
    """Load (and cache) the artifact whose manifest is named `name`."""
    base = Path(root) if root is not None else contracts_root()
    key = (name, str(base.resolve()))
    art = _CACHE.get(key)
    if art is None:
        art = load_artifact_from_dir(find_artifact_dir(name, base))
        _CACHE[key] = art
    return art


__all__ = [
    "AbiParam",
    "AbiFunction",
    "ContractArtifact",
    "CONSTRUCTOR",
    "load_artifact",
    "load_artifact_from_dir",
    "find_artifact_dir",
    "contracts_root",
    "BUNDLED_CONTRACTS",
]
