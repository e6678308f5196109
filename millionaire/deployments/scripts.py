"""
Deploy scripts.

A deploy script is an explicit registry entry: a name, the tags it answers
to, the tags it depends on, and the function that performs the deployment.

    SCRIPT = DeployScript(
        name="00_deploy_mocks",
        func=provision_mocks,
        tags=frozenset({"all", "mocks"}),
    )

`resolve_scripts` picks the scripts matching a tag request, pulls in their
dependencies, and returns them in registration order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from ..errors import ConfigError

if TYPE_CHECKING:  # pragma: no cover
    from .registry import DeploymentRecord, DeploymentRegistry

ScriptFunc = Callable[["DeploymentRegistry"], Optional[Mapping[str, "DeploymentRecord"]]]


@dataclass(frozen=True)
class DeployScript:
    name: str
    func: ScriptFunc = field(compare=False)
    tags: FrozenSet[str] = frozenset()
    dependencies: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("deploy script name must be non-empty")
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))

    def matches(self, tags: Iterable[str]) -> bool:
        return bool(self.tags & frozenset(tags))

    def __call__(self, registry: "DeploymentRegistry") -> Any:
        return self.func(registry)


def resolve_scripts(scripts: Sequence[DeployScript], tags: Optional[Iterable[str]] = None) -> List[DeployScript]:
    """
    Scripts to run for `tags` (every script when None), plus the scripts their
    dependencies point at, in registration order.
    """
    names = [s.name for s in scripts]
    if len(set(names)) != len(names):
        raise ConfigError(f"duplicate deploy script names: {names}")
    if tags is None:
        return list(scripts)

    wanted = frozenset(tags)
    selected = {s.name for s in scripts if s.matches(wanted)}
    pending = list(selected)
    while pending:
        name = pending.pop()
        script = next(s for s in scripts if s.name == name)
        for s in scripts:
            if s.name not in selected and s.matches(script.dependencies):
                selected.add(s.name)
                pending.append(s.name)
    return [s for s in scripts if s.name in selected]


__all__ = ["DeployScript", "ScriptFunc", "resolve_scripts"]
