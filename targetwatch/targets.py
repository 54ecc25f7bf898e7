from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple

from .errors import ConfigError, TargetNotFoundError


class EngineType(StrEnum):
    BUNDLER = "bundler"
    DIRECT = "direct"


class BuildType(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


DEFAULT_EXTENSIONS: frozenset[str] = frozenset({".js", ".jsx", ".ts", ".tsx"})
DEFAULT_OUTPUT_EXTENSION = ".js"


def _overlaps(a: Path, b: Path) -> bool:
    return a == b or a.is_relative_to(b) or b.is_relative_to(a)


@dataclass(frozen=True)
class Target:
    name: str
    source_root: Path
    build_root: Path
    engine: EngineType = EngineType.DIRECT
    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    output_extension: str = DEFAULT_OUTPUT_EXTENSION
    include_targets: Tuple[str, ...] = ()
    source_map: Mapping[str, bool] = field(default_factory=dict)
    ignore_patterns: Tuple[str, ...] = ()
    is_default: bool = False

    def __post_init__(self) -> None:
        if not self.source_root.is_absolute() or not self.build_root.is_absolute():
            raise ConfigError(f"Target {self.name} paths must be absolute")
        if _overlaps(self.source_root, self.build_root):
            raise ConfigError(
                f"Target {self.name} source ({self.source_root}) and build "
                f"({self.build_root}) directories overlap"
            )
        normalized = frozenset(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in self.extensions)
        object.__setattr__(self, "extensions", normalized)

    @property
    def is_bundled(self) -> bool:
        return self.engine is EngineType.BUNDLER

    def wants_source_map(self, build_type: str) -> bool:
        return bool(self.source_map.get(build_type, False))


class Targets:
    """Registry of the targets declared by a project.

    Source roots must be disjoint so every source file belongs to exactly one
    target, and no build root may overlap the source root of another target.
    Include references must name other targets of the same project.
    """

    def __init__(self, targets: Iterable[Target]) -> None:
        self._targets: Dict[str, Target] = {}
        for target in targets:
            if target.name in self._targets:
                raise ConfigError(f"Duplicate target name: {target.name}")
            for other in self._targets.values():
                if _overlaps(target.source_root, other.source_root):
                    raise ConfigError(
                        f"Targets {other.name} and {target.name} have overlapping "
                        f"source directories ({other.source_root}, {target.source_root})"
                    )
            self._targets[target.name] = target

        for target in self._targets.values():
            for other in self._targets.values():
                if other is not target and _overlaps(target.build_root, other.source_root):
                    raise ConfigError(
                        f"The build directory of {target.name} ({target.build_root}) overlaps "
                        f"the source directory of {other.name} ({other.source_root})"
                    )

        for target in self._targets.values():
            for name in target.include_targets:
                if name not in self._targets:
                    raise ConfigError(f"Target {target.name} includes an unknown target: {name}")
                if name == target.name:
                    raise ConfigError(f"Target {target.name} can't include itself")

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def names(self) -> List[str]:
        return list(self._targets)

    def get_target(self, name: str) -> Target:
        target = self._targets.get(name)
        if target is None:
            available = ", ".join(self.names()) or "none"
            raise TargetNotFoundError(f"The required target doesn't exist: {name} (available: {available})")
        return target

    def get_default_target(self) -> Target:
        if not self._targets:
            raise TargetNotFoundError("The project doesn't have any targets")
        for target in self._targets.values():
            if target.is_default:
                return target
        return next(iter(self._targets.values()))

    def resolve_includes(self, target: Target) -> List[Target]:
        """Return the include targets of `target`, refusing bundled ones."""
        included: List[Target] = []
        for name in target.include_targets:
            sub = self.get_target(name)
            if sub.is_bundled:
                raise ConfigError(
                    f"The target {name} requires bundling so it can't be included by {target.name}"
                )
            included.append(sub)
        return included
