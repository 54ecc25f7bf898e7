"""Map a changed source path to the rebuild action it requires."""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from fnmatch import fnmatch
import os
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .targets import Target


class Action(StrEnum):
    TRANSPILE = "transpile"
    COPY = "copy"
    IGNORE = "ignore"


@dataclass(frozen=True)
class ClassifiedAction:
    action: Action
    source_path: Path
    target_path: Optional[Path] = None

    @property
    def ignored(self) -> bool:
        return self.action is Action.IGNORE


def ensure_extension(path: Path, extension: str) -> Path:
    """Swap the suffix of `path` for the compiled output `extension`."""
    if path.suffix.lower() == extension.lower():
        return path
    return path.with_suffix(extension)


def classify(path: Path, target: Target) -> ClassifiedAction:
    path = Path(os.path.normpath(path))
    if not path.is_relative_to(target.source_root) or path == target.source_root:
        return ClassifiedAction(Action.IGNORE, path)

    if any(fnmatch(path.name, pattern) for pattern in target.ignore_patterns):
        return ClassifiedAction(Action.IGNORE, path)

    relative = path.relative_to(target.source_root)
    if path.suffix.lower() in target.extensions:
        output = ensure_extension(target.build_root / relative, target.output_extension)
        return ClassifiedAction(Action.TRANSPILE, path, output)

    return ClassifiedAction(Action.COPY, path, target.build_root / relative)


def classify_for(path: Path, targets: Iterable[Target]) -> Tuple[Optional[Target], ClassifiedAction]:
    """Classify against several targets; the first one that claims the path wins.

    Returns the owning target alongside the action, `None` when every target
    ignores the path.
    """
    for target in targets:
        classified = classify(path, target)
        if not classified.ignored:
            return target, classified
    return None, ClassifiedAction(Action.IGNORE, path)
