from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Set
import glob
import shutil


def deletion_patterns(directory: Path | str, files: Iterable[str] | str, remove_others: bool = False) -> List[str]:
    """
    Build the glob patterns `clean` deletes, `!` marking exclusions.

        deletion_patterns("build", ["index.html"], True)
        -> ["build/**", "!build", "!build/index.html"]

    Without `remove_others` every entry of `files` becomes a positive pattern,
    so only the named files (or globs) under `directory` are removed.
    """
    base = str(directory).rstrip("/\\")
    entries = [files] if isinstance(files, str) else list(files)
    patterns: List[str] = []
    flag = ""
    if remove_others:
        patterns.append(f"{base}/**")
        patterns.append(f"!{base}")
        flag = "!"
    for entry in entries:
        patterns.append(f"{flag}{base}/{entry}")
    return patterns


def _expand(pattern: str) -> Set[Path]:
    return {Path(p) for p in glob.glob(pattern, recursive=True, include_hidden=True)}


def clean(directory: Path | str, files: Iterable[str] | str, remove_others: bool = False) -> List[Path]:
    include: Set[Path] = set()
    exclude: Set[Path] = set()
    for pattern in deletion_patterns(directory, files, remove_others):
        if pattern.startswith("!"):
            exclude |= _expand(pattern[1:])
        else:
            include |= _expand(pattern)

    # Directories holding a kept path must survive.
    protected: Set[Path] = set()
    for kept in exclude:
        protected.update(kept.parents)

    removed: List[Path] = []
    for path in sorted(include - exclude, key=lambda p: len(p.parts), reverse=True):
        if not path.exists() and not path.is_symlink():
            continue
        if path.is_dir() and not path.is_symlink():
            if path in protected:
                continue
            shutil.rmtree(path)
        else:
            path.unlink()
        removed.append(path)

    return sorted(removed)
