from __future__ import annotations
from pathlib import Path
from typing import Iterator


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def iter_files(root: Path) -> Iterator[Path]:
    """Yield every regular file under `root` in a stable order."""
    if not root.is_dir():
        return
    for p in sorted(root.rglob("*")):
        if p.is_file():
            yield p
