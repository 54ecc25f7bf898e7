from __future__ import annotations
from pathlib import Path

from .config import CONFIG_FILENAME
from .tuy_toml import render_config_text
from .utils import ensure_dir


STARTER_TARGET = "app"

STARTER_SOURCE = """export function hello(name) {
  return `hello ${name}`;
}
"""


def write_if_missing(path: Path, content: str) -> None:
    """
    Write `content` to `path` if the file does not already exist.

    Re-running `targetwatch init` never clobbers manual edits.
    """
    if path.exists():
        print(f"[targetwatch:init] {path} already exists, skipping.")
        return
    ensure_dir(path.parent)
    path.write_text(content, encoding="utf-8")
    print(f"[targetwatch:init] wrote {path}")


def init_project(root: Path) -> None:
    """Initialise a barebones targetwatch project under `root`."""

    print(f"[targetwatch:init] initializing barebones project under {root}")
    ensure_dir(root / "src" / STARTER_TARGET)
    ensure_dir(root / "dist")

    content = render_config_text(
        root,
        {
            "paths": {"source": "src", "build": "dist"},
            "watch": {"poll": False, "interval": 1.0},
            "targets": {
                STARTER_TARGET: {
                    "engine": "direct",
                    "create_folder": True,
                    "default": True,
                    "source_map": {"development": True, "production": False},
                }
            },
        },
        comments=[
            "targetwatch project configuration.",
            "Use `targetwatch add target` to declare more targets.",
        ],
    )
    write_if_missing(root / CONFIG_FILENAME, content)
    write_if_missing(root / "src" / STARTER_TARGET / "index.js", STARTER_SOURCE)
    print("[targetwatch:init] done.")


if __name__ == "__main__":
    init_project(Path(".").resolve())
