from __future__ import annotations

from pathlib import Path

from targetwatch.config import load_project_config
from targetwatch.init_project import init_project


def _list_files(root: Path) -> set[str]:
    return {
        p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()
    }


def test_init_project_files(tmp_path: Path) -> None:
    root = tmp_path.resolve()

    init_project(root)

    assert _list_files(root) == {"targetwatch.toml", "src/app/index.js"}
    assert (root / "dist").is_dir()

    targets = load_project_config(root).load_targets()
    app = targets.get_default_target()
    assert app.name == "app"
    assert app.source_root == root / "src" / "app"
    assert app.build_root == root / "dist" / "app"
    assert app.wants_source_map("development")


def test_init_project_is_idempotent(tmp_path: Path, capsys) -> None:
    init_project(tmp_path)
    toml_path = tmp_path / "targetwatch.toml"
    toml_path.write_text(toml_path.read_text(encoding="utf-8") + "\n# edited\n", encoding="utf-8")

    init_project(tmp_path)

    assert toml_path.read_text(encoding="utf-8").endswith("# edited\n")
    assert "already exists, skipping." in capsys.readouterr().out
