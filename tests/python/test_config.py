from __future__ import annotations

from pathlib import Path

import pytest

from targetwatch.config import load_project_config, parse_project_config
from targetwatch.errors import ConfigError, UnknownEngineError
from targetwatch.targets import EngineType


CONFIG = """
[paths]
source = "src"
build = "dist"

[dirs]
DIR_SHARED = "common"

[transpile]
command = "tsc {source} --outFile {output}"

[watch]
poll = true
interval = 0.5

[targets.api]
folder = "api"
create_folder = true
extensions = [".ts"]
ignore = ["*.swp"]
default = true
source_map = { development = true, production = false }
include_targets = ["shared"]

[targets.shared]
folder = "${DIR_SHARED}"

[targets.web]
engine = "bundler"
"""


def test_load_project_config(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    (root / "targetwatch.toml").write_text(CONFIG, encoding="utf-8")

    cfg = load_project_config(root)
    targets = cfg.load_targets()

    assert cfg.transpile.command == "tsc {source} --outFile {output}"
    assert cfg.watch.poll is True
    assert cfg.watch.interval == 0.5

    api = targets.get_target("api")
    assert api.source_root == root / "src" / "api"
    assert api.build_root == root / "dist" / "api"
    assert api.extensions == frozenset({".ts"})
    assert api.ignore_patterns == ("*.swp",)
    assert api.wants_source_map("development")
    assert targets.get_default_target().name == "api"

    shared = targets.get_target("shared")
    assert shared.source_root == root / "src" / "common"
    assert shared.build_root == root / "dist"

    assert targets.get_target("web").engine is EngineType.BUNDLER


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_project_config(tmp_path)


def test_invalid_toml_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / "targetwatch.toml").write_text("[targets\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_project_config(tmp_path)


def test_only_dir_variables_are_substituted(tmp_path: Path) -> None:
    cfg = parse_project_config(tmp_path, {"targets": {"a": {"folder": "${HOME}/a"}}})

    with pytest.raises(ConfigError, match="DIR_"):
        cfg.load_targets()


def test_unknown_dir_variable(tmp_path: Path) -> None:
    cfg = parse_project_config(tmp_path, {"targets": {"a": {"folder": "${DIR_NOPE}"}}})

    with pytest.raises(ConfigError, match="DIR_NOPE"):
        cfg.load_targets()


def test_unknown_engine_name(tmp_path: Path) -> None:
    cfg = parse_project_config(tmp_path, {"targets": {"a": {"engine": "rollup"}}})

    with pytest.raises(UnknownEngineError, match="rollup"):
        cfg.load_targets()


def test_targets_without_own_folder_overlap(tmp_path: Path) -> None:
    cfg = parse_project_config(
        tmp_path,
        {"targets": {"a": {"has_folder": False}, "b": {}}},
    )

    with pytest.raises(ConfigError, match="overlapping"):
        cfg.load_targets()


def test_boolean_source_map_covers_both_build_types(tmp_path: Path) -> None:
    cfg = parse_project_config(tmp_path.resolve(), {"targets": {"a": {"source_map": True}}})
    target = cfg.load_targets().get_target("a")

    assert target.wants_source_map("development")
    assert target.wants_source_map("production")


def test_copy_section(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    cfg = parse_project_config(root, {"copy": {"items": ["package.json", {"README.md": "docs/README.md"}]}})

    assert cfg.copy.enabled is True
    assert cfg.copy.items == ["package.json", {"README.md": "docs/README.md"}]
    assert parse_project_config(root, {}).copy.items == []

    with pytest.raises(ConfigError, match="not an array"):
        parse_project_config(root, {"copy": {"items": "package.json"}})
    with pytest.raises(ConfigError, match="copy.items entries"):
        parse_project_config(root, {"copy": {"items": [3]}})
