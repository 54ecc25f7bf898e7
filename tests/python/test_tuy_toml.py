from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from targetwatch import tuy_toml
from targetwatch.errors import ConfigError
from targetwatch.tuy_ui import FieldSpec, collect_values


BASE = """[paths]
source = "src"
build = "dist"

[targets.app]
create_folder = true
default = true
"""


def test_add_target_entry(tmp_path: Path) -> None:
    text = tuy_toml.add_target_entry(
        BASE, "lib", {"create_folder": True, "extensions": [".ts"]}, tmp_path.resolve()
    )

    data = tomllib.loads(text)
    assert list(data["targets"]) == ["app", "lib"]
    assert data["targets"]["lib"] == {"create_folder": True, "extensions": [".ts"]}
    assert data["paths"] == {"source": "src", "build": "dist"}


def test_add_duplicate_target(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="already exists"):
        tuy_toml.add_target_entry(BASE, "app", {}, tmp_path.resolve())


def test_add_overlapping_target_fails_validation(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        tuy_toml.add_target_entry(BASE, "all", {"has_folder": False}, tmp_path.resolve())


def test_modify_and_remove_target(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    text = tuy_toml.modify_target_entry(BASE, "app", {"engine": "bundler"}, root)
    assert tomllib.loads(text)["targets"]["app"] == {"engine": "bundler"}

    text = tuy_toml.remove_target_entry(text, "app", root)
    assert "targets" not in tomllib.loads(text)

    with pytest.raises(ValueError, match="not found"):
        tuy_toml.remove_target_entry(text, "app", root)


def test_render_quotes_keys_and_values(tmp_path: Path) -> None:
    text = tuy_toml.render_config_text(
        tmp_path.resolve(),
        {
            "dirs": {"DIR_SHARED": "src/shared"},
            "targets": {"web.app": {"engine": "bundler", "source_map": {"production": False}}},
        },
        comments=["generated"],
    )

    assert text.startswith("# generated\n")
    assert '[targets."web.app"]' in text
    assert "source_map = { production = false }" in text
    assert tomllib.loads(text)["targets"]["web.app"]["engine"] == "bundler"


def test_entry_from_form() -> None:
    entry = tuy_toml.entry_from_form(
        {
            "name": "api",
            "engine": "direct",
            "folder": "",
            "create_folder": "yes",
            "extensions": ".ts, .tsx",
            "output_extension": ".js",
            "include_targets": "shared",
            "ignore": "",
            "default": "no",
        }
    )

    assert entry == {
        "engine": "direct",
        "create_folder": True,
        "extensions": [".ts", ".tsx"],
        "output_extension": ".js",
        "include_targets": ["shared"],
    }


def test_handle_add_writes_config(monkeypatch, tmp_path: Path, capsys) -> None:
    root = tmp_path.resolve()
    cfg = root / "targetwatch.toml"
    cfg.write_text(BASE, encoding="utf-8")
    answers = {"name": "lib", "engine": "bundler", "create_folder": "no", "default": "no"}

    monkeypatch.setattr(tuy_toml, "prompt_form", lambda title, instructions, fields: dict(answers))

    tuy_toml.handle("add", root)

    assert tomllib.loads(cfg.read_text(encoding="utf-8"))["targets"]["lib"]["engine"] == "bundler"
    assert "Added target lib" in capsys.readouterr().out


def test_handle_cancel(monkeypatch, tmp_path: Path, capsys) -> None:
    (tmp_path / "targetwatch.toml").write_text(BASE, encoding="utf-8")

    def cancel(title, instructions, fields):
        raise KeyboardInterrupt("Cancelled")

    monkeypatch.setattr(tuy_toml, "prompt_form", cancel)

    tuy_toml.handle("remove", tmp_path)

    assert "Cancelled" in capsys.readouterr().out
    assert (tmp_path / "targetwatch.toml").read_text(encoding="utf-8") == BASE


def test_collect_values_reports_missing_required() -> None:
    fields = [FieldSpec(name="name", label="Target name"), FieldSpec(name="folder", label="Folder", optional=True)]

    assert collect_values(fields, {"name": " api ", "folder": ""}) == ({"name": "api", "folder": ""}, None)
    assert collect_values(fields, {"name": "  "})[1] == "Target name is required."


def test_modify_keeps_settings_the_form_does_not_ask_about(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    text = BASE + '\n[targets.lib]\nhas_folder = true\nextensions = [".ts"]\nsource_map = { production = false }\n'
    existing = tomllib.loads(text)["targets"]["lib"]
    answers = {
        "engine": "direct",
        "folder": "",
        "create_folder": "yes",
        "extensions": "",
        "output_extension": ".mjs",
        "include_targets": "",
        "ignore": "",
        "default": "no",
    }

    entry = tuy_toml.entry_from_form(answers, existing)
    updated = tomllib.loads(tuy_toml.modify_target_entry(text, "lib", entry, root))["targets"]["lib"]

    assert updated == {
        "has_folder": True,
        "source_map": {"production": False},
        "engine": "direct",
        "create_folder": True,
        "output_extension": ".mjs",
    }
    assert "extensions" not in updated


def test_switching_to_bundler_drops_direct_settings() -> None:
    existing = {"extensions": [".ts"], "output_extension": ".mjs", "has_folder": True}

    entry = tuy_toml.entry_from_form({"engine": "bundler", "create_folder": "no", "default": "no"}, existing)

    assert entry == {"engine": "bundler", "has_folder": True}
