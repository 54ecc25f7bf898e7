from __future__ import annotations

from pathlib import Path
import re
import tomllib
from typing import Any, Dict, List, Optional

from .config import CONFIG_FILENAME, parse_project_config
from .errors import TargetwatchError
from .targets import DEFAULT_EXTENSIONS, DEFAULT_OUTPUT_EXTENSION, EngineType
from .tuy_ui import FieldSpec, prompt_form


SECTIONS = ("paths", "dirs", "copy", "transpile", "bundler", "watch")
BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        inner = ", ".join(f"{_render_key(k)} = {_render_value(v)}" for k, v in value.items())
        return "{ " + inner + " }" if inner else "{}"
    if isinstance(value, list):
        return "[" + ", ".join(_render_value(v) for v in value) + "]"
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _render_key(key: str) -> str:
    return key if BARE_KEY.match(key) else _render_value(key)


def _render_config(data: Dict[str, Any]) -> str:
    parts: List[str] = []
    for section in SECTIONS:
        table = data.get(section) or {}
        if not table:
            continue
        parts.append(f"[{section}]")
        for key, value in table.items():
            parts.append(f"{_render_key(key)} = {_render_value(value)}")
        parts.append("")

    for name, entry in (data.get("targets") or {}).items():
        parts.append(f"[targets.{_render_key(name)}]")
        for key, value in entry.items():
            parts.append(f"{_render_key(key)} = {_render_value(value)}")
        parts.append("")

    return "\n".join(parts).strip() + "\n"


def _validate_config_text(root: Path, text: str) -> None:
    parse_project_config(root, tomllib.loads(text)).load_targets()


def _load(config_text: str) -> Dict[str, Any]:
    return tomllib.loads(config_text) if config_text.strip() else {}


def render_config_text(
    root: Path,
    data: Dict[str, Any],
    comments: Optional[List[str]] = None,
) -> str:
    """Render and validate a targetwatch.toml string from structured data."""
    parts: List[str] = []
    if comments:
        parts.extend([f"# {line}".rstrip() for line in comments])
        parts.append("")
    parts.append(_render_config(data).rstrip())

    final_text = "\n".join(parts).rstrip() + "\n"
    _validate_config_text(root, final_text)
    return final_text


def add_target_entry(config_text: str, name: str, entry: Dict[str, Any], root: Path) -> str:
    data = _load(config_text)
    targets = dict(data.get("targets") or {})
    if name in targets:
        raise ValueError(f"Target '{name}' already exists")
    targets[name] = entry
    data["targets"] = targets
    return render_config_text(root, data)


def modify_target_entry(config_text: str, name: str, entry: Dict[str, Any], root: Path) -> str:
    data = _load(config_text)
    targets = dict(data.get("targets") or {})
    if name not in targets:
        raise ValueError(f"Target '{name}' not found")
    targets[name] = entry
    data["targets"] = targets
    return render_config_text(root, data)


def remove_target_entry(config_text: str, name: str, root: Path) -> str:
    data = _load(config_text)
    targets = dict(data.get("targets") or {})
    if name not in targets:
        raise ValueError(f"Target '{name}' not found")
    targets.pop(name)
    data["targets"] = targets
    return render_config_text(root, data)


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def entry_from_form(values: Dict[str, str], existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge the string answers of the target form over an existing [targets.*] table.

    Keys the form does not ask about (`source_map`, `has_folder`, ...) are kept;
    a blank optional answer drops the key so the loader default applies.
    """
    entry: Dict[str, Any] = dict(existing or {})
    entry["engine"] = values.get("engine") or EngineType.DIRECT.value

    def put(key: str, value: Any) -> None:
        if value:
            entry[key] = value
        else:
            entry.pop(key, None)

    put("folder", values.get("folder", "").strip())
    put("create_folder", values.get("create_folder") == "yes")
    if entry["engine"] == EngineType.DIRECT.value:
        put("extensions", _split_list(values.get("extensions", "")))
        put("output_extension", values.get("output_extension", "").strip())
    else:
        entry.pop("extensions", None)
        entry.pop("output_extension", None)
    put("include_targets", _split_list(values.get("include_targets", "")))
    put("ignore", _split_list(values.get("ignore", "")))
    put("default", values.get("default") == "yes")
    return entry


def _prompt_target(name: str = "", existing: Optional[Dict[str, Any]] = None) -> tuple[str, Dict[str, Any]]:
    existing = existing or {}
    yes_no = [("no", "no"), ("yes", "yes")]
    values = prompt_form(
        "Add or edit a target",
        "Targets map a source folder to a build folder. Direct targets are transpiled"
        " file by file; bundler targets hand off to the configured bundler command."
        " Lists are comma separated; blank optional fields fall back to the defaults.",
        [
            FieldSpec(name="name", label="Target name", default=name, placeholder="api"),
            FieldSpec(
                name="engine",
                label="Build engine",
                choices=[(EngineType.DIRECT.value, "direct (transpile/copy)"), (EngineType.BUNDLER.value, "bundler")],
                default=str(existing.get("engine", EngineType.DIRECT.value)),
            ),
            FieldSpec(
                name="folder",
                label="Source folder, ${DIR_*} allowed (optional)",
                default=str(existing.get("folder", "")),
                placeholder="${DIR_SHARED}/api",
                optional=True,
            ),
            FieldSpec(
                name="create_folder",
                label="Build into its own folder",
                choices=yes_no,
                default="yes" if existing.get("create_folder") else "no",
            ),
            FieldSpec(
                name="extensions",
                label="Transpiled extensions (optional)",
                default=", ".join(existing.get("extensions", sorted(DEFAULT_EXTENSIONS))),
                placeholder=".js, .ts",
                optional=True,
            ),
            FieldSpec(
                name="output_extension",
                label="Compiled extension (optional)",
                default=str(existing.get("output_extension", DEFAULT_OUTPUT_EXTENSION)),
                optional=True,
            ),
            FieldSpec(
                name="include_targets",
                label="Include targets (optional)",
                default=", ".join(existing.get("include_targets", [])),
                placeholder="shared",
                optional=True,
            ),
            FieldSpec(
                name="ignore",
                label="Ignored file patterns (optional)",
                default=", ".join(existing.get("ignore", [])),
                placeholder="*.swp, *~",
                optional=True,
            ),
            FieldSpec(
                name="default",
                label="Default target",
                choices=yes_no,
                default="yes" if existing.get("default") else "no",
            ),
        ],
    )
    return values["name"], entry_from_form(values, existing)


def _pick_target(title: str, targets: Dict[str, Any]) -> str:
    if not targets:
        raise ValueError("No targets defined")
    choices = [(name, name) for name in sorted(targets)]
    picked = prompt_form(title, "", [FieldSpec(name="name", label="Target", choices=choices, default=choices[0][0])])
    return picked["name"]


def handle(command: str, root: Path) -> None:
    cfg_path = root / CONFIG_FILENAME
    if not cfg_path.exists():
        print(f"Config file not found at {cfg_path}")
        return

    text = cfg_path.read_text(encoding="utf-8")
    try:
        targets = _load(text).get("targets") or {}
        if command == "add":
            while True:
                name, entry = _prompt_target()
                try:
                    updated = add_target_entry(text, name, entry, root)
                    break
                except (ValueError, TargetwatchError) as exc:
                    print(f"Validation failed: {exc}")
            cfg_path.write_text(updated, encoding="utf-8")
            print(f"Added target {name} to {cfg_path}")
        elif command == "modify":
            picked = _pick_target("Choose the target to edit", targets)
            while True:
                _, entry = _prompt_target(picked, targets[picked])
                try:
                    updated = modify_target_entry(text, picked, entry, root)
                    break
                except (ValueError, TargetwatchError) as exc:
                    print(f"Validation failed: {exc}")
            cfg_path.write_text(updated, encoding="utf-8")
            print(f"Updated target {picked} in {cfg_path}")
        elif command == "remove":
            picked = _pick_target("Choose the target to remove", targets)
            updated = remove_target_entry(text, picked, root)
            cfg_path.write_text(updated, encoding="utf-8")
            print(f"Removed target {picked} from {cfg_path}")
        else:
            print(f"Unknown command '{command}' for target handler")
    except KeyboardInterrupt:
        print("Cancelled")
    except Exception as exc:  # pragma: no cover - user facing
        print(f"Error: {exc}")
