from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Match, Optional
import re
import tomllib

from .actions import DEFAULT_SOURCE_MAP_FLAG, DEFAULT_TRANSPILE_COMMAND
from .errors import ConfigError, UnknownEngineError
from .targets import DEFAULT_EXTENSIONS, DEFAULT_OUTPUT_EXTENSION, EngineType, Target, Targets


CONFIG_FILENAME = "targetwatch.toml"
DIR_VAR_PATTERN = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

DEFAULT_BUNDLER_COMMAND = "npx webpack --mode {build_type} --env target={target}"
DEFAULT_BUNDLER_WATCH_FLAG = "--watch"


@dataclass
class TranspileConfig:
    # Compiler invoked once per changed file; {source} and {output} are
    # replaced with absolute paths.
    command: str = DEFAULT_TRANSPILE_COMMAND
    # Appended when the target asks for source maps on the current build type.
    source_map_flag: Optional[str] = DEFAULT_SOURCE_MAP_FLAG


@dataclass
class BundlerConfig:
    # Placeholders: {target}, {build_type}, {source}, {build}.
    command: str = DEFAULT_BUNDLER_COMMAND
    watch_flag: str = DEFAULT_BUNDLER_WATCH_FLAG


@dataclass
class CopyConfig:
    # Project files copied into [paths].build by `targetwatch copy --project`.
    # A string copies to the same relative path; a { from = to } table renames.
    enabled: bool = True
    items: List[str | Dict[str, str]] = field(default_factory=list)


@dataclass
class WatchConfig:
    # Use watchdog's PollingObserver instead of native notifications
    # (network drives, containers with bind mounts).
    poll: bool = False
    interval: float = 1.0


@dataclass
class TargetConfig:
    name: str
    engine: str = EngineType.DIRECT.value
    # Source sub-folder under [paths].source; defaults to the target name.
    folder: Optional[str] = None
    has_folder: bool = True
    # Build into [paths].build/<folder> instead of [paths].build itself.
    create_folder: bool = False
    extensions: List[str] = field(default_factory=lambda: sorted(DEFAULT_EXTENSIONS))
    output_extension: str = DEFAULT_OUTPUT_EXTENSION
    include_targets: List[str] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)
    default: bool = False
    source_map: Dict[str, bool] = field(default_factory=dict)


@dataclass
class ProjectConfig:
    root: Path
    dirs: Dict[str, str] = field(default_factory=dict)
    paths: Dict[str, str] = field(default_factory=lambda: {"source": "src", "build": "dist"})
    targets: List[TargetConfig] = field(default_factory=list)
    transpile: TranspileConfig = field(default_factory=TranspileConfig)
    bundler: BundlerConfig = field(default_factory=BundlerConfig)
    copy: CopyConfig = field(default_factory=CopyConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    source_dir: Path = field(init=False)
    build_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        self.source_dir = self.root / _substitute_dirs(self.paths.get("source", "src"), self.dirs)
        self.build_dir = self.root / _substitute_dirs(self.paths.get("build", "dist"), self.dirs)

    def target_from_config(self, tc: TargetConfig) -> Target:
        try:
            engine = EngineType(tc.engine)
        except ValueError:
            raise UnknownEngineError(f"Target {tc.name} uses an unknown engine: {tc.engine}") from None

        folder = _substitute_dirs(tc.folder or tc.name, self.dirs)
        source_root = self.source_dir / folder if tc.has_folder else self.source_dir
        build_root = self.build_dir / folder if tc.create_folder else self.build_dir

        return Target(
            name=tc.name,
            source_root=source_root.resolve(),
            build_root=build_root.resolve(),
            engine=engine,
            extensions=frozenset(tc.extensions),
            output_extension=tc.output_extension,
            include_targets=tuple(tc.include_targets),
            source_map=dict(tc.source_map),
            ignore_patterns=tuple(tc.ignore),
            is_default=tc.default,
        )

    def load_targets(self) -> Targets:
        return Targets(self.target_from_config(tc) for tc in self.targets)


def _substitute_dirs(value: str, dirs: Dict[str, str]) -> str:
    def repl(m: Match[str]) -> str:
        var = m.group(1)
        if not var.startswith("DIR_"):
            raise ConfigError(f"Only DIR_* variables allowed, saw {var}")
        if var not in dirs:
            raise ConfigError(f"Unknown DIR variable {var}")
        return dirs[var]

    return DIR_VAR_PATTERN.sub(repl, value)


def _str_list(value: Any, what: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{what} must be a list of strings")
    return list(value)


def _parse_target(name: str, raw: Any) -> TargetConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"[targets.{name}] must be a table")
    source_map = raw.get("source_map", {}) or {}
    if isinstance(source_map, bool):
        source_map = {"development": source_map, "production": source_map}
    if not isinstance(source_map, dict):
        raise ConfigError(f"[targets.{name}] source_map must be a table or a boolean")

    tc = TargetConfig(
        name=name,
        engine=str(raw.get("engine", EngineType.DIRECT.value)),
        folder=raw.get("folder"),
        has_folder=bool(raw.get("has_folder", True)),
        create_folder=bool(raw.get("create_folder", False)),
        output_extension=str(raw.get("output_extension", DEFAULT_OUTPUT_EXTENSION)),
        include_targets=_str_list(raw.get("include_targets"), f"[targets.{name}] include_targets"),
        ignore=_str_list(raw.get("ignore"), f"[targets.{name}] ignore"),
        default=bool(raw.get("default", False)),
        source_map={str(k): bool(v) for k, v in source_map.items()},
    )
    if "extensions" in raw:
        tc.extensions = _str_list(raw["extensions"], f"[targets.{name}] extensions")
    return tc


def _parse_copy(raw: Any) -> CopyConfig:
    if not isinstance(raw, dict):
        raise ConfigError("[copy] must be a table")
    items = raw.get("items", [])
    if not isinstance(items, list):
        raise ConfigError("The 'copy.items' setting is not an array")
    for item in items:
        if isinstance(item, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in item.items()):
            continue
        if not isinstance(item, str):
            raise ConfigError(f"copy.items entries must be paths or {{ from = to }} tables, saw {item!r}")
    return CopyConfig(enabled=bool(raw.get("enabled", True)), items=list(items))


def parse_project_config(root: Path, data: Dict[str, Any]) -> ProjectConfig:
    dirs: Dict[str, str] = data.get("dirs", {}) or {}
    paths = {"source": "src", "build": "dist"}
    paths.update({k: str(v) for k, v in (data.get("paths", {}) or {}).items()})

    transpile_raw = data.get("transpile", {}) or {}
    bundler_raw = data.get("bundler", {}) or {}
    watch_raw = data.get("watch", {}) or {}

    targets_raw = data.get("targets", {}) or {}
    if not isinstance(targets_raw, dict):
        raise ConfigError("[targets] must be a table of target tables")

    return ProjectConfig(
        root=root,
        dirs=dirs,
        paths=paths,
        targets=[_parse_target(name, raw) for name, raw in targets_raw.items()],
        transpile=TranspileConfig(
            command=transpile_raw.get("command", DEFAULT_TRANSPILE_COMMAND),
            source_map_flag=transpile_raw.get("source_map_flag", DEFAULT_SOURCE_MAP_FLAG),
        ),
        bundler=BundlerConfig(
            command=bundler_raw.get("command", DEFAULT_BUNDLER_COMMAND),
            watch_flag=bundler_raw.get("watch_flag", DEFAULT_BUNDLER_WATCH_FLAG),
        ),
        copy=_parse_copy(data.get("copy", {}) or {}),
        watch=WatchConfig(
            poll=bool(watch_raw.get("poll", False)),
            interval=float(watch_raw.get("interval", 1.0)),
        ),
    )


def load_project_config(root: Path) -> ProjectConfig:
    cfg_path = root / CONFIG_FILENAME
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    try:
        with cfg_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {cfg_path}: {exc}") from exc

    return parse_project_config(root, data)
