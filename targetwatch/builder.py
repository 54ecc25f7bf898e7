from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import shlex
import subprocess

from .actions import Transpiler, copy_file
from .classifier import Action, classify, ensure_extension
from .cleaner import clean
from .config import ProjectConfig, load_project_config
from .coordinator import RebuildCoordinator, RebuildResult, print_result
from .engines import BundlerEngine, DirectEngine, EngineSelector, build_engine_selector
from .errors import CopyError, TargetwatchError
from .targets import BuildType, EngineType, Target, Targets
from .utils import iter_files
from .watch_session import ChangeEvent, ChangeKind

DECLARATION_SUFFIXES = (".d.ts", ".d.tsx")


def _is_declaration(path: Path) -> bool:
    return path.name.lower().endswith(DECLARATION_SUFFIXES)


def target_name_variations(name: str) -> List[str]:
    names = [name, f"{name}.js", f"{name}.js.map", f"{name}.*.js", f"{name}.*.js.map"]
    names.extend([f"{n}.gz" for n in names])
    return names


class Builder:
    """One-shot build operations for the targets of a project."""

    def __init__(
        self,
        config: ProjectConfig,
        targets: Optional[Targets] = None,
        selector: Optional[EngineSelector] = None,
        transpiler: Optional[Transpiler] = None,
    ) -> None:
        self.config = config
        self.targets = targets if targets is not None else config.load_targets()
        self.selector = selector or build_engine_selector(config, self.targets, transpiler=transpiler)

    def get_target(self, name: Optional[str] = None) -> Target:
        if name:
            return self.targets.get_target(name)
        return self.targets.get_default_target()

    @property
    def direct_engine(self) -> DirectEngine:
        engine = self.selector.get_engine(EngineType.DIRECT)
        if not isinstance(engine, DirectEngine):
            raise TargetwatchError(f"The {EngineType.DIRECT} engine can't watch or build files one by one")
        return engine

    def _run_actions(
        self, target: Target, action: Action, build_type: str = BuildType.DEVELOPMENT
    ) -> List[RebuildResult]:
        coordinator: RebuildCoordinator = self.direct_engine.coordinator(build_type)
        results: List[RebuildResult] = []
        for owner in (target, *self.targets.resolve_includes(target)):
            for path in iter_files(owner.source_root):
                if classify(path, owner).action is not action:
                    continue
                if action is Action.TRANSPILE and _is_declaration(path):
                    continue
                result = coordinator.dispatch(ChangeEvent(path, ChangeKind.MODIFIED), [owner])
                if result is not None:
                    print_result(result)
                    results.append(result)
        return results

    def copy_target(self, target: Target) -> List[RebuildResult]:
        if target.is_bundled:
            return []
        results = self._run_actions(target, Action.COPY)
        print(f"[targetwatch] the files for {target.name} have been copied ({target.build_root})")
        return results

    def transpile_target(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT
    ) -> List[RebuildResult]:
        if target.is_bundled:
            return []
        results = self._run_actions(target, Action.TRANSPILE, build_type)
        print(f"[targetwatch] the files for {target.name} have been transpiled ({target.build_root})")
        return results

    def copy_project_files(self) -> List[Tuple[Path, Path]]:
        """Copy the `[copy] items` of the project into the build directory.

        Directories are copied file by file. A missing item raises CopyError.
        """
        copy_cfg = self.config.copy
        if not copy_cfg.enabled or not copy_cfg.items:
            return []

        pairs: List[Tuple[str, str]] = []
        for item in copy_cfg.items:
            if isinstance(item, str):
                pairs.append((item, item))
            else:
                pairs.extend(item.items())

        copied: List[Tuple[Path, Path]] = []
        for src_name, dest_name in pairs:
            source = self.config.root / src_name
            dest = self.config.build_dir / dest_name
            if source.is_dir():
                for path in iter_files(source):
                    out = dest / path.relative_to(source)
                    copy_file(path, out)
                    copied.append((path, out))
            elif source.is_file():
                copy_file(source, dest)
                copied.append((source, dest))
            else:
                raise CopyError(str(source), "no such file or directory")

        print("[targetwatch] the following items have been copied:")
        for source, dest in copied:
            print(f"[targetwatch] {source} -> {dest}")
        return copied

    def clean_target(self, target: Target) -> List[Path]:
        if target.is_bundled:
            items = target_name_variations(target.name)
        else:
            items = []
            if target.source_root.is_dir():
                for child in sorted(target.source_root.iterdir()):
                    items.append(child.name)
                    if child.suffix.lower() in target.extensions:
                        compiled = ensure_extension(Path(child.name), target.output_extension).name
                        items.extend([compiled, f"{compiled}.map"])
        removed = clean(target.build_root, sorted(set(items)))
        print(f"[targetwatch] removed {len(removed)} build files for {target.name} ({target.build_root})")
        return removed

    def clean_all(self) -> List[Path]:
        removed = clean(self.config.build_dir, "**")
        print(f"[targetwatch] the build directory was removed ({self.config.build_dir})")
        return removed

    def get_target_build_command(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT, watch: bool = False
    ) -> str:
        return self.selector.get_engine(target.engine).get_build_command(target, build_type, watch)

    def get_target_configuration(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT
    ) -> Dict[str, Any]:
        engine = self.selector.get_engine(target.engine)
        if not isinstance(engine, BundlerEngine):
            raise TargetwatchError(f"{target.name} doesn't use the bundler engine")
        return engine.get_configuration(target, build_type)

    def run_bundler(self, target: Target, build_type: str = BuildType.DEVELOPMENT, watch: bool = False) -> int:
        engine = self.selector.get_engine(target.engine)
        if not isinstance(engine, BundlerEngine):
            raise TargetwatchError(f"{target.name} doesn't use the bundler engine")
        command = engine.get_build_command(target, build_type, watch)
        print(f"[targetwatch] running {command}")
        try:
            proc = subprocess.run(shlex.split(command), cwd=self.config.root)
        except OSError as exc:
            raise TargetwatchError(f"Could not run the bundler for {target.name}: {exc}") from exc
        return proc.returncode

    def build_target(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT, clean_first: bool = True
    ) -> int:
        print(f"[targetwatch] building {target.name} ({build_type})")
        if clean_first:
            self.clean_target(target)
        if target.is_bundled:
            return self.run_bundler(target, build_type)

        results = self.copy_target(target) + self.transpile_target(target, build_type)
        failed = [r for r in results if not r.succeeded]
        if failed:
            print(f"[targetwatch] {len(failed)} file(s) failed to build for {target.name}")
            return 1
        return 0


def build_project(
    root: Path,
    name: Optional[str] = None,
    build_type: str = BuildType.DEVELOPMENT,
    clean: bool = True,
) -> int:
    cfg = load_project_config(root)
    builder = Builder(cfg)
    return builder.build_target(builder.get_target(name), build_type, clean_first=clean)
