from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, Tuple
import shlex

from .actions import CommandTranspiler, Transpiler
from .config import BundlerConfig, ProjectConfig
from .coordinator import RebuildCoordinator, Reporter, print_result
from .errors import TargetwatchError, UnknownEngineError
from .targets import BuildType, EngineType, Target, Targets
from .watch_session import ObserverFactory, WatchSession, make_observer_factory


class Engine(Protocol):
    def get_build_command(self, target: Target, build_type: str = ..., watch: bool = ...) -> str: ...


class BundlerEngine:
    """Delegate the whole target to an external bundler process."""

    def __init__(self, config: BundlerConfig) -> None:
        self.config = config

    def get_build_command(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT, watch: bool = False
    ) -> str:
        command = self.config.command.format(
            target=shlex.quote(target.name),
            build_type=shlex.quote(str(build_type)),
            source=shlex.quote(str(target.source_root)),
            build=shlex.quote(str(target.build_root)),
        )
        if watch and self.config.watch_flag:
            command = f"{command} {self.config.watch_flag}"
        return command

    def get_configuration(self, target: Target, build_type: str = BuildType.DEVELOPMENT) -> Dict[str, Any]:
        return {
            "target": target.name,
            "mode": str(build_type),
            "entry": str(target.source_root),
            "output": str(target.build_root),
            "source_map": target.wants_source_map(build_type),
        }


class DirectEngine:
    """Transpile and copy files one by one; watch mode runs a WatchSession."""

    def __init__(
        self,
        targets: Targets,
        transpiler: Transpiler,
        observer_factory: Optional[ObserverFactory] = None,
        report: Optional[Reporter] = print_result,
    ) -> None:
        self.targets = targets
        self.transpiler = transpiler
        self.observer_factory = observer_factory
        self.report = report

    def get_build_command(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT, watch: bool = False
    ) -> str:
        return ""

    def coordinator(self, build_type: str = BuildType.DEVELOPMENT) -> RebuildCoordinator:
        return RebuildCoordinator(self.transpiler, report=self.report, build_type=build_type)

    def watch(
        self, target: Target, build_type: str = BuildType.DEVELOPMENT
    ) -> Tuple[WatchSession, RebuildCoordinator]:
        if target.is_bundled:
            raise TargetwatchError(f"{target.name} needs to be bundled")
        included = self.targets.resolve_includes(target)

        session = WatchSession(target, included, self.observer_factory)
        coordinator = self.coordinator(build_type)
        session.start()
        coordinator.attach(session)

        print("[targetwatch] starting watch mode")
        for path in session.get_watched_paths():
            print(f"[targetwatch] watching: {path}")
        return session, coordinator


class EngineSelector:
    def __init__(self, engines: Mapping[EngineType, Engine]) -> None:
        self._engines: Dict[EngineType, Engine] = dict(engines)

    def get_engine(self, engine_type: EngineType | str) -> Engine:
        try:
            key = EngineType(engine_type)
        except ValueError:
            raise UnknownEngineError(f"Unknown build engine: {engine_type}") from None
        engine = self._engines.get(key)
        if engine is None:
            raise UnknownEngineError(f"No build engine registered for {key}")
        return engine


def build_engine_selector(
    config: ProjectConfig,
    targets: Targets,
    transpiler: Optional[Transpiler] = None,
    observer_factory: Optional[ObserverFactory] = None,
    report: Optional[Reporter] = print_result,
) -> EngineSelector:
    if transpiler is None:
        transpiler = CommandTranspiler(
            config.transpile.command, config.transpile.source_map_flag, cwd=config.root
        )
    if observer_factory is None:
        observer_factory = make_observer_factory(config.watch.poll, config.watch.interval)
    return EngineSelector(
        {
            EngineType.BUNDLER: BundlerEngine(config.bundler),
            EngineType.DIRECT: DirectEngine(targets, transpiler, observer_factory, report),
        }
    )
