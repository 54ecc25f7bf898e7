from __future__ import annotations
from pathlib import Path

from .builder import Builder, build_project
from .classifier import Action, ClassifiedAction, classify
from .cleaner import clean
from .coordinator import RebuildCoordinator, RebuildResult
from .engines import EngineSelector
from .targets import Target, Targets
from .watch_session import ChangeEvent, ChangeKind, WatchSession, get_watched_paths, start_session, stop_session
from .watcher import watch_target

__all__ = [
    "Action",
    "Builder",
    "ChangeEvent",
    "ChangeKind",
    "ClassifiedAction",
    "EngineSelector",
    "RebuildCoordinator",
    "RebuildResult",
    "Target",
    "Targets",
    "WatchSession",
    "build_project",
    "classify",
    "clean",
    "get_watched_paths",
    "start_session",
    "stop_session",
    "watch_target",
]


if __name__ == "__main__":
    build_project(Path(".").resolve())
