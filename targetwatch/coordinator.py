from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional
import threading

from .actions import Copier, Transpiler, copy_file, remove_artifact
from .classifier import Action, classify_for
from .errors import CopyError, TranspileError
from .targets import BuildType, Target
from .watch_session import ChangeEvent, ChangeKind, WatchSession


class ErrorKind(StrEnum):
    TRANSPILE = "transpile_error"
    COPY = "copy_error"


@dataclass(frozen=True)
class RebuildResult:
    source_path: Path
    succeeded: bool
    error_kind: Optional[ErrorKind] = None
    action: Action = Action.COPY
    kind: ChangeKind = ChangeKind.MODIFIED
    target_path: Optional[Path] = None
    message: str = ""


Reporter = Callable[[RebuildResult], None]
Remover = Callable[..., List[Path]]

NOTHING_TO_REMOVE = "nothing to remove"


def print_result(result: RebuildResult) -> None:
    if not result.succeeded:
        print(f"[targetwatch] error: {result.source_path} couldn't be updated ({result.error_kind})")
        if result.message:
            print(f"[targetwatch] {result.message}")
        return
    if result.kind is ChangeKind.DELETED:
        if result.message == NOTHING_TO_REMOVE:
            print(f"[targetwatch] {result.source_path} was deleted, nothing to remove")
        else:
            print(f"[targetwatch] removed {result.target_path}")
    elif result.action is Action.TRANSPILE:
        print(f"[targetwatch] transpiled {result.source_path} -> {result.target_path}")
    else:
        print(f"[targetwatch] copied {result.source_path} -> {result.target_path}")


class RebuildCoordinator:
    """Turn change events into transpile, copy or remove actions.

    One worker thread per attached session drains the session channel and
    handles events one at a time, so a delete can never overtake an earlier
    modify of the same file. Every per-event failure becomes a RebuildResult;
    nothing raised by an action unwinds the worker.
    """

    def __init__(
        self,
        transpiler: Transpiler,
        copier: Copier = copy_file,
        remover: Remover = remove_artifact,
        report: Optional[Reporter] = print_result,
        build_type: str = BuildType.DEVELOPMENT,
    ) -> None:
        self.transpiler = transpiler
        self.copier = copier
        self.remover = remover
        self.report = report
        self.build_type = build_type
        self._workers: Dict[int, threading.Thread] = {}

    def on_change(self, session: WatchSession, event: ChangeEvent) -> Optional[RebuildResult]:
        """Handle one event of a live session; a stopped session drops it.

        Calls for the same session run one at a time under `session.lock`,
        the lock `stop()` waits on, so no action starts once `stop()` returned.
        """
        with session.lock:
            if not session.watching:
                return None
            return self.dispatch(event, session.targets, announce=True)

    def dispatch(
        self, event: ChangeEvent, targets: Iterable[Target], announce: bool = False
    ) -> Optional[RebuildResult]:
        """Classify and run one event against `targets` without a live session."""
        targets = tuple(targets)
        if event.is_directory:
            return None

        owner, classified = classify_for(event.path, targets)
        if owner is None or classified.target_path is None:
            if not any(event.path.is_relative_to(t.source_root) for t in targets):
                print(f"[targetwatch] ignoring {event.path}: not on the list of allowed paths")
            return None

        source = classified.source_path
        output = classified.target_path

        if event.kind is ChangeKind.DELETED:
            try:
                removed = self.remover(output, with_source_map=classified.action is Action.TRANSPILE)
            except OSError as exc:
                return RebuildResult(
                    source, False, ErrorKind.COPY, classified.action, event.kind, output, str(exc)
                )
            message = "" if removed else NOTHING_TO_REMOVE
            return RebuildResult(source, True, None, classified.action, event.kind, output, message)

        if not source.is_file():
            # Deleted (or replaced by a directory) before we got to it.
            return None

        if announce:
            print(f"[targetwatch] change detected on {source}")
        if classified.action is Action.TRANSPILE:
            try:
                self.transpiler(source, output, source_map=owner.wants_source_map(self.build_type))
            except TranspileError as exc:
                if not source.exists():
                    return None
                return RebuildResult(
                    source, False, ErrorKind.TRANSPILE, classified.action, event.kind, output, exc.message
                )
        else:
            try:
                self.copier(source, output)
            except CopyError as exc:
                if not source.exists():
                    return None
                return RebuildResult(
                    source, False, ErrorKind.COPY, classified.action, event.kind, output, exc.message
                )

        return RebuildResult(source, True, None, classified.action, event.kind, output)

    def attach(self, session: WatchSession) -> threading.Thread:
        worker = threading.Thread(
            target=self._drain,
            args=(session,),
            name=f"targetwatch-{session.target.name}",
            daemon=True,
        )
        self._workers[id(session)] = worker
        worker.start()
        return worker

    def detach(self, session: WatchSession, timeout: Optional[float] = None) -> None:
        session.stop()
        worker = self._workers.pop(id(session), None)
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def _drain(self, session: WatchSession) -> None:
        while True:
            event = session.events.get()
            if event is None:
                return
            result = self.on_change(session, event)
            if result is not None and session.watching and self.report is not None:
                self.report(result)
