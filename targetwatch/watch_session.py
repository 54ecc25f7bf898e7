from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from queue import SimpleQueue
from typing import Any, Callable, List, Optional, Sequence, Tuple
import os
import threading

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .errors import WatchStartError
from .targets import Target


class ChangeKind(StrEnum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class SessionStatus(StrEnum):
    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ChangeEvent:
    path: Path
    kind: ChangeKind
    is_directory: bool = False


ObserverFactory = Callable[[], Any]


def make_observer_factory(poll: bool = False, interval: float = 1.0) -> ObserverFactory:
    """Pick the watchdog observer class for the configured watch mode."""
    if poll:
        return lambda: PollingObserver(timeout=interval)
    return lambda: Observer(timeout=interval)


def _fs_path(raw: str | bytes) -> Path:
    return Path(os.fsdecode(raw))


class _SessionEventHandler(FileSystemEventHandler):
    """Translate watchdog callbacks into ChangeEvents on the session channel."""

    def __init__(self, session: "WatchSession") -> None:
        super().__init__()
        self._session = session

    def _push(self, raw: str | bytes, kind: ChangeKind, is_directory: bool) -> None:
        self._session.push(ChangeEvent(_fs_path(raw), kind, is_directory))

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event.src_path, ChangeKind.CREATED, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event.src_path, ChangeKind.MODIFIED, event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._push(event.src_path, ChangeKind.DELETED, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # A rename is the old path going away and the new one appearing.
        self._push(event.src_path, ChangeKind.DELETED, event.is_directory)
        self._push(event.dest_path, ChangeKind.CREATED, event.is_directory)


class WatchSession:
    """Live subscription to the source roots of one target.

    The session owns its event channel: the watchdog handler pushes
    ChangeEvents into `events` and a single consumer (the rebuild
    coordinator) drains it in delivery order. `None` on the channel means the
    session was stopped.
    """

    def __init__(
        self,
        target: Target,
        included: Sequence[Target] = (),
        observer_factory: Optional[ObserverFactory] = None,
    ) -> None:
        self.target = target
        self.included: Tuple[Target, ...] = tuple(included)
        self.events: SimpleQueue[ChangeEvent | None] = SimpleQueue()
        self.lock = threading.Lock()
        self._status = SessionStatus.IDLE
        self._stop_requested = threading.Event()
        self._watched_paths: List[Path] = [t.source_root for t in self.targets]
        self._observer_factory = observer_factory or Observer
        self._observer: Any = None

    @property
    def targets(self) -> Tuple[Target, ...]:
        return (self.target, *self.included)

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def watching(self) -> bool:
        return self._status is SessionStatus.WATCHING and not self._stop_requested.is_set()

    @property
    def alive(self) -> bool:
        """False once a watching session lost its observer thread or a watched root."""
        observer = self._observer
        if not self.watching or observer is None:
            return False
        return bool(observer.is_alive()) and all(root.is_dir() for root in self._watched_paths)

    def get_watched_paths(self) -> List[Path]:
        return list(self._watched_paths)

    def start(self) -> "WatchSession":
        with self.lock:
            if self._status is not SessionStatus.IDLE:
                raise WatchStartError(
                    f"Watch session for {self.target.name} is {self._status}; create a new one"
                )
            for root in self._watched_paths:
                if not root.is_dir():
                    self._status = SessionStatus.STOPPED
                    raise WatchStartError(f"Can't watch {root}: directory not found")
                if not os.access(root, os.R_OK | os.X_OK):
                    self._status = SessionStatus.STOPPED
                    raise WatchStartError(f"Can't watch {root}: directory not readable")

            handler = _SessionEventHandler(self)
            observer = self._observer_factory()
            try:
                for root in self._watched_paths:
                    observer.schedule(handler, str(root), recursive=True)
                observer.start()
            except OSError as exc:
                self._status = SessionStatus.STOPPED
                raise WatchStartError(f"Can't watch {self.target.name}: {exc}") from exc

            self._observer = observer
            self._status = SessionStatus.WATCHING
        return self

    def stop(self) -> None:
        # Set before waiting on the lock: the in-flight result is discarded.
        self._stop_requested.set()
        with self.lock:
            if self._status is SessionStatus.STOPPED:
                return
            self._status = SessionStatus.STOPPED
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.unschedule_all()
            observer.stop()
            if observer.is_alive() and threading.current_thread() is not observer:
                observer.join()
        self.events.put(None)

    def push(self, event: ChangeEvent) -> bool:
        """Queue an event for the coordinator; dropped once the session stopped."""
        if not self.watching:
            return False
        self.events.put(event)
        return True


def start_session(
    target: Target,
    included: Sequence[Target] = (),
    observer_factory: Optional[ObserverFactory] = None,
) -> WatchSession:
    return WatchSession(target, included, observer_factory).start()


def stop_session(session: WatchSession) -> None:
    session.stop()


def get_watched_paths(session: WatchSession) -> List[Path]:
    return session.get_watched_paths()
