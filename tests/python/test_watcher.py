from __future__ import annotations

from pathlib import Path

import targetwatch.watcher as watcher
from targetwatch.engines import DirectEngine
from targetwatch.errors import WatchStartError


CONFIG = """
[targets.app]
create_folder = true

[targets.web]
engine = "bundler"
"""


class FakeSession:
    def __init__(self, alive: bool = True) -> None:
        self._alive = alive

    @property
    def watching(self) -> bool:
        return True

    @property
    def alive(self) -> bool:
        return self._alive


class FakeCoordinator:
    def __init__(self) -> None:
        self.detached: list[FakeSession] = []

    def detach(self, session: FakeSession, timeout: float | None = None) -> None:  # noqa: ARG002
        self.detached.append(session)


def _root(tmp_path: Path) -> Path:
    root = tmp_path.resolve()
    (root / "targetwatch.toml").write_text(CONFIG, encoding="utf-8")
    (root / "src" / "app").mkdir(parents=True)
    return root


def test_watch_stops_session_on_ctrl_c(monkeypatch, tmp_path: Path, capsys) -> None:
    root = _root(tmp_path)
    session = FakeSession()
    coordinator = FakeCoordinator()
    built: list[tuple[str, bool]] = []

    def fake_build(self, target, build_type="development", clean_first=True):
        built.append((target.name, clean_first))
        return 0

    def fake_watch(self, target, build_type="development"):  # noqa: ARG001
        return session, coordinator

    def interrupt(_: float) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(watcher.Builder, "build_target", fake_build)
    monkeypatch.setattr(DirectEngine, "watch", fake_watch)
    monkeypatch.setattr(watcher.time, "sleep", interrupt)

    assert watcher.watch_target(root, "app") == 0

    assert built == [("app", False)]
    assert coordinator.detached == [session]
    assert "stopping watch mode" in capsys.readouterr().out


def test_watch_start_failure_ends_the_command(monkeypatch, tmp_path: Path, capsys) -> None:
    root = _root(tmp_path)

    def failing_watch(self, target, build_type="development"):  # noqa: ARG001
        raise WatchStartError(f"Can't watch {target.source_root}: directory not found")

    monkeypatch.setattr(watcher.Builder, "build_target", lambda *a, **k: 0)
    monkeypatch.setattr(DirectEngine, "watch", failing_watch)

    assert watcher.watch_target(root) == 1
    assert "watcher exiting" in capsys.readouterr().out


def test_watch_bundled_target_runs_bundler_in_watch_mode(monkeypatch, tmp_path: Path) -> None:
    root = _root(tmp_path)
    calls: list[tuple[str, str, bool]] = []

    def fake_run_bundler(self, target, build_type="development", watch=False):
        calls.append((target.name, build_type, watch))
        return 0

    monkeypatch.setattr(watcher.Builder, "run_bundler", fake_run_bundler)

    assert watcher.watch_target(root, "web", "production") == 0
    assert calls == [("web", "production", True)]


def test_watch_without_config(tmp_path: Path, capsys) -> None:
    assert watcher.watch_target(tmp_path) == 1
    assert "watcher exiting" in capsys.readouterr().out


def test_watch_ends_when_the_watch_is_lost(monkeypatch, tmp_path: Path, capsys) -> None:
    root = _root(tmp_path)
    session = FakeSession(alive=False)
    coordinator = FakeCoordinator()

    monkeypatch.setattr(watcher.Builder, "build_target", lambda *a, **k: 0)
    monkeypatch.setattr(DirectEngine, "watch", lambda self, target, build_type="development": (session, coordinator))

    assert watcher.watch_target(root, "app") == 1

    assert coordinator.detached == [session]
    assert "watcher exiting: lost the watch on app" in capsys.readouterr().out
