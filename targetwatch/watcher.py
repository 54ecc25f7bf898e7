from __future__ import annotations

from pathlib import Path
from typing import Optional
import time

from .builder import Builder
from .config import load_project_config
from .errors import TargetwatchError
from .targets import BuildType


def watch_target(
    root: Path,
    name: Optional[str] = None,
    build_type: str = BuildType.DEVELOPMENT,
    clean: bool = False,
    interval: float = 1.0,
) -> int:
    try:
        cfg = load_project_config(root)
        builder = Builder(cfg)
        target = builder.get_target(name)
    except FileNotFoundError as exc:
        print(f"[targetwatch] watcher exiting: {exc}")
        return 1

    if target.is_bundled:
        return builder.run_bundler(target, build_type, watch=True)

    print(f"[targetwatch] initial build of {target.name}")
    builder.build_target(target, build_type, clean_first=clean)

    try:
        session, coordinator = builder.direct_engine.watch(target, build_type)
    except TargetwatchError as exc:
        print(f"[targetwatch] watcher exiting: {exc}")
        return 1

    print("[targetwatch] watching for changes... (Ctrl+C to stop)")
    status = 0
    try:
        while session.watching:
            if not session.alive:
                print(f"[targetwatch] watcher exiting: lost the watch on {target.name}")
                status = 1
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        print("[targetwatch] stopping watch mode")
    finally:
        coordinator.detach(session)
    return status
