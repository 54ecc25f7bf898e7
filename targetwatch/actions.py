from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol
import shlex
import shutil
import subprocess

from .errors import CopyError, TranspileError
from .utils import ensure_dir

DEFAULT_TRANSPILE_COMMAND = "npx babel {source} --out-file {output}"
DEFAULT_SOURCE_MAP_FLAG = "--source-maps"


class Transpiler(Protocol):
    def __call__(self, source: Path, output: Path, *, source_map: bool = False) -> None: ...


class Copier(Protocol):
    def __call__(self, source: Path, target: Path) -> None: ...


class CommandTranspiler:
    """Run an external compiler once per file.

    `command` is split like a shell would split it and every token has its
    `{source}` and `{output}` placeholders filled in, so paths with spaces stay
    a single argument. No shell is involved.
    """

    def __init__(
        self,
        command: str = DEFAULT_TRANSPILE_COMMAND,
        source_map_flag: Optional[str] = DEFAULT_SOURCE_MAP_FLAG,
        cwd: Optional[Path] = None,
    ) -> None:
        self.command = command
        self.source_map_flag = source_map_flag
        self.cwd = cwd

    def build_args(self, source: Path, output: Path, source_map: bool = False) -> List[str]:
        args = [token.format(source=source, output=output) for token in shlex.split(self.command)]
        if source_map and self.source_map_flag:
            args.extend(shlex.split(self.source_map_flag))
        return args

    def __call__(self, source: Path, output: Path, *, source_map: bool = False) -> None:
        ensure_dir(output.parent)
        args = self.build_args(source, output, source_map)
        try:
            proc = subprocess.run(
                args,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as exc:
            raise TranspileError(str(source), f"could not run {args[0]!r}: {exc}") from exc
        if proc.returncode != 0:
            message = (proc.stderr or proc.stdout or "").strip() or f"exit status {proc.returncode}"
            raise TranspileError(str(source), message)


def copy_file(source: Path, target: Path) -> None:
    try:
        ensure_dir(target.parent)
        shutil.copy2(source, target)
    except OSError as exc:
        raise CopyError(str(source), exc.strerror or str(exc)) from exc


def remove_artifact(path: Path, with_source_map: bool = False) -> List[Path]:
    """Delete a build artifact (and its `.map` when asked); missing files are fine."""
    removed: List[Path] = []
    candidates = [path]
    if with_source_map:
        candidates.append(path.with_name(path.name + ".map"))
    for candidate in candidates:
        try:
            candidate.unlink()
        except FileNotFoundError:
            continue
        except IsADirectoryError:
            continue
        removed.append(candidate)
    return removed
