from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .builder import Builder
from .config import load_project_config
from .errors import TargetwatchError
from .init_project import init_project
from .targets import BuildType
from .watcher import watch_target
from . import tuy_toml


RESOURCE_HANDLERS = {
    "target": tuy_toml,
}


RESOURCE_COMMANDS = {"add", "modify", "remove"}
BUILD_COMMANDS = {"build", "clean", "copy", "transpile", "command"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="targetwatch",
        description="Build and watch the targets of a JavaScript project",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="build",
        choices=[*sorted(BUILD_COMMANDS), "watch", "init", *sorted(RESOURCE_COMMANDS)],
        help="Command to run (default 'build').",
    )
    parser.add_argument(
        "resource",
        nargs="?",
        help="Resource type for 'add', 'modify', or 'remove' ('target').",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=".",
        help="Project root containing targetwatch.toml (default = current directory).",
    )
    parser.add_argument(
        "-t",
        "--target",
        default=None,
        help="Target name (default = the target marked `default = true`).",
    )
    parser.add_argument(
        "--type",
        dest="build_type",
        choices=[t.value for t in BuildType],
        default=BuildType.DEVELOPMENT.value,
        help="Build type (default development).",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="With 'clean', remove the whole build directory.",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="With 'watch', clean the target before the initial build.",
    )
    parser.add_argument(
        "--no-clean",
        action="store_true",
        help="With 'build', keep existing build files.",
    )
    parser.add_argument(
        "--project",
        action="store_true",
        help="With 'copy', copy the [copy] items of the project instead of a target.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="With 'command', print the bundler configuration as JSON.",
    )
    return parser


def _run_build_command(args: argparse.Namespace, root: Path) -> int:
    builder = Builder(load_project_config(root))
    if args.command == "clean" and args.all:
        builder.clean_all()
        return 0
    if args.command == "copy" and args.project:
        builder.copy_project_files()
        return 0

    target = builder.get_target(args.target)
    if args.command == "build":
        return builder.build_target(target, args.build_type, clean_first=not args.no_clean)
    if args.command == "clean":
        builder.clean_target(target)
    elif args.command == "copy":
        results = builder.copy_target(target)
        return 1 if any(not r.succeeded for r in results) else 0
    elif args.command == "transpile":
        results = builder.transpile_target(target, args.build_type)
        return 1 if any(not r.succeeded for r in results) else 0
    elif args.command == "command" and args.json:
        print(json.dumps(builder.get_target_configuration(target, args.build_type), indent=2))
    elif args.command == "command":
        command = builder.get_target_build_command(target, args.build_type)
        if command:
            print(command)
        else:
            print(f"[targetwatch] {target.name} is built file by file, no build command")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    root = Path(args.root).resolve()

    if args.command in RESOURCE_COMMANDS:
        if not args.resource:
            parser.error(f"{args.command} requires a resource type ('target').")
        handler_module = RESOURCE_HANDLERS.get(args.resource)
        if handler_module is None:
            parser.error(f"Unknown resource type '{args.resource}' (choose 'target').")
        handler_module.handle(args.command, root)
        return

    try:
        if args.command == "init":
            init_project(root)
            status = 0
        elif args.command == "watch":
            status = watch_target(root, args.target, args.build_type, clean=args.clean)
        else:
            status = _run_build_command(args, root)
    except (TargetwatchError, FileNotFoundError) as exc:
        print(f"[targetwatch] error: {exc}")
        sys.exit(1)

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
