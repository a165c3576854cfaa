"""
command-line interface for serverlink.

provides commands for inspecting interpreter resolution and the settings
snapshot, and for running the language server against a project.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

from libenvresolver import EnvironmentResolver, EnvKind, ResolutionContext

from .client import ServerLaunchError, ServerSession
from .config import Config
from .host import DocumentWorkspace, LoggingIndicator
from .settings import build_settings, nest_settings

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    create the argument parser for the cli.

    returns: `argparse.ArgumentParser`
        configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="serverlink",
        description="python language server launcher with interpreter detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  serverlink resolve .                       # show interpreter and venv
  serverlink resolve --kind venv --json .    # only the venv, as json
  serverlink settings .                      # settings sent to the server
  serverlink run . --open src/main.py        # run the language server
  serverlink run . --server "pyls --stdio"   # run another server
        """,
    )
    _ = parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="available commands")

    # resolve command
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="resolve the project's python interpreter and virtual environment",
    )
    _ = resolve_parser.add_argument(
        "project_root",
        nargs="?",
        default=".",
        help="project directory (default: current directory)",
    )
    _ = resolve_parser.add_argument(
        "--kind",
        choices=[kind.value for kind in EnvKind],
        help="resolve only this value (default: both)",
    )
    _ = resolve_parser.add_argument(
        "--file",
        help="file being edited; directory search starts next to it",
    )
    _ = resolve_parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="output in json format (default: text)",
    )
    _ = resolve_parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging for troubleshooting",
    )

    # settings command
    settings_parser = subparsers.add_parser(
        "settings",
        help="print the settings snapshot sent to the language server",
    )
    _ = settings_parser.add_argument(
        "project_root",
        nargs="?",
        default=".",
        help="project directory (default: current directory)",
    )
    _ = settings_parser.add_argument(
        "--file",
        help="file being edited; directory search starts next to it",
    )
    _ = settings_parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging for troubleshooting",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="start the language server for a project",
    )
    _ = run_parser.add_argument(
        "project_root",
        nargs="?",
        default=".",
        help="project directory (default: current directory)",
    )
    _ = run_parser.add_argument(
        "--server",
        metavar="COMMAND",
        help="language server command line, split like a shell would (default: from configuration)",
    )
    _ = run_parser.add_argument(
        "--open",
        nargs="*",
        default=[],
        metavar="FILE",
        help="files to open once the server is ready",
    )
    _ = run_parser.add_argument(
        "--no-indicator",
        action="store_true",
        help="do not toggle busy indicators on progress",
    )
    _ = run_parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging for troubleshooting",
    )

    return parser


def _configure_logging(debug: bool, default_level: int, log_file: str | None = None) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else default_level,
        format="[%(name)s] %(message)s",
        filename=log_file,
    )


def handle_resolve(args: argparse.Namespace, config: Config) -> int:
    """
    handle the resolve command.

    returns: `int`
        exit code (0 = everything requested resolved, 1 = something did not)
    """
    kind_raw = getattr(args, "kind", None)
    kinds = [EnvKind(str(kind_raw))] if kind_raw is not None else list(EnvKind)  # pyright: ignore[reportAny]
    current_file_raw = getattr(args, "file", None)
    current_file = str(current_file_raw) if current_file_raw is not None else None  # pyright: ignore[reportAny]
    json_output = bool(getattr(args, "json_output", False))

    resolver = EnvironmentResolver(ResolutionContext(config.project_root), config.resolver_config())
    results = {kind.value: resolver.resolve(kind, current_file) for kind in kinds}

    if json_output:
        print(json.dumps(results, indent=2))
    else:
        for name, value in results.items():
            print(f"{name}: {value or '(not found)'}")

    return 0 if all(results.values()) else 1


def handle_settings(args: argparse.Namespace, config: Config) -> int:
    """
    handle the settings command.

    returns: `int`
        exit code (always 0)
    """
    current_file_raw = getattr(args, "file", None)
    current_file = str(current_file_raw) if current_file_raw is not None else None  # pyright: ignore[reportAny]

    resolver = EnvironmentResolver(ResolutionContext(config.project_root), config.resolver_config())
    snapshot = build_settings(config, resolver, current_file)
    print(json.dumps(nest_settings(snapshot), indent=2, sort_keys=True))
    return 0


async def _run_session(session: ServerSession, command: Sequence[str] | None) -> None:
    try:
        _ = await session.start(command)
        await session.wait()
    finally:
        await session.stop()


def handle_run(args: argparse.Namespace, config: Config) -> int:
    """
    handle the run command.

    returns: `int`
        exit code (0 = server exited, 2 = server could not be started)
    """
    server_raw = getattr(args, "server", None)
    command = shlex.split(str(server_raw)) if server_raw else None  # pyright: ignore[reportAny]
    open_raw = getattr(args, "open", None)
    open_files = [str(path) for path in open_raw] if open_raw else []  # pyright: ignore[reportAny]
    if bool(getattr(args, "no_indicator", False)):
        config.ui.progress_indicator = False

    workspace = DocumentWorkspace(config.project_root)
    for path in open_files:
        _ = workspace.open(path)

    session = ServerSession(config, workspace, LoggingIndicator())

    try:
        asyncio.run(_run_session(session, command))
    except ServerLaunchError as exc:
        print(f"serverlink: error: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.info("interrupted")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """
    main entry point for the cli.

    arguments:
        `argv: Sequence[str] | None`
            command line arguments. if None, uses sys.argv.

    returns: `int`
        exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    command = getattr(args, "command", None)
    if command is None:
        parser.print_help()
        return 0

    project_root = Path(str(getattr(args, "project_root", ".")))
    if not project_root.exists():
        print(f"serverlink: error: path not found: {project_root}", file=sys.stderr)
        return 1

    config = Config.load(project_root)
    debug = bool(getattr(args, "debug", False))

    if command == "resolve":
        _configure_logging(debug, logging.WARNING)
        return handle_resolve(args, config)
    if command == "settings":
        _configure_logging(debug, logging.WARNING)
        return handle_settings(args, config)
    if command == "run":
        _configure_logging(debug, logging.INFO, config.server.log_file)
        return handle_run(args, config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
