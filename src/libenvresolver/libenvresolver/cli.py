"""
cli for libenvresolver.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from .core import EnvironmentResolver, ResolutionContext
from .models import EnvKind, ResolverConfig


def create_parser() -> argparse.ArgumentParser:
    """
    create the argument parser for envresolver.

    returns: `argparse.ArgumentParser`
        configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="envresolver",
        description="python interpreter and virtual environment resolver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  envresolver /path/to/project               # resolve interpreter and venv
  envresolver /path/to/project --json        # output as json
  envresolver . --venv-override /opt/envs/x  # force a venv
        """,
    )

    _ = parser.add_argument(
        "project_root",
        nargs="?",
        default=".",
        help="project directory to resolve (default: current directory)",
    )

    _ = parser.add_argument(
        "--file",
        help="file being edited; directory search starts next to it",
    )

    _ = parser.add_argument(
        "--venv-override",
        help="use this virtual environment regardless of detection",
    )

    _ = parser.add_argument(
        "--python-command",
        default="python",
        help="interpreter command used as a last resort (default: python)",
    )

    _ = parser.add_argument(
        "--json",
        action="store_true",
        help="output as json",
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser


def format_output(python_path: str | None, venv_path: str | None, json_output: bool = False) -> str:
    """
    format a resolution result for output.

    returns: `str`
        formatted output string
    """
    if json_output:
        return json.dumps({"python": python_path, "venv": venv_path}, indent=2)

    return "\n".join(
        [
            f"python: {python_path or '(not found)'}",
            f"venv: {venv_path or '(not found)'}",
        ]
    )


def main(argv: Sequence[str] | None = None) -> int:
    """
    main entry point for envresolver cli.

    arguments:
        `argv: Sequence[str] | None`
            command line arguments. if None, uses sys.argv.

    returns: `int`
        exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    project_root = str(getattr(args, "project_root", "."))
    current_file_raw = getattr(args, "file", None)
    current_file = str(current_file_raw) if current_file_raw is not None else None  # pyright: ignore[reportAny]
    venv_override_raw = getattr(args, "venv_override", None)
    venv_override = str(venv_override_raw) if venv_override_raw is not None else None  # pyright: ignore[reportAny]
    python_command = str(getattr(args, "python_command", "python"))
    json_output = bool(getattr(args, "json", False))

    project_path = Path(project_root)

    if not project_path.exists():
        print(f"error: path not found: {project_path}", file=sys.stderr)
        return 1

    resolver = EnvironmentResolver(
        ResolutionContext(project_path.resolve()),
        ResolverConfig(venv_path_override=venv_override, python_command=python_command),
    )
    python_path = resolver.resolve(EnvKind.PYTHON, current_file)
    venv_path = resolver.resolve(EnvKind.VENV, current_file)

    print(format_output(python_path, venv_path, json_output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
