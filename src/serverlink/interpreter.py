"""
interpreter inspection and server initialisation options.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from libenvresolver import ToolQueryFailed, run_command
from libenvresolver.process import CommandRunner

from .config import Config

logger = logging.getLogger(__name__)

# printed by the target interpreter; sys.path[0] is "" under -c
INTERPRETER_INFO_SCRIPT = (
    "import json, sys; "
    "print(json.dumps({'version': '%d.%d.%d' % sys.version_info[:3], "
    "'paths': [p for p in sys.path if p]}))"
)


@dataclass(frozen=True)
class InterpreterInfo:
    """
    what the resolved interpreter reports about itself.

    attributes:
        `version: str`
            "major.minor.micro", empty if unknown
        `search_paths: list[str]`
            the interpreter's sys.path
    """

    version: str = ""
    search_paths: list[str] = field(default_factory=list)


def query_interpreter(
    python_path: str,
    cwd: str | Path | None = None,
    runner: CommandRunner = run_command,
) -> InterpreterInfo:
    """
    run the interpreter once to read its version and search paths.

    arguments:
        `python_path: str`
            interpreter to inspect
        `cwd: str | Path | None`
            working directory for the interpreter
        `runner: CommandRunner`
            command runner

    returns: `InterpreterInfo`
        an empty info if the interpreter cannot be run or answers garbage
    """
    if not python_path:
        return InterpreterInfo()

    try:
        output = runner(python_path, ["-c", INTERPRETER_INFO_SCRIPT], cwd=cwd)
    except ToolQueryFailed as exc:
        logger.debug("could not inspect %s: %s", python_path, exc)
        return InterpreterInfo()

    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        logger.debug("unexpected interpreter output from %s: %r", python_path, output)
        return InterpreterInfo()

    if not isinstance(data, dict):
        return InterpreterInfo()

    version = data.get("version")  # pyright: ignore[reportUnknownMemberType]
    paths = data.get("paths")  # pyright: ignore[reportUnknownMemberType]
    return InterpreterInfo(
        version=version if isinstance(version, str) else "",
        search_paths=[str(p) for p in paths] if isinstance(paths, list) else [],  # pyright: ignore[reportUnknownVariableType]
    )


def initialization_options(config: Config, python_path: str, info: InterpreterInfo) -> dict[str, Any]:
    """
    build the `initializationOptions` sent with `initialize`.

    arguments:
        `config: Config`
            serverlink configuration
        `python_path: str`
            resolved interpreter, empty if none
        `info: InterpreterInfo`
            what the interpreter reported

    returns: `dict[str, Any]`
        options in the shape the server expects
    """
    search_paths = [*info.search_paths, *config.analysis.extra_paths]
    return {
        "interpreter": {
            "properties": {
                "InterpreterPath": python_path,
                "UseDefaultDatabase": True,
                "Version": info.version,
            },
        },
        "searchPaths": search_paths,
        "typeStubSearchPaths": list(config.analysis.type_stub_paths),
        "excludeFiles": list(config.analysis.exclude_files),
        "analysisUpdates": True,
        "asyncStartup": True,
    }
