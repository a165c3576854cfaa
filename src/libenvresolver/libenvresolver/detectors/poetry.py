"""
poetry environment query.
"""

from __future__ import annotations

from pathlib import Path

from ..models import ProjectInfo, ToolType
from ..process import CommandRunner
from .utils import venv_python


def query_poetry(executable: str, project_path: Path, runner: CommandRunner) -> ProjectInfo | None:
    """
    ask poetry for the project's virtual environment.

    poetry only reports the environment directory, so the interpreter path
    is derived from it.

    arguments:
        `executable: str`
            poetry binary
        `project_path: Path`
            project directory, used as the working directory
        `runner: CommandRunner`
            command runner

    returns: `ProjectInfo | None`
        none if poetry reports no environment

    raises:
        `ToolQueryFailed`
            if the poetry call fails
    """
    venv_path = runner(executable, ["env", "info", "-p"], cwd=project_path)
    if not venv_path:
        return None
    return ProjectInfo.build(venv_path, venv_python(venv_path), ToolType.POETRY)
