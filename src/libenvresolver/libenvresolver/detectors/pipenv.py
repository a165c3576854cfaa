"""
pipenv environment query.
"""

from __future__ import annotations

from pathlib import Path

from ..models import ProjectInfo, ToolType
from ..process import CommandRunner


def query_pipenv(executable: str, project_path: Path, runner: CommandRunner) -> ProjectInfo | None:
    """
    ask pipenv for the project's virtual environment and interpreter.

    arguments:
        `executable: str`
            pipenv binary
        `project_path: Path`
            project directory, used as the working directory
        `runner: CommandRunner`
            command runner

    returns: `ProjectInfo | None`
        none if either answer is empty

    raises:
        `ToolQueryFailed`
            if either pipenv call fails
    """
    venv_path = runner(executable, ["--venv"], cwd=project_path)
    python_path = runner(executable, ["--py"], cwd=project_path)
    return ProjectInfo.build(venv_path, python_path, ToolType.PIPENV)
