"""
models for libenvresolver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import assert_never, final


class ToolType(Enum):
    """
    enumeration of supported python project management tools.

    the value doubles as the canonical binary name searched for on the path.
    """

    PIPENV = "pipenv"
    POETRY = "poetry"

    @property
    def marker_file(self) -> str:
        """name of the file that marks a project managed by this tool."""
        return _MARKER_FILES[self]


_MARKER_FILES = {
    ToolType.PIPENV: "Pipfile",
    ToolType.POETRY: "pyproject.toml",
}


class EnvKind(Enum):
    """
    what a caller asks the resolver for.
    """

    PYTHON = "python"
    VENV = "venv"


@final
@dataclass(frozen=True)
class ProjectInfo:
    """
    interpreter and virtual environment reported by a project tool.

    attributes:
        `venv_path: str`
            path to the virtual environment directory
        `python_path: str`
            path to the python interpreter inside it
        `tool: ToolType`
            the tool that reported the pair
    """

    venv_path: str
    python_path: str
    tool: ToolType

    @classmethod
    def build(cls, venv_path: str, python_path: str, tool: ToolType) -> ProjectInfo | None:
        """
        build a project info, refusing partial results.

        returns: `ProjectInfo | None`
            none if either path is empty
        """
        if not venv_path or not python_path:
            return None
        return cls(venv_path=venv_path, python_path=python_path, tool=tool)

    def get(self, kind: EnvKind) -> str:
        """return the path matching `kind`."""
        if kind is EnvKind.PYTHON:
            return self.python_path
        if kind is EnvKind.VENV:
            return self.venv_path
        assert_never(kind)


@final
@dataclass(frozen=True)
class ResolverConfig:
    """
    explicit user overrides for environment resolution.

    attributes:
        `venv_path_override: str | None`
            virtual environment to use regardless of detection
        `venv_directory_name: str | None`
            name of a directory holding the venv, searched for upward from
            the current file
        `python_command: str`
            interpreter command resolved against the search path as a last
            resort
        `pipenv_executable: str | None`
            explicit pipenv binary
        `poetry_executable: str | None`
            explicit poetry binary
        `prefer_remote: bool`
            resolve the interpreter on the remote side when the host can
    """

    venv_path_override: str | None = None
    venv_directory_name: str | None = None
    python_command: str = "python"
    pipenv_executable: str | None = None
    poetry_executable: str | None = None
    prefer_remote: bool = False

    def executable_override(self, tool: ToolType) -> str | None:
        """return the configured binary for `tool`, if any."""
        if tool is ToolType.PIPENV:
            return self.pipenv_executable
        return self.poetry_executable
