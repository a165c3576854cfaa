"""
conftest for libenvresolver tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from libenvresolver.errors import ToolQueryFailed


class FakeRunner:
    """command runner double answering from a table keyed by argv.

    arguments:
        `responses: dict[tuple[str, ...], str | Exception]`
            argv -> stdout, or an exception to raise
    """

    def __init__(self, responses: dict[tuple[str, ...], str | Exception] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, command: str, args: Sequence[str], cwd: str | Path | None = None) -> str:
        argv = (command, *args)
        self.calls.append(argv)
        response = self.responses.get(argv)
        if response is None:
            raise ToolQueryFailed(list(argv))
        if isinstance(response, Exception):
            raise response
        return response


def make_which(available: dict[str, str]):
    """build a `which` replacement that only knows `available`."""

    def which(name: str) -> str | None:
        return available.get(name)

    return which


@pytest.fixture
def runner_factory() -> type[FakeRunner]:
    """the fake runner class, for tests that need canned responses."""
    return FakeRunner


@pytest.fixture
def which_factory():
    """builder for search path lookups that only know the given tools."""
    return make_which


@pytest.fixture
def empty_project(tmp_path: Path) -> Path:
    """create an empty project directory."""
    return tmp_path


@pytest.fixture
def pipenv_project(tmp_path: Path) -> Path:
    """create a mock pipenv project."""
    (tmp_path / "Pipfile").write_text("")
    return tmp_path


@pytest.fixture
def poetry_project(tmp_path: Path) -> Path:
    """create a mock poetry project."""
    (tmp_path / "pyproject.toml").write_text("[tool.poetry]\nname = 'proj'\n")
    return tmp_path


@pytest.fixture
def mixed_project(tmp_path: Path) -> Path:
    """create a project carrying both pipenv and poetry marker files."""
    (tmp_path / "Pipfile").write_text("")
    (tmp_path / "pyproject.toml").write_text("")
    return tmp_path
