"""
core resolution logic for libenvresolver.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import assert_never

from .detectors import QUERIES, detect_project_tool
from .errors import ToolQueryFailed
from .locator import Which
from .models import EnvKind, ProjectInfo, ResolverConfig
from .process import CommandRunner, run_command

logger = logging.getLogger(__name__)

# Directory names tried, in order, after the configured venv directory
VENV_DIRECTORY_NAMES = [".venv", "venv"]


class ResolutionContext:
    """
    scope of one workspace session, owning its resolution cache.

    the cache slot is empty on construction, filled at most once by the
    first successful tool query and only emptied by `clear()`.

    attributes:
        `workspace_root: Path`
            root of the project being resolved
        `project_info: ProjectInfo | None`
            cached tool answer
    """

    workspace_root: Path
    project_info: ProjectInfo | None

    def __init__(self, workspace_root: str | Path) -> None:
        self.workspace_root = Path(workspace_root)
        self.project_info = None

    def clear(self) -> None:
        """drop the cached answer at session teardown."""
        self.project_info = None


def find_upward(start: Path, name: str) -> Path | None:
    """
    look for a directory called `name` in `start` or any of its ancestors.

    arguments:
        `start: Path`
            directory to start from
        `name: str`
            directory name to look for

    returns: `Path | None`
        `<ancestor>/<name>` for the nearest match, none if there is none
    """
    for directory in (start, *start.parents):
        candidate = directory.joinpath(name)
        if candidate.is_dir():
            return candidate
    return None


class EnvironmentResolver:
    """
    resolves the python interpreter and virtual environment of a project.

    tiers, first answer wins:
    1. explicit venv override (venv only)
    2. pipenv or poetry, queried once per context and cached
    3. upward directory search (venv only)
    4. configured interpreter command on the search path (python only)
    """

    def __init__(
        self,
        context: ResolutionContext,
        config: ResolverConfig | None = None,
        runner: CommandRunner = run_command,
        which: Which = shutil.which,
        remote_which: Which | None = None,
    ) -> None:
        """
        initialise the resolver.

        arguments:
            `context: ResolutionContext`
                session scope holding the cache
            `config: ResolverConfig | None`
                user overrides (default: no overrides)
            `runner: CommandRunner`
                runs tool queries (default: `run_command`)
            `which: Which`
                search path lookup
            `remote_which: Which | None`
                remote-aware lookup supplied by hosts that support it
        """
        self.context = context
        self.config = config or ResolverConfig()
        self._runner = runner
        self._which = which
        self._remote_which = remote_which

    def resolve(self, kind: EnvKind, current_file: str | Path | None = None) -> str | None:
        """
        resolve the interpreter or the virtual environment.

        arguments:
            `kind: EnvKind`
                what to resolve
            `current_file: str | Path | None`
                file the user is working on; the directory search starts
                next to it (default: the workspace root)

        returns: `str | None`
            the resolved path, none if no tier produced one
        """
        if kind is EnvKind.VENV and self.config.venv_path_override:
            logger.debug("using venv override %s", self.config.venv_path_override)
            return self.config.venv_path_override

        if (info := self.resolve_via_tool()) is not None:
            return info.get(kind)

        if kind is EnvKind.VENV:
            return self._search_venv(current_file)
        if kind is EnvKind.PYTHON:
            return self._search_python()
        assert_never(kind)

    def resolve_via_tool(self) -> ProjectInfo | None:
        """
        ask the project's management tool for its environment.

        a complete answer is cached on the context. failures are not cached,
        so the next call queries the tool again.

        returns: `ProjectInfo | None`
            the cached or freshly queried pair, none if no tool resolved it
        """
        if self.context.project_info is not None:
            return self.context.project_info

        root = self.context.workspace_root
        detected = detect_project_tool(root, self.config, self._which)
        if detected is None:
            return None

        tool, executable = detected
        try:
            info = QUERIES[tool](executable, root, self._runner)
        except ToolQueryFailed as exc:
            logger.debug("%s query failed: %s", tool.value, exc)
            return None

        if info is None:
            logger.debug("%s reported no environment for %s", tool.value, root)
            return None

        logger.debug("%s resolved venv=%s python=%s", tool.value, info.venv_path, info.python_path)
        self.context.project_info = info
        return info

    def _search_venv(self, current_file: str | Path | None) -> str | None:
        """search upward for a virtual environment directory."""
        start = self._search_start(current_file)

        names = list(VENV_DIRECTORY_NAMES)
        if self.config.venv_directory_name:
            names.insert(0, self.config.venv_directory_name)

        for name in names:
            found = find_upward(start, name)
            if found is not None:
                logger.debug("found %s directory at %s", name, found)
                return str(found)
        return None

    def _search_start(self, current_file: str | Path | None) -> Path:
        if current_file is None:
            return self.context.workspace_root
        path = self.context.workspace_root.joinpath(current_file)
        return path if path.is_dir() else path.parent

    def _search_python(self) -> str | None:
        """resolve the configured interpreter command."""
        command = self.config.python_command or "python"
        if self.config.prefer_remote and self._remote_which is not None:
            return self._remote_which(command)
        return self._which(command)
