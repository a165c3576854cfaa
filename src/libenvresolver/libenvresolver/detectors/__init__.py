"""
project detection and per-tool environment queries.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..locator import Which, locate_tool
from ..models import ResolverConfig, ToolType
from .pipenv import query_pipenv
from .poetry import query_poetry

logger = logging.getLogger(__name__)

# Priority order for detection (first match wins)
DETECTION_ORDER = [
    ToolType.PIPENV,
    ToolType.POETRY,
]

# Map tool types to query functions
QUERIES = {
    ToolType.PIPENV: query_pipenv,
    ToolType.POETRY: query_poetry,
}


def is_project_of_kind(
    tool: ToolType,
    project_path: Path,
    config: ResolverConfig,
    which: Which = shutil.which,
) -> str | None:
    """
    check whether a project is managed by `tool`.

    arguments:
        `tool: ToolType`
            tool to check for
        `project_path: Path`
            project root; the marker file must sit directly inside it
        `config: ResolverConfig`
            source of executable overrides
        `which: Which`
            search path lookup

    returns: `str | None`
        the tool's executable if the tool is locatable and its marker file
        exists, none otherwise
    """
    executable = locate_tool(tool, config.executable_override(tool), which)
    if executable is None:
        logger.debug("%s not found on the search path", tool.value)
        return None

    if not project_path.joinpath(tool.marker_file).exists():
        return None

    return executable


def detect_project_tool(
    project_path: Path,
    config: ResolverConfig,
    which: Which = shutil.which,
) -> tuple[ToolType, str] | None:
    """
    find the tool managing a project, checking tools in `DETECTION_ORDER`.

    returns: `tuple[ToolType, str] | None`
        the tool and its executable, or none if no tool matches
    """
    for tool in DETECTION_ORDER:
        executable = is_project_of_kind(tool, project_path, config, which)
        if executable is not None:
            logger.debug("detected %s project at %s", tool.value, project_path)
            return tool, executable
    return None


__all__ = [
    "DETECTION_ORDER",
    "QUERIES",
    "detect_project_tool",
    "is_project_of_kind",
    "query_pipenv",
    "query_poetry",
]
