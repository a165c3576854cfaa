"""
executable lookup for project management tools.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable

from .models import ToolType

Which = Callable[[str], "str | None"]


def locate_tool(tool: ToolType, override: str | None = None, which: Which = shutil.which) -> str | None:
    """
    find the executable for a project management tool.

    a non-empty override is returned as-is without checking that it exists;
    a wrong override shows up later as a failed query.

    arguments:
        `tool: ToolType`
            tool to look for
        `override: str | None`
            user-configured executable path
        `which: Which`
            search path lookup (default: `shutil.which`)

    returns: `str | None`
        executable path, or none if the tool is not installed
    """
    if override:
        return override
    return which(tool.value)
