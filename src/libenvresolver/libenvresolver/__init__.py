"""
python interpreter and virtual environment resolver.

libenvresolver works out which interpreter and virtual environment apply to
a project, asking pipenv or poetry first and falling back to directory
search and the search path.
"""

from __future__ import annotations

from .core import EnvironmentResolver, ResolutionContext, find_upward
from .errors import EnvResolverError, ToolQueryFailed
from .locator import locate_tool
from .models import EnvKind, ProjectInfo, ResolverConfig, ToolType
from .process import run_command

__version__ = "0.1.0"
__all__ = [
    "EnvKind",
    "EnvResolverError",
    "EnvironmentResolver",
    "ProjectInfo",
    "ResolutionContext",
    "ResolverConfig",
    "ToolQueryFailed",
    "ToolType",
    "find_upward",
    "locate_tool",
    "run_command",
]
