"""
settings snapshots sent to the language server.

all dynamic values are resolved when the snapshot is built, so the mapping
handed to the transport holds plain data only.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from libenvresolver import EnvironmentResolver, EnvKind

from .config import AnalysisConfig, Config

PYTHON_PATH_KEY = "python.pythonPath"
VENV_PATH_KEY = "python.venvPath"

# AnalysisConfig field -> server setting key
SETTING_KEYS: dict[str, str] = {
    "extra_paths": "python.autoComplete.extraPaths",
    "caching_level": "python.analysis.cachingLevel",
    "errors": "python.analysis.errors",
    "warnings": "python.analysis.warnings",
    "information": "python.analysis.information",
    "disabled": "python.analysis.disabled",
    "log_level": "python.analysis.logLevel",
    "auto_search_paths": "python.analysis.autoSearchPaths",
    "keep_library_ast": "python.analysis.memory.keepLibraryAst",
    "symbols_hierarchy_depth_limit": "python.analysis.symbolsHierarchyDepthLimit",
}


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)  # pyright: ignore[reportUnknownArgumentType]
    return value


def static_settings(analysis: AnalysisConfig) -> dict[str, Any]:
    """map the pass-through settings onto their server keys."""
    return {key: _freeze(getattr(analysis, name)) for name, key in SETTING_KEYS.items()}


def build_settings(
    config: Config,
    resolver: EnvironmentResolver,
    current_file: str | Path | None = None,
) -> Mapping[str, Any]:
    """
    build an immutable settings snapshot.

    the interpreter and virtual environment are resolved now; either is an
    empty string when nothing resolves.

    arguments:
        `config: Config`
            serverlink configuration
        `resolver: EnvironmentResolver`
            resolver for the current session
        `current_file: str | Path | None`
            file the user is working on

    returns: `Mapping[str, Any]`
        read-only flat mapping of dotted keys to values
    """
    values = static_settings(config.analysis)
    values[PYTHON_PATH_KEY] = resolver.resolve(EnvKind.PYTHON, current_file) or ""
    values[VENV_PATH_KEY] = resolver.resolve(EnvKind.VENV, current_file) or ""
    return MappingProxyType(values)


def nest_settings(snapshot: Mapping[str, Any]) -> dict[str, Any]:
    """
    expand dotted keys into nested dictionaries for transmission.

    returns: `dict[str, Any]`
        e.g. {"python": {"analysis": {"logLevel": ...}}}
    """
    nested: dict[str, Any] = {}
    for key, value in snapshot.items():
        *parents, leaf = key.split(".")
        node = nested
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = list(value) if isinstance(value, tuple) else value  # pyright: ignore[reportUnknownArgumentType]
    return nested


def lookup_section(nested: Mapping[str, Any], section: str | None) -> Any:
    """
    answer one `workspace/configuration` item.

    arguments:
        `nested: Mapping[str, Any]`
            output of `nest_settings`
        `section: str | None`
            dotted section name; empty or none asks for everything

    returns: `Any`
        the value at `section`, none if it does not exist
    """
    if not section:
        return dict(nested)

    value: Any = nested
    for part in section.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]  # pyright: ignore[reportUnknownVariableType]
    return value
