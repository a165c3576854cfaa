"""
configuration loading for serverlink.

this module handles loading and validation of configuration from
pyproject.toml, .serverlink.toml, and environment variables.
"""

from __future__ import annotations

import logging
import os
import shlex
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, TypeVar

from libenvresolver import ResolverConfig

logger = logging.getLogger(__name__)

DEFAULT_SERVER_COMMAND = ["Microsoft.Python.LanguageServer"]

_Section = TypeVar("_Section")


@dataclass
class PythonConfig:
    """
    interpreter and virtual environment overrides.

    attributes:
        `venv_path: str | None`
            virtual environment to use regardless of detection
        `venv_directory: str | None`
            name of a directory holding the venv, searched for upward
        `python_command: str`
            interpreter command used when nothing else resolves
        `pipenv_executable: str | None`
            explicit pipenv binary
        `poetry_executable: str | None`
            explicit poetry binary
        `prefer_remote: bool`
            resolve the interpreter on the remote side when the host can
    """

    venv_path: str | None = None
    venv_directory: str | None = None
    python_command: str = "python"
    pipenv_executable: str | None = None
    poetry_executable: str | None = None
    prefer_remote: bool = False


@dataclass
class ServerConfig:
    """
    external language server launch settings.

    attributes:
        `command: list[str]`
            argv used to spawn the server over stdio
        `log_file: str | None`
            file that receives serverlink's own log output
    """

    command: list[str] = field(default_factory=lambda: list(DEFAULT_SERVER_COMMAND))
    log_file: str | None = None


@dataclass
class AnalysisConfig:
    """
    settings passed through to the language server.

    attributes:
        `extra_paths: list[str]`
            additional import search paths
        `caching_level: str`
            "Default", "None" or "System"
        `errors: list[str]`
            diagnostic codes reported as errors
        `warnings: list[str]`
            diagnostic codes reported as warnings
        `information: list[str]`
            diagnostic codes reported as information
        `disabled: list[str]`
            diagnostic codes that are not reported
        `log_level: str`
            server log level
        `auto_search_paths: bool`
            let the server add src-like directories to the search paths
        `keep_library_ast: bool`
            keep library syntax trees in memory
        `symbols_hierarchy_depth_limit: int`
            depth of the document symbol tree
        `exclude_files: list[str]`
            glob patterns the server does not analyse
        `type_stub_paths: list[str]`
            additional stub directories
    """

    extra_paths: list[str] = field(default_factory=list)
    caching_level: str = "Default"
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    information: list[str] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    log_level: str = "Warning"
    auto_search_paths: bool = True
    keep_library_ast: bool = False
    symbols_hierarchy_depth_limit: int = 10
    exclude_files: list[str] = field(default_factory=list)
    type_stub_paths: list[str] = field(default_factory=list)


@dataclass
class UiConfig:
    """
    host feedback settings.

    attributes:
        `progress_indicator: bool`
            show a busy indicator on workspace buffers while the server
            reports progress
    """

    progress_indicator: bool = True


@dataclass
class Config:
    """
    main configuration class for serverlink.

    attributes:
        `project_root: Path`
            root directory of the project
        `python: PythonConfig`
            interpreter resolution overrides
        `server: ServerConfig`
            language server launch settings
        `analysis: AnalysisConfig`
            pass-through server settings
        `ui: UiConfig`
            host feedback settings
        `explicit: dict[str, set[str]]`
            section name to the fields a config source set explicitly
    """

    project_root: Path = field(default_factory=lambda: Path(".").resolve())
    python: PythonConfig = field(default_factory=PythonConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    explicit: dict[str, set[str]] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Ensure project_root is a path object."""
        if isinstance(self.project_root, str):
            self.project_root = Path(self.project_root)

    def resolver_config(self) -> ResolverConfig:
        """
        freeze the interpreter overrides for the resolver.

        returns: `ResolverConfig`
            immutable resolver settings
        """
        return ResolverConfig(
            venv_path_override=self.python.venv_path or None,
            venv_directory_name=self.python.venv_directory or None,
            python_command=self.python.python_command or "python",
            pipenv_executable=self.python.pipenv_executable or None,
            poetry_executable=self.python.poetry_executable or None,
            prefer_remote=self.python.prefer_remote,
        )

    @classmethod
    def from_pyproject_toml(cls, project_root: str | Path) -> Config | None:
        """
        Load configuration from the [tool.serverlink] table of pyproject.toml.

        arguments:
            `project_root: str | Path`
                project root directory containing pyproject.toml

        returns: `Config | None`
            configuration object if found, none otherwise
        """
        project_path = Path(project_root)
        data = _read_toml(project_path.joinpath("pyproject.toml"))
        if data is None:
            return None

        tool_config = data.get("tool", {}).get("serverlink")  # pyright: ignore[reportAny]
        if not isinstance(tool_config, dict):
            return None
        return cls._from_dict(tool_config, project_path)  # pyright: ignore[reportUnknownArgumentType]

    @classmethod
    def from_serverlink_toml(cls, project_root: str | Path) -> Config | None:
        """
        Load configuration from .serverlink.toml.

        arguments:
            `project_root: str | Path`
                project root directory containing .serverlink.toml

        returns: `Config | None`
            configuration object if found, none otherwise
        """
        project_path = Path(project_root)
        data = _read_toml(project_path.joinpath(".serverlink.toml"))
        if data is None:
            return None
        return cls._from_dict(data, project_path)

    @classmethod
    def from_environment(cls) -> Config:
        """
        Load configuration from environment variables.

        returns: `Config`
            configuration with values from environment
        """
        config = cls()

        if python_command := os.environ.get("SERVERLINK_PYTHON_COMMAND"):
            config.python.python_command = python_command
            config.mark("python", "python_command")

        if venv_path := os.environ.get("SERVERLINK_VENV_PATH"):
            config.python.venv_path = venv_path
            config.mark("python", "venv_path")

        if server_command := os.environ.get("SERVERLINK_SERVER_COMMAND"):
            config.server.command = shlex.split(server_command)
            config.mark("server", "command")

        if indicator := os.environ.get("SERVERLINK_PROGRESS_INDICATOR"):
            config.ui.progress_indicator = indicator.lower() in ("true", "1", "yes")
            config.mark("ui", "progress_indicator")

        return config

    @classmethod
    def load(cls, project_root: str | Path = ".") -> Config:
        """
        Load configuration from all available sources.

        sources are loaded in order of priority (later overrides earlier):
        1. default values
        2. pyproject.toml
        3. .serverlink.toml
        4. environment variables

        arguments:
            `project_root: str | Path`
                project root directory

        returns: `Config`
            merged configuration from all sources
        """
        project_path = Path(project_root).resolve()

        config = cls(project_root=project_path)

        if pyproject_config := cls.from_pyproject_toml(project_path):
            config = config.merge(pyproject_config)

        if serverlink_config := cls.from_serverlink_toml(project_path):
            config = config.merge(serverlink_config)

        config = config.merge(cls.from_environment())

        return config

    def merge(self, other: Config) -> Config:
        """
        merge another configuration into this one.

        fields that 'other' set explicitly take precedence, even when set
        back to their default; otherwise fields of 'other' that differ from
        their defaults do.

        arguments:
            `other: Config`
                configuration to merge

        returns: `Config`
            new merged configuration
        """
        merged = Config(
            project_root=other.project_root
            if other.project_root != Path(".").resolve()
            else self.project_root,
            python=_merge_section(self.python, other.python, other.explicit.get("python", set())),
            server=_merge_section(self.server, other.server, other.explicit.get("server", set())),
            analysis=_merge_section(self.analysis, other.analysis, other.explicit.get("analysis", set())),
            ui=_merge_section(self.ui, other.ui, other.explicit.get("ui", set())),
        )
        for source in (self, other):
            for section, names in source.explicit.items():
                merged.explicit.setdefault(section, set()).update(names)
        return merged

    def mark(self, section: str, *names: str) -> None:
        """record fields of a section as explicitly set by a config source."""
        self.explicit.setdefault(section, set()).update(names)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_root: Path) -> Config:
        """
        Create configuration from a dictionary.

        unknown keys are ignored.

        arguments:
            `data: dict[str, Any]`
                configuration dictionary
            `project_root: Path`
                project root path

        returns: `Config`
            configuration object
        """
        config = cls(project_root=project_root)

        if python_data := data.get("python", {}):  # pyright: ignore[reportAny]
            config.python = _section_from_dict(PythonConfig, python_data)  # pyright: ignore[reportAny]
            config.mark("python", *_known_keys(PythonConfig, python_data))  # pyright: ignore[reportAny]

        if server_data := data.get("server", {}):  # pyright: ignore[reportAny]
            config.server = _section_from_dict(ServerConfig, server_data)  # pyright: ignore[reportAny]
            config.mark("server", *_known_keys(ServerConfig, server_data))  # pyright: ignore[reportAny]
            if isinstance(config.server.command, str):
                config.server.command = shlex.split(config.server.command)

        if analysis_data := data.get("analysis", {}):  # pyright: ignore[reportAny]
            config.analysis = _section_from_dict(AnalysisConfig, analysis_data)  # pyright: ignore[reportAny]
            config.mark("analysis", *_known_keys(AnalysisConfig, analysis_data))  # pyright: ignore[reportAny]

        if ui_data := data.get("ui", {}):  # pyright: ignore[reportAny]
            config.ui = _section_from_dict(UiConfig, ui_data)  # pyright: ignore[reportAny]
            config.mark("ui", *_known_keys(UiConfig, ui_data))  # pyright: ignore[reportAny]

        return config


def _read_toml(path: Path) -> dict[str, Any] | None:
    """read a toml file, returning none if it is missing or unreadable."""
    if not path.exists():
        return None

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable config file %s: %s", path, exc)
        return None


def _known_keys(section_type: type[Any], data: dict[str, Any]) -> set[str]:
    """keys of `data` that name a field of `section_type`."""
    return data.keys() & {f.name for f in fields(section_type)}


def _section_from_dict(section_type: type[_Section], data: dict[str, Any]) -> _Section:
    """build a config section from the keys it knows about."""
    known = _known_keys(section_type, data)
    for key in data.keys() - known:
        logger.warning("ignoring unknown %s setting: %s", section_type.__name__, key)
    return section_type(**{key: data[key] for key in known})


def _merge_section(base: _Section, other: _Section, explicit: set[str]) -> _Section:
    """overlay the explicitly set and the non-default fields of `other` onto `base`."""
    default = type(other)()
    changes = {
        f.name: getattr(other, f.name)
        for f in fields(other)  # pyright: ignore[reportArgumentType]
        if f.name in explicit or getattr(other, f.name) != getattr(default, f.name)
    }
    return replace(base, **changes)  # pyright: ignore[reportArgumentType]
