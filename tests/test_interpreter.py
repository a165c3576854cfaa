"""tests for interpreter inspection and initialisation options."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from libenvresolver import ToolQueryFailed
from serverlink.config import Config
from serverlink.interpreter import (
    INTERPRETER_INFO_SCRIPT,
    InterpreterInfo,
    initialization_options,
    query_interpreter,
)


class ScriptedRunner:
    """runner double returning one canned output."""

    def __init__(self, output: str | Exception) -> None:
        self.output = output
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    def __call__(self, command: str, args: Sequence[str], cwd: str | Path | None = None) -> str:
        self.calls.append((command, tuple(args)))
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class TestQueryInterpreter:
    """tests for query_interpreter."""

    def test_parses_answer(self) -> None:
        """test that version and paths are read from the script output."""
        runner = ScriptedRunner(json.dumps({"version": "3.12.1", "paths": ["/v/lib/python3.12"]}))

        info = query_interpreter("/v/bin/python", runner=runner)

        assert info == InterpreterInfo("3.12.1", ["/v/lib/python3.12"])
        assert runner.calls == [("/v/bin/python", ("-c", INTERPRETER_INFO_SCRIPT))]

    def test_no_interpreter(self) -> None:
        """test that an empty path is not run."""
        runner = ScriptedRunner("")

        assert query_interpreter("", runner=runner) == InterpreterInfo()
        assert runner.calls == []

    def test_failure(self) -> None:
        """test that a failing interpreter yields empty info."""
        runner = ScriptedRunner(ToolQueryFailed(["/v/bin/python"], 1))
        assert query_interpreter("/v/bin/python", runner=runner) == InterpreterInfo()

    def test_garbage_output(self) -> None:
        """test that unparseable output yields empty info."""
        assert query_interpreter("/p", runner=ScriptedRunner("Python 2.7")) == InterpreterInfo()
        assert query_interpreter("/p", runner=ScriptedRunner("[1, 2]")) == InterpreterInfo()

    def test_wrong_types(self) -> None:
        """test that badly typed fields are dropped."""
        runner = ScriptedRunner(json.dumps({"version": 3, "paths": "nope"}))
        assert query_interpreter("/p", runner=runner) == InterpreterInfo()


class TestInitializationOptions:
    """tests for initialization_options."""

    def test_shape(self) -> None:
        """test the options sent with initialize."""
        config = Config()
        config.analysis.extra_paths = ["/extra"]
        config.analysis.type_stub_paths = ["/stubs"]
        config.analysis.exclude_files = ["build/**"]
        info = InterpreterInfo("3.12.1", ["/v/lib/python3.12"])

        options = initialization_options(config, "/v/bin/python", info)

        assert options["interpreter"]["properties"] == {
            "InterpreterPath": "/v/bin/python",
            "UseDefaultDatabase": True,
            "Version": "3.12.1",
        }
        assert options["searchPaths"] == ["/v/lib/python3.12", "/extra"]
        assert options["typeStubSearchPaths"] == ["/stubs"]
        assert options["excludeFiles"] == ["build/**"]
        assert options["analysisUpdates"] is True
        assert options["asyncStartup"] is True

    def test_without_interpreter(self) -> None:
        """test that options are still complete with nothing resolved."""
        options = initialization_options(Config(), "", InterpreterInfo())

        assert options["interpreter"]["properties"]["InterpreterPath"] == ""
        assert options["interpreter"]["properties"]["Version"] == ""
        assert options["searchPaths"] == []
