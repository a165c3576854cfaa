"""
tests for the command runner.
"""

from __future__ import annotations

import subprocess
from unittest import mock

import pytest

from libenvresolver.errors import ToolQueryFailed
from libenvresolver.process import run_command


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunCommand:
    """tests for run_command."""

    def test_returns_trimmed_stdout(self) -> None:
        """test that output is stripped on success."""
        with mock.patch("subprocess.run", return_value=_completed(0, "  /venv/path\n")) as run:
            assert run_command("pipenv", ["--venv"]) == "/venv/path"

        argv = run.call_args.args[0]
        assert argv == ["pipenv", "--venv"]

    def test_passes_cwd_and_no_timeout(self, tmp_path) -> None:
        """test that the working directory is forwarded and no timeout is set."""
        with mock.patch("subprocess.run", return_value=_completed(0, "x")) as run:
            _ = run_command("poetry", ["env", "info", "-p"], cwd=tmp_path)

        assert run.call_args.kwargs["cwd"] == str(tmp_path)
        assert run.call_args.kwargs["timeout"] is None
        assert run.call_args.kwargs["capture_output"] is True

    def test_nonzero_exit_raises(self) -> None:
        """test that a failing command raises with its status."""
        with mock.patch("subprocess.run", return_value=_completed(1, "partial", "boom\n")):
            with pytest.raises(ToolQueryFailed) as exc_info:
                _ = run_command("pipenv", ["--py"])

        assert exc_info.value.returncode == 1
        assert exc_info.value.stderr == "boom"
        assert exc_info.value.command == ["pipenv", "--py"]

    def test_missing_executable_raises(self) -> None:
        """test that a launch error raises without a status."""
        with mock.patch("subprocess.run", side_effect=FileNotFoundError("pipenv")):
            with pytest.raises(ToolQueryFailed) as exc_info:
                _ = run_command("pipenv", ["--venv"])

        assert exc_info.value.returncode is None
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_timeout_raises(self) -> None:
        """test that an explicit timeout surfaces as a failed query."""
        with mock.patch(
            "subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd=["poetry"], timeout=1),
        ):
            with pytest.raises(ToolQueryFailed):
                _ = run_command("poetry", ["env", "info", "-p"], timeout=1)

    def test_empty_output_is_not_an_error(self) -> None:
        """test that an empty answer is returned as an empty string."""
        with mock.patch("subprocess.run", return_value=_completed(0, "\n")):
            assert run_command("poetry", ["env", "info", "-p"]) == ""
