"""
synchronous external command execution.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from .errors import ToolQueryFailed

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """signature shared by `run_command` and test doubles."""

    def __call__(
        self,
        command: str,
        args: Sequence[str],
        cwd: str | Path | None = None,
    ) -> str: ...


def run_command(
    command: str,
    args: Sequence[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> str:
    """
    run a command to completion and return its trimmed standard output.

    the call blocks. with the default `timeout` of none a hanging command
    hangs the caller.

    arguments:
        `command: str`
            executable to run
        `args: Sequence[str]`
            arguments passed to the executable
        `cwd: str | Path | None`
            working directory for the process
        `timeout: float | None`
            seconds to wait before giving up

    returns: `str`
        standard output with surrounding whitespace removed

    raises:
        `ToolQueryFailed`
            if the command cannot be launched or exits non-zero
    """
    argv = [command, *args]
    logger.debug("running %s (cwd=%s)", argv, cwd)

    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd) if cwd is not None else None,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
        raise ToolQueryFailed(argv) from exc

    if result.returncode != 0:
        raise ToolQueryFailed(argv, result.returncode, result.stderr.strip())

    return result.stdout.strip()
