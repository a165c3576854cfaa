"""
exceptions raised by libenvresolver.
"""

from __future__ import annotations


class EnvResolverError(Exception):
    """base class for libenvresolver errors."""


class ToolQueryFailed(EnvResolverError):
    """
    an external command could not be launched or exited non-zero.

    attributes:
        `command: list[str]`
            the full argv that was run
        `returncode: int | None`
            exit status, none if the process never started
        `stderr: str`
            captured standard error, if any
    """

    command: list[str]
    returncode: int | None
    stderr: str

    def __init__(self, command: list[str], returncode: int | None = None, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"could not run {' '.join(command)!r}"
        else:
            message = f"{' '.join(command)!r} exited with status {returncode}"
        super().__init__(message)
