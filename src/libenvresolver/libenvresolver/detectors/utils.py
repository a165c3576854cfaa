"""
utility functions for detectors.
"""

from __future__ import annotations

import sys
from pathlib import PurePath


def python_subpath() -> PurePath:
    """
    relative location of the interpreter inside a virtual environment.

    returns: `PurePath`
        `Scripts/python.exe` on windows, `bin/python` elsewhere
    """
    if sys.platform == "win32":
        return PurePath("Scripts", "python.exe")
    return PurePath("bin", "python")


def venv_python(venv_path: str) -> str:
    """
    derive the interpreter path of a virtual environment.

    the path is joined, not checked for existence.

    arguments:
        `venv_path: str`
            path to the virtual environment

    returns: `str`
        path to its python executable
    """
    return str(PurePath(venv_path).joinpath(python_subpath()))
