"""
serverlink: python language server launcher.

this package starts an external python language server for a project,
hands it the interpreter and virtual environment detected for that project,
and relays the server's progress notifications to the editing host.
"""

from __future__ import annotations

from .client import LinkClient, ServerLaunchError, ServerSession
from .config import AnalysisConfig, Config, PythonConfig, ServerConfig, UiConfig
from .host import Buffer, BusyIndicator, Document, DocumentWorkspace, LoggingIndicator, Workspace
from .progress import Begin, End, ProgressBridge, ProgressEvent, Report
from .settings import build_settings, nest_settings

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "Begin",
    "Buffer",
    "BusyIndicator",
    "Config",
    "Document",
    "DocumentWorkspace",
    "End",
    "LinkClient",
    "LoggingIndicator",
    "ProgressBridge",
    "ProgressEvent",
    "PythonConfig",
    "Report",
    "ServerConfig",
    "ServerLaunchError",
    "ServerSession",
    "UiConfig",
    "Workspace",
    "build_settings",
    "nest_settings",
]
