"""
progress notification bridge.

relays the server's begin/report/end progress notifications into log lines
and the host's busy indicator.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, final

from lsprotocol import types

from .host import Buffer, BusyIndicator, Workspace

logger = logging.getLogger(__name__)

BEGIN_PROGRESS = "python/beginProgress"
REPORT_PROGRESS = "python/reportProgress"
END_PROGRESS = "python/endProgress"

# same notifications under the prefix pyright uses
PYRIGHT_BEGIN_PROGRESS = "pyright/beginProgress"
PYRIGHT_REPORT_PROGRESS = "pyright/reportProgress"
PYRIGHT_END_PROGRESS = "pyright/endProgress"

PROGRESS_METHODS = (
    BEGIN_PROGRESS,
    REPORT_PROGRESS,
    END_PROGRESS,
    PYRIGHT_BEGIN_PROGRESS,
    PYRIGHT_REPORT_PROGRESS,
    PYRIGHT_END_PROGRESS,
)


@final
@dataclass(frozen=True)
class Begin:
    """a long-running operation started."""


@final
@dataclass(frozen=True)
class Report:
    """
    an intermediate progress message.

    attributes:
        `message: str | None`
            human-readable text, if the server sent any
    """

    message: str | None = None


@final
@dataclass(frozen=True)
class End:
    """the operation finished."""


ProgressEvent = Begin | Report | End


def _first_message(params: Any) -> str | None:
    """extract the human-readable string a notification may carry."""
    if isinstance(params, str):
        return params or None
    if isinstance(params, (list, tuple)) and params:
        first = params[0]  # pyright: ignore[reportUnknownVariableType]
        if isinstance(first, str) and first:
            return first
    return None


def event_from_notification(method: str, params: Any = None) -> ProgressEvent | None:
    """
    map a custom progress notification onto an event.

    arguments:
        `method: str`
            notification method name
        `params: Any`
            raw notification payload

    returns: `ProgressEvent | None`
        none for methods that are not progress notifications
    """
    if method in (BEGIN_PROGRESS, PYRIGHT_BEGIN_PROGRESS):
        return Begin()
    if method in (REPORT_PROGRESS, PYRIGHT_REPORT_PROGRESS):
        return Report(_first_message(params))
    if method in (END_PROGRESS, PYRIGHT_END_PROGRESS):
        return End()
    return None


def event_from_work_done(value: Any) -> ProgressEvent | None:
    """
    map a standard `$/progress` value onto an event.

    the value arrives either as an lsprotocol object or as a raw dict with
    a "kind" key.

    returns: `ProgressEvent | None`
        none for values that are not work done progress
    """
    if isinstance(value, types.WorkDoneProgressBegin):
        return Begin()
    if isinstance(value, types.WorkDoneProgressReport):
        return Report(value.message or None)
    if isinstance(value, types.WorkDoneProgressEnd):
        return End()

    if isinstance(value, dict):
        kind = value.get("kind")  # pyright: ignore[reportUnknownMemberType]
        if kind == "begin":
            return Begin()
        if kind == "report":
            return Report(_first_message([value.get("message")]))  # pyright: ignore[reportUnknownMemberType]
        if kind == "end":
            return End()
    return None


class ProgressBridge:
    """
    forwards progress events to the log and the host's busy indicator.

    events are not deduplicated: every Begin starts the indicator on every
    buffer that is live at that moment.

    attributes:
        `workspace: Workspace`
            the workspace whose buffers show the indicator
        `indicator: BusyIndicator | None`
            host indicator, none when the host has no visual feedback
        `enabled: bool`
            whether the indicator is toggled at all
    """

    workspace: Workspace
    indicator: BusyIndicator | None
    enabled: bool

    def __init__(
        self,
        workspace: Workspace,
        indicator: BusyIndicator | None = None,
        enabled: bool = True,
    ) -> None:
        self.workspace = workspace
        self.indicator = indicator
        self.enabled = enabled

    def handle(self, event: ProgressEvent) -> None:
        """dispatch one event."""
        if isinstance(event, Begin):
            self.begin()
        elif isinstance(event, Report):
            self.report(event.message)
        elif isinstance(event, End):
            self.end()

    def begin(self) -> None:
        logger.info("analysis started")
        if self._indicating():
            for buffer in self._live_buffers():
                self.indicator.start(buffer)  # pyright: ignore[reportOptionalMemberAccess]

    def report(self, message: str | None) -> None:
        if message:
            logger.info("%s", message)

    def end(self) -> None:
        logger.info("analysis finished")
        if self._indicating():
            for buffer in self._live_buffers():
                self.indicator.stop(buffer)  # pyright: ignore[reportOptionalMemberAccess]

    def _indicating(self) -> bool:
        return self.enabled and self.indicator is not None

    def _live_buffers(self) -> Iterator[Buffer]:
        for buffer in self.workspace.buffers():
            if buffer.is_live():
                yield buffer
