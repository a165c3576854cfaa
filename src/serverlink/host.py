"""
interfaces to the editing host.

the host owns buffers and the busy indicator; serverlink only talks to them
through the protocols below. `DocumentWorkspace` and `LoggingIndicator` are
the minimal host used by the command line.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Buffer(Protocol):
    """a host buffer that may have been killed since it was listed."""

    @property
    def name(self) -> str: ...

    def is_live(self) -> bool: ...


class Workspace(Protocol):
    """the host's view of the project the server is attached to."""

    @property
    def root(self) -> Path: ...

    def buffers(self) -> Iterable[Buffer]: ...


class BusyIndicator(Protocol):
    """a visual busy marker the host can toggle per buffer."""

    def start(self, buffer: Buffer) -> None: ...

    def stop(self, buffer: Buffer) -> None: ...


@dataclass
class Document:
    """
    a file opened in a `DocumentWorkspace`.

    attributes:
        `path: Path`
            absolute path of the file
        `live: bool`
            false once the document is closed
    """

    path: Path
    live: bool = True

    @property
    def name(self) -> str:
        return str(self.path)

    def is_live(self) -> bool:
        return self.live


class DocumentWorkspace:
    """
    in-memory workspace tracking the documents opened in one project.

    closed documents stay listed but are no longer live.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()
        self._documents: dict[Path, Document] = {}

    @property
    def root(self) -> Path:
        return self._root

    def open(self, path: str | Path) -> Document:
        """
        open a document, relative paths being taken from the root.

        returns: `Document`
            the live document
        """
        resolved = self._root.joinpath(path).resolve()
        document = self._documents.get(resolved)
        if document is None or not document.live:
            document = Document(resolved)
            self._documents[resolved] = document
        return document

    def close(self, path: str | Path) -> None:
        """mark a document as closed."""
        resolved = self._root.joinpath(path).resolve()
        if (document := self._documents.get(resolved)) is not None:
            document.live = False

    def buffers(self) -> list[Document]:
        return list(self._documents.values())

    @property
    def current_file(self) -> Path | None:
        """the most recently opened live document, if any."""
        live = [document for document in self._documents.values() if document.live]
        return live[-1].path if live else None


class LoggingIndicator:
    """busy indicator that records busy buffers and logs each toggle."""

    def __init__(self) -> None:
        self.busy: set[str] = set()

    def start(self, buffer: Buffer) -> None:
        self.busy.add(buffer.name)
        logger.debug("busy: %s", buffer.name)

    def stop(self, buffer: Buffer) -> None:
        self.busy.discard(buffer.name)
        logger.debug("idle: %s", buffer.name)
