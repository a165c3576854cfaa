"""tests for the language server session.

the pygls client is replaced by a recording double, so no server process
is spawned; one smoke test builds the real client.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from lsprotocol import types

from libenvresolver import EnvironmentResolver, ProjectInfo, ResolutionContext, ResolverConfig, ToolType
from serverlink.client import LinkClient, ServerLaunchError, ServerSession
from serverlink.config import Config
from serverlink.host import DocumentWorkspace
from serverlink.progress import BEGIN_PROGRESS, END_PROGRESS, PROGRESS_METHODS, PYRIGHT_BEGIN_PROGRESS, REPORT_PROGRESS


class FakeClient:
    """stand-in for LinkClient recording handlers and outgoing messages."""

    def __init__(self) -> None:
        self.handlers: dict[str, object] = {}
        self.exited = asyncio.Event()
        self.start_io = AsyncMock()
        self.initialize_async = AsyncMock(
            return_value=types.InitializeResult(
                capabilities=types.ServerCapabilities(),
                server_info=types.ServerInfo(name="fake-server"),
            )
        )
        self.initialized = MagicMock()
        self.workspace_did_change_configuration = MagicMock()
        self.text_document_did_open = MagicMock()
        self.text_document_did_close = MagicMock()
        self.shutdown_async = AsyncMock()
        self.exit = MagicMock()
        self.stop = AsyncMock()

    def feature(self, name: str, options: object = None):
        def decorator(f):
            self.handlers[name] = f
            return f

        return decorator


class RecordingIndicator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def start(self, buffer) -> None:
        self.calls.append(("start", buffer.name))

    def stop(self, buffer) -> None:
        self.calls.append(("stop", buffer.name))


def interpreter_runner(command: str, args: Sequence[str], cwd: str | Path | None = None) -> str:
    return json.dumps({"version": "3.12.1", "paths": ["/v/lib/python3.12"]})


@pytest.fixture
def workspace(tmp_path: Path) -> DocumentWorkspace:
    (tmp_path / "main.py").write_text("print('hi')\n")
    ws = DocumentWorkspace(tmp_path)
    _ = ws.open("main.py")
    return ws


@pytest.fixture
def resolver(workspace: DocumentWorkspace) -> EnvironmentResolver:
    return EnvironmentResolver(
        ResolutionContext(workspace.root),
        ResolverConfig(venv_path_override="/opt/envs/x"),
        which=lambda name: "/usr/bin/python" if name == "python" else None,
    )


@pytest.fixture
def indicator() -> RecordingIndicator:
    return RecordingIndicator()


@pytest.fixture
def session(workspace, resolver, indicator) -> ServerSession:
    config = Config(project_root=workspace.root)
    config.server.command = ["fake-server", "--stdio"]
    return ServerSession(
        config,
        workspace,
        indicator,
        resolver=resolver,
        runner=interpreter_runner,
        client_factory=FakeClient,  # pyright: ignore[reportArgumentType]
    )


class TestHandlers:
    """tests for messages sent by the server."""

    def test_handlers_registered(self, session: ServerSession) -> None:
        """test that every server-to-client method has a handler."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]

        for method in (
            types.WORKSPACE_CONFIGURATION,
            types.PROGRESS,
            types.WINDOW_WORK_DONE_PROGRESS_CREATE,
            types.WINDOW_LOG_MESSAGE,
            types.TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS,
            *PROGRESS_METHODS,
        ):
            assert method in handlers

    def test_custom_progress(self, session: ServerSession, indicator: RecordingIndicator, caplog) -> None:
        """test the begin/report/end notifications end to end."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]
        name = str(session.workspace.root / "main.py")

        with caplog.at_level(logging.INFO, logger="serverlink.progress"):
            handlers[BEGIN_PROGRESS](None)
            handlers[REPORT_PROGRESS](["analyzing foo.py"])
            handlers[END_PROGRESS]([])

        assert indicator.calls == [("start", name), ("stop", name)]
        messages = [r.getMessage() for r in caplog.records if r.name == "serverlink.progress"]
        assert "analyzing foo.py" in messages
        assert len(messages) == 3

    def test_standard_progress(self, session: ServerSession, indicator: RecordingIndicator) -> None:
        """test that $/progress drives the same bridge."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]

        handlers[types.PROGRESS](types.ProgressParams(token="t", value={"kind": "begin", "title": "Indexing"}))
        handlers[types.PROGRESS](types.ProgressParams(token="t", value={"kind": "end"}))
        handlers[types.PROGRESS](types.ProgressParams(token="t", value={"unrelated": True}))

        assert [call[0] for call in indicator.calls] == ["start", "stop"]

    def test_pyright_progress(self, session: ServerSession, indicator: RecordingIndicator) -> None:
        """test that pyright-prefixed notifications reach the bridge."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]

        handlers[PYRIGHT_BEGIN_PROGRESS](None)

        assert indicator.calls == [("start", str(session.workspace.root / "main.py"))]

    def test_configuration_request(self, session: ServerSession) -> None:
        """test that configuration items are answered from the snapshot."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]
        params = types.ConfigurationParams(
            items=[
                types.ConfigurationItem(section="python.venvPath"),
                types.ConfigurationItem(section="python.pythonPath"),
                types.ConfigurationItem(section="python.analysis"),
                types.ConfigurationItem(section="editor"),
            ]
        )

        venv, python, analysis, unknown = handlers[types.WORKSPACE_CONFIGURATION](params)

        assert venv == "/opt/envs/x"
        assert python == "/usr/bin/python"
        assert analysis["logLevel"] == "Warning"
        assert unknown is None

    def test_log_message(self, session: ServerSession, caplog) -> None:
        """test that server log messages map onto logging levels."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]

        with caplog.at_level(logging.DEBUG, logger="serverlink.client"):
            handlers[types.WINDOW_LOG_MESSAGE](types.LogMessageParams(type=types.MessageType.Error, message="boom"))

        record = next(r for r in caplog.records if "boom" in r.getMessage())
        assert record.levelno == logging.ERROR

    def test_diagnostics_recorded(self, session: ServerSession) -> None:
        """test that published diagnostics are kept per uri."""
        handlers = session.client.handlers  # pyright: ignore[reportAttributeAccessIssue]
        diagnostic = types.Diagnostic(
            range=types.Range(start=types.Position(line=0, character=0), end=types.Position(line=0, character=1)),
            message="undefined variable",
        )

        handlers[types.TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS](
            types.PublishDiagnosticsParams(uri="file:///x.py", diagnostics=[diagnostic])
        )

        assert session.diagnostics["file:///x.py"] == [diagnostic]


class TestLifecycle:
    """tests for starting and stopping the server."""

    @pytest.mark.asyncio
    async def test_start_handshake(self, session: ServerSession) -> None:
        """test spawn, initialize, initialized and the settings push."""
        client = session.client
        root = session.workspace.root

        result = await session.start()

        client.start_io.assert_awaited_once_with("fake-server", "--stdio", cwd=str(root))  # pyright: ignore[reportFunctionMemberAccess]
        params: types.InitializeParams = client.initialize_async.call_args.args[0]  # pyright: ignore[reportFunctionMemberAccess]
        assert params.root_uri == root.as_uri()
        assert params.capabilities.workspace is not None
        assert params.capabilities.workspace.configuration is True
        assert params.initialization_options["interpreter"]["properties"]["InterpreterPath"] == "/usr/bin/python"
        assert params.initialization_options["interpreter"]["properties"]["Version"] == "3.12.1"
        assert result.server_info is not None
        assert result.server_info.name == "fake-server"

        client.initialized.assert_called_once()  # pyright: ignore[reportFunctionMemberAccess]
        pushed = client.workspace_did_change_configuration.call_args.args[0]  # pyright: ignore[reportFunctionMemberAccess]
        assert pushed.settings["python"]["venvPath"] == "/opt/envs/x"

        opened = client.text_document_did_open.call_args.args[0]  # pyright: ignore[reportFunctionMemberAccess]
        assert opened.text_document.uri == (root / "main.py").as_uri()
        assert opened.text_document.text == "print('hi')\n"
        assert session.started

    @pytest.mark.asyncio
    async def test_start_with_explicit_command(self, session: ServerSession) -> None:
        """test that an explicit command replaces the configured one."""
        _ = await session.start(["other-server"])

        session.client.start_io.assert_awaited_once_with(  # pyright: ignore[reportFunctionMemberAccess]
            "other-server", cwd=str(session.workspace.root)
        )

    @pytest.mark.asyncio
    async def test_start_without_command(self, session: ServerSession) -> None:
        """test that an empty command is refused."""
        session.config.server.command = []

        with pytest.raises(ServerLaunchError):
            _ = await session.start()

    @pytest.mark.asyncio
    async def test_start_spawn_failure(self, session: ServerSession) -> None:
        """test that a missing server executable is reported."""
        session.client.start_io.side_effect = FileNotFoundError("fake-server")  # pyright: ignore[reportFunctionMemberAccess]

        with pytest.raises(ServerLaunchError):
            _ = await session.start()

        session.client.initialize_async.assert_not_awaited()  # pyright: ignore[reportFunctionMemberAccess]

    @pytest.mark.asyncio
    async def test_stop_clears_cache(self, session: ServerSession) -> None:
        """test shutdown and that the session's resolution cache is dropped."""
        _ = await session.start()
        session.resolver.context.project_info = ProjectInfo("/v", "/v/bin/python", ToolType.POETRY)

        await session.stop()

        session.client.shutdown_async.assert_awaited_once()  # pyright: ignore[reportFunctionMemberAccess]
        session.client.exit.assert_called_once()  # pyright: ignore[reportFunctionMemberAccess]
        session.client.stop.assert_awaited_once()  # pyright: ignore[reportFunctionMemberAccess]
        assert session.resolver.context.project_info is None
        assert not session.started

    @pytest.mark.asyncio
    async def test_stop_before_start(self, session: ServerSession) -> None:
        """test that stopping an unstarted session skips shutdown."""
        await session.stop()

        session.client.shutdown_async.assert_not_awaited()  # pyright: ignore[reportFunctionMemberAccess]
        session.client.stop.assert_awaited_once()  # pyright: ignore[reportFunctionMemberAccess]

    @pytest.mark.asyncio
    async def test_wait(self, session: ServerSession) -> None:
        """test that wait returns once the server has exited."""
        session.client.exited.set()
        await asyncio.wait_for(session.wait(), timeout=1)


class TestDocuments:
    """tests for document synchronisation."""

    def test_open_once(self, session: ServerSession) -> None:
        """test that a document is only opened once."""
        session.open_document("main.py")
        session.open_document(session.workspace.root / "main.py")

        assert session.client.text_document_did_open.call_count == 1  # pyright: ignore[reportFunctionMemberAccess]

    def test_open_missing_file(self, session: ServerSession) -> None:
        """test that a missing file is opened with empty text."""
        session.open_document("missing.py")

        opened = session.client.text_document_did_open.call_args.args[0]  # pyright: ignore[reportFunctionMemberAccess]
        assert opened.text_document.text == ""

    def test_close(self, session: ServerSession) -> None:
        """test that only opened documents are closed."""
        session.close_document("main.py")
        session.client.text_document_did_close.assert_not_called()  # pyright: ignore[reportFunctionMemberAccess]

        session.open_document("main.py")
        session.close_document("main.py")
        session.client.text_document_did_close.assert_called_once()  # pyright: ignore[reportFunctionMemberAccess]


class TestRealClient:
    """smoke test with the pygls client."""

    def test_builds(self, workspace: DocumentWorkspace) -> None:
        """test that handlers register on a real LanguageClient."""
        session = ServerSession(Config(project_root=workspace.root), workspace)

        assert isinstance(session.client, LinkClient)
        assert not session.client.exited.is_set()
