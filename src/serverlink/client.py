"""
language server session for serverlink.

spawns the external language server over stdio, performs the initialize
handshake and answers what the server asks of its client: configuration
requests, progress notifications and log messages.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, final

from lsprotocol import types
from pygls.lsp.client import LanguageClient
from typing_extensions import override

from libenvresolver import EnvironmentResolver, ResolutionContext, run_command
from libenvresolver.process import CommandRunner

from .config import Config
from .host import BusyIndicator, Workspace
from .interpreter import initialization_options, query_interpreter
from .progress import PROGRESS_METHODS, ProgressBridge, event_from_notification, event_from_work_done
from .settings import PYTHON_PATH_KEY, build_settings, lookup_section, nest_settings

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    types.MessageType.Error: logging.ERROR,
    types.MessageType.Warning: logging.WARNING,
    types.MessageType.Info: logging.INFO,
    types.MessageType.Log: logging.DEBUG,
}


class ServerLaunchError(RuntimeError):
    """the language server process could not be started."""


class LinkClient(LanguageClient):
    """language client that notices when the server process exits."""

    exited: asyncio.Event

    def __init__(self) -> None:
        super().__init__("serverlink", "0.1.0")  # pyright: ignore[reportUnknownMemberType]
        self.exited = asyncio.Event()

    @override
    async def server_exit(self, server: asyncio.subprocess.Process) -> None:
        logger.info("language server exited with status %s", server.returncode)
        self.exited.set()


@final
class ServerSession:
    """
    one language server attached to one workspace.

    the session owns the resolution context, so the interpreter lookup is
    cached for exactly as long as the session lives.

    attributes:
        `config: Config`
            serverlink configuration
        `workspace: Workspace`
            host workspace the server analyses
        `resolver: EnvironmentResolver`
            interpreter and venv resolver for this session
        `bridge: ProgressBridge`
            progress notification relay
        `diagnostics: dict[str, list[types.Diagnostic]]`
            latest diagnostics published per document uri
    """

    config: Config
    workspace: Workspace
    resolver: EnvironmentResolver
    bridge: ProgressBridge
    diagnostics: dict[str, list[types.Diagnostic]]

    def __init__(
        self,
        config: Config,
        workspace: Workspace,
        indicator: BusyIndicator | None = None,
        resolver: EnvironmentResolver | None = None,
        runner: CommandRunner = run_command,
        client_factory: Callable[[], LinkClient] = LinkClient,
    ) -> None:
        """
        initialise the session without starting the server.

        arguments:
            `config: Config`
                serverlink configuration
            `workspace: Workspace`
                host workspace
            `indicator: BusyIndicator | None`
                host busy indicator, if the host has one
            `resolver: EnvironmentResolver | None`
                resolver to use (default: a fresh one for the workspace)
            `runner: CommandRunner`
                command runner for tool and interpreter queries
            `client_factory: Callable[[], LinkClient]`
                builds the underlying pygls client
        """
        self.config = config
        self.workspace = workspace
        self.resolver = resolver or EnvironmentResolver(
            ResolutionContext(workspace.root),
            config.resolver_config(),
            runner=runner,
        )
        self.bridge = ProgressBridge(workspace, indicator, enabled=config.ui.progress_indicator)
        self.diagnostics = {}
        self._runner = runner
        self._client = client_factory()
        self._started = False
        self._opened: set[str] = set()

        self._register_handlers()

    @property
    def client(self) -> LinkClient:
        return self._client

    @property
    def started(self) -> bool:
        return self._started

    def _register_handlers(self) -> None:
        """Register handlers for messages sent by the server."""

        @self._client.feature(types.WORKSPACE_CONFIGURATION)
        def on_configuration(params: types.ConfigurationParams) -> list[Any]:
            return self.answer_configuration(params)

        _ = on_configuration  # registered via decorator

        @self._client.feature(types.PROGRESS)
        def on_progress(params: types.ProgressParams) -> None:
            self.handle_work_done_progress(params)

        _ = on_progress  # registered via decorator

        @self._client.feature(types.WINDOW_WORK_DONE_PROGRESS_CREATE)
        def on_progress_create(params: types.WorkDoneProgressCreateParams) -> None:
            logger.debug("server created progress token %s", params.token)

        _ = on_progress_create  # registered via decorator

        @self._client.feature(types.WINDOW_LOG_MESSAGE)
        def on_log_message(params: types.LogMessageParams) -> None:
            self.handle_log_message(params)

        _ = on_log_message  # registered via decorator

        @self._client.feature(types.TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS)
        def on_diagnostics(params: types.PublishDiagnosticsParams) -> None:
            self.diagnostics[params.uri] = list(params.diagnostics)
            logger.debug("%d diagnostics for %s", len(params.diagnostics), params.uri)

        _ = on_diagnostics  # registered via decorator

        for method in PROGRESS_METHODS:
            _ = self._client.feature(method)(self._progress_handler(method))

    def _progress_handler(self, method: str) -> Callable[[Any], None]:
        def on_custom_progress(params: Any) -> None:
            self.handle_progress_notification(method, params)

        return on_custom_progress

    def settings(self) -> Mapping[str, Any]:
        """
        resolve the settings snapshot for the current state of the host.

        returns: `Mapping[str, Any]`
            read-only flat settings mapping
        """
        current_file: Path | None = getattr(self.workspace, "current_file", None)
        return build_settings(self.config, self.resolver, current_file)

    def answer_configuration(self, params: types.ConfigurationParams) -> list[Any]:
        """
        answer a `workspace/configuration` request.

        arguments:
            `params: types.ConfigurationParams`
                requested sections

        returns: `list[Any]`
            one value per requested item, none for unknown sections
        """
        nested = nest_settings(self.settings())
        return [lookup_section(nested, item.section) for item in params.items]

    def handle_progress_notification(self, method: str, params: Any) -> None:
        """relay one of the server's custom progress notifications."""
        event = event_from_notification(method, params)
        if event is not None:
            self.bridge.handle(event)

    def handle_work_done_progress(self, params: types.ProgressParams) -> None:
        """relay a standard `$/progress` notification."""
        event = event_from_work_done(params.value)
        if event is None:
            logger.debug("ignoring progress value for token %s", params.token)
            return
        self.bridge.handle(event)

    def handle_log_message(self, params: types.LogMessageParams) -> None:
        """forward a `window/logMessage` to the logging system."""
        level = _LOG_LEVELS.get(params.type, logging.DEBUG)
        logger.log(level, "[server] %s", params.message)

    async def start(self, command: Sequence[str] | None = None) -> types.InitializeResult:
        """
        spawn the server and perform the handshake.

        the interpreter is resolved (and inspected) before `initialize` is
        sent; both calls block the event loop while the tools run.

        arguments:
            `command: Sequence[str] | None`
                argv to run (default: the configured server command)

        returns: `types.InitializeResult`
            the server's answer to `initialize`

        raises:
            `ServerLaunchError`
                if no command is configured or it cannot be spawned
        """
        argv = list(command) if command else list(self.config.server.command)
        if not argv:
            raise ServerLaunchError("no language server command configured")

        root = self.workspace.root
        logger.info("starting %s in %s", " ".join(argv), root)
        try:
            await self._client.start_io(*argv, cwd=str(root))
        except OSError as exc:
            raise ServerLaunchError(f"could not start {argv[0]!r}: {exc}") from exc

        snapshot = self.settings()
        python_path: str = snapshot[PYTHON_PATH_KEY]
        info = query_interpreter(python_path, cwd=root, runner=self._runner)
        logger.info("using interpreter %s (%s)", python_path or "(none)", info.version or "unknown version")

        result = await self._client.initialize_async(
            self._initialize_params(initialization_options(self.config, python_path, info))
        )
        logger.info("server initialised: %s", result.server_info)

        self._client.initialized(types.InitializedParams())
        self._client.workspace_did_change_configuration(
            types.DidChangeConfigurationParams(settings=nest_settings(snapshot))
        )
        self._started = True

        for buffer in self.workspace.buffers():
            if buffer.is_live():
                self.open_document(buffer.name)

        return result

    def _initialize_params(self, options: dict[str, Any]) -> types.InitializeParams:
        root = self.workspace.root
        root_uri = root.as_uri()
        return types.InitializeParams(
            process_id=os.getpid(),
            client_info=types.ClientInfo(name="serverlink", version="0.1.0"),
            root_path=str(root),
            root_uri=root_uri,
            workspace_folders=[types.WorkspaceFolder(uri=root_uri, name=root.name)],
            initialization_options=options,
            capabilities=types.ClientCapabilities(
                workspace=types.WorkspaceClientCapabilities(
                    configuration=True,
                    workspace_folders=True,
                    did_change_configuration=types.DidChangeConfigurationClientCapabilities(
                        dynamic_registration=False,
                    ),
                ),
                window=types.WindowClientCapabilities(work_done_progress=True),
                text_document=types.TextDocumentClientCapabilities(
                    synchronization=types.TextDocumentSyncClientCapabilities(did_save=True),
                    publish_diagnostics=types.PublishDiagnosticsClientCapabilities(),
                    hover=types.HoverClientCapabilities(),
                    completion=types.CompletionClientCapabilities(),
                ),
            ),
        )

    def open_document(self, path: str | Path) -> None:
        """
        send `textDocument/didOpen` for a file, once per uri.

        arguments:
            `path: str | Path`
                file to open; relative paths are taken from the root
        """
        file_path = self.workspace.root.joinpath(path)
        uri = file_path.as_uri()
        if uri in self._opened:
            return

        try:
            text = file_path.read_text(encoding="utf-8")
        except (FileNotFoundError, OSError):
            text = ""

        self._client.text_document_did_open(
            types.DidOpenTextDocumentParams(
                text_document=types.TextDocumentItem(uri=uri, language_id="python", version=1, text=text),
            )
        )
        self._opened.add(uri)

    def close_document(self, path: str | Path) -> None:
        """send `textDocument/didClose` for a previously opened file."""
        uri = self.workspace.root.joinpath(path).as_uri()
        if uri not in self._opened:
            return

        self._client.text_document_did_close(
            types.DidCloseTextDocumentParams(text_document=types.TextDocumentIdentifier(uri=uri))
        )
        self._opened.discard(uri)

    async def wait(self) -> None:
        """wait until the server process exits."""
        _ = await self._client.exited.wait()

    async def stop(self) -> None:
        """
        shut the server down and end the session.

        the resolution cache is cleared with the session.
        """
        if self._started:
            try:
                _ = await self._client.shutdown_async(None)
                self._client.exit(None)
            except (ConnectionError, RuntimeError, asyncio.TimeoutError) as exc:
                logger.debug("error during server shutdown: %s", exc)

        await self._client.stop()
        self._started = False
        self._opened.clear()
        self.resolver.context.clear()
