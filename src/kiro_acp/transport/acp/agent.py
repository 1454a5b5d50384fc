"""ACP Agent implementation backed by kiro-cli.

Each prompt turn runs ``kiro-cli chat --no-interactive`` as a subprocess
and translates its terminal transcript into ACP session updates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

import acp
from acp.schema import (
    AgentCapabilities,
    AuthMethod,
    ClientCapabilities,
    CurrentModeUpdate,
    Implementation,
    ModelInfo,
    PromptCapabilities,
    SessionCapabilities,
    SessionMode,
    SessionModelState,
    SessionModeState,
    SetSessionModelResponse,
    SetSessionModeResponse,
)

from kiro_acp import __version__
from kiro_acp.config import host_default_mode, load_config
from kiro_acp.logging import get_logger, session_logger
from kiro_acp.session import (
    DefaultAgentSync,
    Session,
    SessionNotFoundError,
    SessionRegistry,
    UpdateSequencer,
    prompt_to_text,
)
from kiro_acp.terminal import (
    AgentListing,
    ChatOptions,
    check_ready,
    list_agents,
    resolve_kiro_cli,
    set_default_agent,
    start_chat,
)
from kiro_acp.terminal.capability import INSTALL_HINT
from kiro_acp.transcript import EventKind, TranscriptEvent, TranscriptPipeline

log = get_logger("acp")

if TYPE_CHECKING:
    from acp.interfaces import Client

AUTH_METHOD_ID = "kiro-cli-login"
LOGIN_MESSAGE = "Run `kiro-cli login` in an external terminal to log in, then try again."

DEFAULT_MODE_ID = "default"
DEFAULT_MODEL_ID = "auto"

DEFAULT_MODELS = [
    ModelInfo(
        model_id="auto",
        name="Auto",
        description="Models chosen by task for optimal usage and consistent quality",
    ),
    ModelInfo(
        model_id="claude-sonnet-4.5",
        name="Claude Sonnet 4.5",
        description="The latest Claude Sonnet model",
    ),
    ModelInfo(
        model_id="claude-sonnet-4",
        name="Claude Sonnet 4",
        description="Hybrid reasoning and coding for regular use",
    ),
    ModelInfo(
        model_id="claude-haiku-4.5",
        name="Claude Haiku 4.5",
        description="The latest Claude Haiku model",
    ),
    ModelInfo(
        model_id="claude-opus-4.5",
        name="Claude Opus 4.5",
        description="The latest Claude Opus model",
    ),
]

# How much of kiro-cli's stderr is attached to a failed turn
STDERR_TAIL_CHARS = 2000


def _exit_code_text(code: int | None) -> str:
    return "?" if code is None else str(code)


def to_acp_update(event: TranscriptEvent) -> Any:
    """Convert a transcript event into an ACP session update."""
    match event.kind:
        case EventKind.TEXT:
            return acp.update_agent_message_text(event.text)

        case EventKind.THOUGHT:
            return acp.update_agent_thought_text(event.text)

        case EventKind.TOOL_CALL_START:
            call = event.call
            return acp.start_tool_call(
                tool_call_id=call.tool_call_id,
                title=call.title,
                kind=call.kind,
                status=call.status.value,
                raw_input=call.raw_input,
            )

        case EventKind.TOOL_CALL_UPDATE:
            call = event.call
            output = call.output_text
            if not output:
                return acp.update_tool_call(
                    tool_call_id=call.tool_call_id,
                    status=call.status.value,
                )
            return acp.update_tool_call(
                tool_call_id=call.tool_call_id,
                status=call.status.value,
                content=[acp.tool_content(acp.text_block(output))],
                raw_output=output,
            )

    raise ValueError(f"Unhandled event kind: {event.kind}")


class KiroAcpAgent:
    """ACP Agent that drives kiro-cli.

    Sessions live in an owned registry for the life of the process. Each
    prompt turn spawns one ``kiro-cli chat`` process; later turns of the
    same session pass ``--resume`` so kiro-cli continues its conversation.
    """

    def __init__(self) -> None:
        self._conn: Client | None = None
        self._sessions = SessionRegistry()
        self._background: set[asyncio.Task[Any]] = set()

    def on_connect(self, conn: Client) -> None:
        """Called when a client connects."""
        self._conn = conn

    # --- Helpers ---

    def _get_session(self, session_id: str) -> Session:
        try:
            return self._sessions.get(session_id)
        except SessionNotFoundError as e:
            raise acp.RequestError(
                code=-32602,
                message=str(e),
                data={"sessionId": session_id},
            ) from e

    async def _deliver(self, session_id: str, update: Any) -> None:
        if self._conn is not None:
            await self._conn.session_update(session_id, update)

    def _spawn_background(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _resolve_mode(self, requested: str | None, listing: AgentListing) -> str:
        """Pick the starting mode.

        An explicit request wins unless it is ``default``; then the host's
        configured default, kiro's own default, the first listed agent.
        """
        if requested and requested != DEFAULT_MODE_ID:
            return requested
        return (
            host_default_mode()
            or listing.default_agent
            or (listing.agents[0].id if listing.agents else None)
            or DEFAULT_MODE_ID
        )

    def _build_modes(self, listing: AgentListing, current: str) -> SessionModeState:
        available = [
            SessionMode(id=a.id, name=a.name, description=a.description)
            for a in listing.agents
        ] or [SessionMode(id=DEFAULT_MODE_ID, name=DEFAULT_MODE_ID)]

        if not any(m.id == current for m in available):
            available.append(SessionMode(id=current, name=current))

        return SessionModeState(available_modes=available, current_mode_id=current)

    def _build_models(self, configured: str | None) -> SessionModelState:
        current = configured or DEFAULT_MODEL_ID
        available = list(DEFAULT_MODELS)
        if not any(m.model_id == current for m in available):
            available.append(ModelInfo(model_id=current, name=current))
        return SessionModelState(available_models=available, current_model_id=current)

    def _chat_options(self, session: Session, text: str, resume: bool) -> ChatOptions:
        return ChatOptions(
            kiro_cli=session.kiro_cli,
            cwd=session.cwd,
            input=text,
            agent=session.current_mode_id,
            model=session.current_model_id,
            resume=resume,
            verbose=session.verbose,
            trust_all_tools=session.trust_all_tools,
            trust_tools=session.trust_tools,
            wrap=session.wrap,
        )

    async def _sync_default_agent(self, session: Session) -> None:
        """Make kiro's default agent match the host's configured default mode.

        Best effort. A value that failed once is not retried in this session.
        """
        desired = host_default_mode()
        if not desired or desired == DEFAULT_MODE_ID:
            return

        memo = session.default_agent_sync
        if memo.last_attempt == desired and memo.last_ok is False:
            return
        if session.kiro_default_agent == desired:
            return

        ok = await set_default_agent(session.kiro_cli, desired, session.cwd)
        session.default_agent_sync = DefaultAgentSync(last_attempt=desired, last_ok=ok)
        if ok:
            log.info("Set kiro default agent to %s", desired)
            session.kiro_default_agent = desired

    # --- Protocol methods ---

    async def initialize(
        self,
        protocol_version: int,
        client_capabilities: ClientCapabilities | None = None,
        client_info: Implementation | None = None,
        **kwargs: Any,
    ) -> acp.InitializeResponse:
        """Handle initialization request from client."""
        log.info(
            "Client connected: %s (protocol %s)",
            client_info.name if client_info else "unknown",
            protocol_version,
        )
        return acp.InitializeResponse(
            protocol_version=acp.PROTOCOL_VERSION,
            agent_info=Implementation(
                name="kiro-acp",
                title="Kiro CLI",
                version=__version__,
            ),
            agent_capabilities=AgentCapabilities(
                prompt_capabilities=PromptCapabilities(
                    image=False,
                    audio=False,
                    embedded_context=True,
                ),
                session_capabilities=SessionCapabilities(),
            ),
            auth_methods=[
                AuthMethod(
                    id=AUTH_METHOD_ID,
                    name="Log in with Kiro CLI",
                    description="Run `kiro-cli login` in a terminal to log in",
                )
            ],
        )

    async def authenticate(
        self,
        method_id: str,
        **kwargs: Any,
    ) -> acp.AuthenticateResponse | None:
        """Login happens outside the protocol, in a terminal."""
        raise acp.RequestError(code=-32603, message=LOGIN_MESSAGE)

    async def new_session(
        self,
        cwd: str,
        mcp_servers: list[Any] | None = None,
        **kwargs: Any,
    ) -> acp.NewSessionResponse:
        """Create a new session."""
        config = load_config(cwd=cwd)
        kiro_cli = resolve_kiro_cli(config.kiro.cli)

        listing = await list_agents(kiro_cli, cwd)
        current_mode = self._resolve_mode(config.kiro.agent, listing)
        modes = self._build_modes(listing, current_mode)
        models = self._build_models(config.kiro.model)

        session = self._sessions.create(
            cwd=cwd,
            kiro_cli=kiro_cli,
            modes=modes,
            models=models,
            trust_all_tools=config.kiro.trust_all_tools,
            trust_tools=config.kiro.trust_tools,
            wrap=config.kiro.wrap,
            verbose=config.kiro.verbose,
            transcript=config.transcript,
            kiro_default_agent=listing.default_agent,
        )

        mode_ids = [m.id for m in modes.available_modes]
        log.info("Created session %s (kiro-cli: %s)", session.session_id, kiro_cli)
        log.info("  Modes (%d): %s", len(mode_ids), ", ".join(mode_ids))
        log.info("  Mode: %s, model: %s", current_mode, models.current_model_id)

        return acp.NewSessionResponse(
            session_id=session.session_id,
            modes=modes,
            models=models,
        )

    async def set_session_mode(
        self,
        mode_id: str,
        session_id: str,
        **kwargs: Any,
    ) -> SetSessionModeResponse | None:
        """Switch the kiro agent used for later turns."""
        session = self._get_session(session_id)
        if not session.has_mode(mode_id):
            valid_modes = [m.id for m in session.modes.available_modes]
            raise acp.RequestError(
                code=-32602,
                message=f"Invalid mode: {mode_id}. Valid modes: {valid_modes}",
            )

        session.modes = session.modes.model_copy(update={"current_mode_id": mode_id})

        if host_default_mode() == mode_id and session.kiro_default_agent != mode_id:
            self._spawn_background(self._sync_default_agent(session))

        await self._deliver(
            session_id,
            CurrentModeUpdate(session_update="current_mode_update", current_mode_id=mode_id),
        )
        return SetSessionModeResponse()

    async def set_session_model(
        self,
        model_id: str,
        session_id: str,
        **kwargs: Any,
    ) -> SetSessionModelResponse | None:
        """Switch the model used for later turns."""
        session = self._get_session(session_id)
        if not session.has_model(model_id):
            valid_models = [m.model_id for m in session.models.available_models]
            raise acp.RequestError(
                code=-32602,
                message=f"Invalid model: {model_id}. Valid models: {valid_models}",
            )

        session.models = session.models.model_copy(update={"current_model_id": model_id})
        return SetSessionModelResponse()

    async def prompt(
        self,
        prompt: list[Any],
        session_id: str,
        **kwargs: Any,
    ) -> acp.PromptResponse:
        """Handle a prompt request.

        1. Checks once per session that kiro-cli is installed and logged in
        2. Runs ``kiro-cli chat`` with the flattened prompt
        3. Streams the translated transcript back via session_update
        4. Maps the exit status onto a stop reason
        """
        session = self._get_session(session_id)
        slog = session_logger(session_id)
        if session.busy:
            slog.warning("Prompt received while a turn is running")

        session.cancelled = False
        text = prompt_to_text(prompt)
        resume = session.started

        sequencer = UpdateSequencer(lambda update: self._deliver(session_id, update))
        session.sequencer = sequencer

        try:
            if not session.preflight_ok:
                readiness = await check_ready(session.kiro_cli, session.cwd)
                if not readiness.ok:
                    slog.info("kiro-cli not ready: %s", readiness.reason)
                    sequencer.send(acp.update_agent_message_text(readiness.message))
                    await sequencer.drain()
                    return acp.PromptResponse(stop_reason="end_turn")
                session.preflight_ok = True

            await self._sync_default_agent(session)
            if session.cancelled:
                slog.info("Turn cancelled before kiro-cli started")
                return acp.PromptResponse(stop_reason="cancelled")

            try:
                child = await start_chat(self._chat_options(session, text, resume))
            except FileNotFoundError:
                slog.error("kiro-cli not found at %s", session.kiro_cli)
                sequencer.send(acp.update_agent_message_text(INSTALL_HINT))
                await sequencer.drain()
                return acp.PromptResponse(stop_reason="end_turn")
            except OSError as e:
                raise acp.RequestError(
                    code=-32603,
                    message=f"Failed to start kiro-cli: {e}",
                ) from e

            session.child = child
            pipeline = TranscriptPipeline(
                strategy=session.transcript.strategy,
                carry_chars=session.transcript.carry_chars,
                thought_prefixes=session.transcript.thought_prefixes,
            )

            try:
                async for chunk in child.read_stdout():
                    for event in pipeline.push(chunk):
                        sequencer.send(to_acp_update(event))
                exit_code = await child.wait()
            finally:
                child.interrupt()
                session.child = None

            for event in pipeline.close(exit_code):
                sequencer.send(to_acp_update(event))
            await sequencer.drain()
        finally:
            session.sequencer = None

        slog.debug("kiro-cli exited with %s", exit_code)

        if session.cancelled:
            return acp.PromptResponse(stop_reason="cancelled")

        if exit_code != 0:
            code_text = _exit_code_text(exit_code)
            if not sequencer.sent_any:
                raise acp.RequestError(
                    code=-32603,
                    message=f"kiro-cli exited with code {code_text}",
                    data={"stderr": child.stderr_text[-STDERR_TAIL_CHARS:]},
                )
            sequencer.send(
                acp.update_agent_message_text(f"\n(kiro-cli exited with code {code_text})\n")
            )
            await sequencer.drain()

        session.started = True
        return acp.PromptResponse(stop_reason="end_turn")

    async def cancel(self, session_id: str, **kwargs: Any) -> None:
        """Cancel the running turn: stop updates and interrupt kiro-cli."""
        session = self._get_session(session_id)
        session.cancelled = True
        if session.sequencer is not None:
            session.sequencer.cancel()
        if session.child is not None:
            session_logger(session_id).info("Interrupting kiro-cli (pid %s)", session.child.pid)
            session.child.interrupt()

    async def ext_method(
        self,
        method: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Handle extension methods."""
        return {}

    async def ext_notification(
        self,
        method: str,
        params: dict[str, Any],
    ) -> None:
        """Handle extension notifications."""


def create_agent() -> KiroAcpAgent:
    """Create a new kiro-cli ACP agent."""
    return KiroAcpAgent()
