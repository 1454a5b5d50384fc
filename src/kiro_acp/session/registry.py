"""Per-conversation state and the registry that owns it."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from acp.schema import SessionModelState, SessionModeState

from kiro_acp.config.schema import TranscriptConfig

if TYPE_CHECKING:
    from kiro_acp.session.sequencer import UpdateSequencer
    from kiro_acp.terminal.kiro_cli import ChatProcess


class SessionNotFoundError(LookupError):
    """Raised when a session id is not in the registry."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


@dataclass
class DefaultAgentSync:
    """Outcome of the last attempt to make kiro's default agent match the host."""

    last_attempt: str | None = None
    last_ok: bool | None = None


@dataclass
class Session:
    """State of one ACP conversation backed by kiro-cli.

    ``child`` and ``sequencer`` are only set while a turn is in flight.
    """

    cwd: str
    kiro_cli: str
    modes: SessionModeState
    models: SessionModelState
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trust_all_tools: bool = False
    trust_tools: str | None = None
    wrap: str = "auto"
    verbose: bool = True
    transcript: TranscriptConfig = field(default_factory=TranscriptConfig)

    # Lifecycle flags
    started: bool = False
    cancelled: bool = False
    preflight_ok: bool = False

    # What kiro-cli itself reports as its default agent
    kiro_default_agent: str | None = None
    default_agent_sync: DefaultAgentSync = field(default_factory=DefaultAgentSync)

    child: ChatProcess | None = None
    sequencer: UpdateSequencer | None = None

    @property
    def current_mode_id(self) -> str:
        return self.modes.current_mode_id

    @property
    def current_model_id(self) -> str:
        return self.models.current_model_id

    @property
    def busy(self) -> bool:
        return self.child is not None

    def has_mode(self, mode_id: str) -> bool:
        return any(m.id == mode_id for m in self.modes.available_modes)

    def has_model(self, model_id: str) -> bool:
        return any(m.model_id == model_id for m in self.models.available_models)


class SessionRegistry:
    """Maps session ids to Session objects for the life of the process.

    There is no session-close message in the protocol, so sessions are only
    dropped when the process exits.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def create(self, **kwargs: Any) -> Session:
        """Build a Session from keyword fields and register it."""
        return self.add(Session(**kwargs))

    def add(self, session: Session) -> Session:
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
