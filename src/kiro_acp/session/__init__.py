"""Session state, prompt assembly and ordered update delivery."""

from kiro_acp.session.prompt import prompt_to_text
from kiro_acp.session.registry import (
    DefaultAgentSync,
    Session,
    SessionNotFoundError,
    SessionRegistry,
)
from kiro_acp.session.sequencer import UpdateSequencer

__all__ = [
    "DefaultAgentSync",
    "Session",
    "SessionNotFoundError",
    "SessionRegistry",
    "UpdateSequencer",
    "prompt_to_text",
]
