"""Transport-agnostic events produced from a chat transcript."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    """Types of events emitted while translating chat output."""

    TEXT = "text"
    THOUGHT = "thought"
    TOOL_CALL_START = "tool_call_start"
    TOOL_CALL_UPDATE = "tool_call_update"


class ToolCallStatus(Enum):
    """Lifecycle status of a tool call, as reported to the client."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not ToolCallStatus.IN_PROGRESS


@dataclass(frozen=True, slots=True)
class ToolCallSnapshot:
    """State of a tool call at the moment an event was emitted.

    ``output`` is always the full accumulated output, never a delta, so a
    lost intermediate update costs nothing.
    """

    tool_call_id: str
    kind: str  # "execute" or "other"
    title: str
    raw_input: str
    status: ToolCallStatus
    output: tuple[str, ...] = ()

    @property
    def output_text(self) -> str:
        return "\n".join(self.output)


@dataclass(frozen=True, slots=True)
class TranscriptEvent:
    """One protocol-worthy event.

    Text and thought events carry ``text``. Tool events carry ``tool_call``.
    """

    kind: EventKind
    text: str = ""
    tool_call: ToolCallSnapshot | None = None

    @classmethod
    def message(cls, text: str) -> TranscriptEvent:
        return cls(EventKind.TEXT, text=text)

    @classmethod
    def thought(cls, text: str) -> TranscriptEvent:
        return cls(EventKind.THOUGHT, text=text)

    @property
    def call(self) -> ToolCallSnapshot:
        """The tool call of a tool event. Raises ValueError for text events."""
        if self.tool_call is None:
            raise ValueError(f"{self.kind.value} event has no tool call")
        return self.tool_call
