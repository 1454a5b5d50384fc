"""Lifecycle tracking for one tool invocation seen in the transcript."""

from __future__ import annotations

import uuid

from kiro_acp.transcript.events import (
    EventKind,
    ToolCallSnapshot,
    ToolCallStatus,
    TranscriptEvent,
)

SHELL_TOOLS = frozenset({"shell", "execute_bash", "execute_cmd"})


def new_tool_call_id() -> str:
    """Generate a tool call id that is never reused within the process."""
    return f"tool-{uuid.uuid4()}"


class ToolCallTracker:
    """State machine for a single tool call.

    announced -> running -> completed | failed

    ``announce()`` sends the start event, ``append()`` re-sends the full
    output so far, ``finish()`` sends the terminal status. Once terminal,
    every method returns None and nothing more is emitted.
    """

    def __init__(self, command: str, tool_name: str, tool_call_id: str | None = None) -> None:
        self.tool_call_id = tool_call_id or new_tool_call_id()
        self.command = command
        self.tool_name = tool_name
        self.kind = "execute" if tool_name in SHELL_TOOLS else "other"
        self.title = f"{tool_name}: {command}" if tool_name else command
        self.output: list[str] = []
        self.status = ToolCallStatus.IN_PROGRESS
        self._announced = False

    @property
    def closed(self) -> bool:
        return self.status.terminal

    def snapshot(self) -> ToolCallSnapshot:
        return ToolCallSnapshot(
            tool_call_id=self.tool_call_id,
            kind=self.kind,
            title=self.title,
            raw_input=self.command,
            status=self.status,
            output=tuple(self.output),
        )

    def announce(self) -> TranscriptEvent | None:
        if self._announced or self.closed:
            return None
        self._announced = True
        return TranscriptEvent(EventKind.TOOL_CALL_START, tool_call=self.snapshot())

    def append(self, line: str) -> TranscriptEvent | None:
        if self.closed:
            return None
        self.output.append(line)
        return TranscriptEvent(EventKind.TOOL_CALL_UPDATE, tool_call=self.snapshot())

    def finish(self, success: bool = True) -> TranscriptEvent | None:
        if self.closed:
            return None
        self.status = ToolCallStatus.COMPLETED if success else ToolCallStatus.FAILED
        return TranscriptEvent(EventKind.TOOL_CALL_UPDATE, tool_call=self.snapshot())
