"""Streaming translation of chat output into transcript events.

Two strategies are available:

- ``classify`` (default): lines before the ``> `` answer marker are held
  back and dropped once the answer starts. Every later line is classified
  and tool calls get an explicit lifecycle (start, output updates,
  completed/failed).
- ``marker``: output before kiro's ``> `` answer marker is preamble and only
  allow-listed lines survive; everything after the marker is forwarded as
  plain text, unclassified.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from kiro_acp.config.schema import DEFAULT_THOUGHT_PREFIXES
from kiro_acp.logging import TRACE, get_logger
from kiro_acp.transcript.buffer import DEFAULT_CARRY_CHARS, ChunkBuffer, StreamState
from kiro_acp.transcript.classifier import (
    NEWLINE_RE,
    PROMPT_MARKER,
    TOOL_START_RE,
    LineKind,
    LineSplitter,
    classify_line,
    is_preamble_keeper,
)
from kiro_acp.transcript.events import TranscriptEvent
from kiro_acp.transcript.tool_calls import ToolCallTracker

log = get_logger("transcript")


class Translator(Protocol):
    """Consumes normalized text and produces events."""

    def feed(self, text: str) -> list[TranscriptEvent]:
        """Translate newly normalized text."""
        ...

    def finish(self, exit_code: int | None) -> list[TranscriptEvent]:
        """Flush held text and close anything still open."""
        ...


class ClassifyingTranslator:
    """Line classification with explicit tool-call lifecycle tracking."""

    def __init__(
        self,
        state: StreamState | None = None,
        thought_prefixes: Sequence[str] = DEFAULT_THOUGHT_PREFIXES,
    ) -> None:
        self.state = state or StreamState()
        self.thought_prefixes = tuple(thought_prefixes)
        self._splitter = LineSplitter()
        self._tool: ToolCallTracker | None = None
        self._preamble: list[str] = []

    @property
    def open_tool(self) -> ToolCallTracker | None:
        return self._tool

    def feed(self, text: str) -> list[TranscriptEvent]:
        if not text:
            return []
        self.state.advance(self.state.cursor + len(text))
        events: list[TranscriptEvent] = []
        for line in self._splitter.push(text):
            events.extend(self._handle_line(line))
        return events

    def finish(self, exit_code: int | None) -> list[TranscriptEvent]:
        events: list[TranscriptEvent] = []
        for line in self._splitter.flush():
            events.extend(self._handle_line(line))
        if not self.state.answer_started and self._preamble:
            # No answer marker ever came: the held lines are the answer
            held, self._preamble = self._preamble, []
            self.state.answer_started = True
            for line in held:
                events.extend(self._translate_line(line))
        if self._tool is not None:
            log.debug(
                "Tool call %s still open at exit (code=%s)", self._tool.tool_call_id, exit_code
            )
            events.extend(self._close_tool(success=exit_code == 0))
        return events

    def _close_tool(self, success: bool) -> list[TranscriptEvent]:
        tool, self._tool = self._tool, None
        if tool is None:
            return []
        event = tool.finish(success)
        return [event] if event else []

    def _handle_line(self, line: str) -> list[TranscriptEvent]:
        if not self.state.answer_started:
            if line.startswith(PROMPT_MARKER):
                self._start_answer()
                line = line[len(PROMPT_MARKER):]
            elif TOOL_START_RE.match(line):
                self._start_answer()
            else:
                self._preamble.append(line)
                return []
        return self._translate_line(line)

    def _start_answer(self) -> None:
        self.state.answer_started = True
        for line in self._preamble:
            log.log(TRACE, "preamble dropped: %r", line)
        self._preamble = []

    def _translate_line(self, line: str) -> list[TranscriptEvent]:
        result = classify_line(line, self._tool is not None, self.thought_prefixes)
        log.log(TRACE, "%s: %r", result.kind.value, line)

        match result.kind:
            case LineKind.TOOL_START:
                # The previous call ended without a completion marker
                events = self._close_tool(success=True)
                self._tool = ToolCallTracker(result.command or "", result.tool_name or "")
                start = self._tool.announce()
                if start:
                    events.append(start)
                return events

            case LineKind.TOOL_COMPLETE:
                return self._close_tool(success=True)

            case LineKind.TOOL_OUTPUT:
                if self._tool is None:
                    raise ValueError("Tool output without an open tool call")
                update = self._tool.append(line)
                return [update] if update else []

            case LineKind.THOUGHT:
                return [TranscriptEvent.thought(f"{line}\n")]

            case _:
                return [TranscriptEvent.message(f"{line}\n")]


class MarkerTranslator:
    """Preamble filtering followed by verbatim passthrough after ``> ``."""

    def __init__(self, state: StreamState | None = None) -> None:
        self.state = state or StreamState()
        self._forwarded = False

    def feed(self, text: str) -> list[TranscriptEvent]:
        events: list[TranscriptEvent] = []
        state = self.state
        if not state.answer_started:
            marker = self._find_marker()
            if marker == -1:
                end = max(state.clean.rfind("\n"), state.clean.rfind("\r")) + 1
                if end > state.cursor:
                    events.extend(self._filter_preamble(state.clean[state.cursor:end]))
                    state.advance(end)
                return events
            events.extend(self._filter_preamble(state.clean[state.cursor:marker]))
            state.answer_started = True
            state.advance(marker + len(PROMPT_MARKER))

        events.extend(self._passthrough())
        return events

    def finish(self, exit_code: int | None) -> list[TranscriptEvent]:
        state = self.state
        if state.answer_started:
            return self._passthrough()

        events = self._filter_preamble(state.clean[state.cursor:], final=True)
        state.advance(len(state.clean))
        if not self._forwarded:
            # No marker and nothing kept: forward everything rather than lose it
            cleaned = state.clean.rstrip()
            if cleaned.strip():
                self._forwarded = True
                return [TranscriptEvent.message(cleaned)]
        return events

    def _find_marker(self) -> int:
        clean = self.state.clean
        if clean.startswith(PROMPT_MARKER):
            return 0
        # The newline before the marker may already be consumed
        idx = clean.find("\n" + PROMPT_MARKER, max(0, self.state.cursor - 1))
        return idx + 1 if idx != -1 else -1

    def _filter_preamble(self, text: str, final: bool = False) -> list[TranscriptEvent]:
        if not text:
            return []
        lines = NEWLINE_RE.split(text)
        if not final:
            # Text ends at a newline: the last element is empty
            lines.pop()
        events = []
        for line in lines:
            if is_preamble_keeper(line):
                events.append(TranscriptEvent.message(f"{line}\n"))
            else:
                log.log(TRACE, "preamble dropped: %r", line)
        if events:
            self._forwarded = True
        return events

    def _passthrough(self) -> list[TranscriptEvent]:
        state = self.state
        text = state.clean[state.cursor:]
        state.advance(len(state.clean))
        if not text:
            return []
        self._forwarded = True
        return [TranscriptEvent.message(text)]


def create_translator(
    strategy: str,
    state: StreamState | None = None,
    thought_prefixes: Sequence[str] = DEFAULT_THOUGHT_PREFIXES,
) -> ClassifyingTranslator | MarkerTranslator:
    """Build the translator for a strategy name."""
    if strategy == "marker":
        return MarkerTranslator(state)
    if strategy != "classify":
        raise ValueError(f"Unknown transcript strategy: {strategy}")
    return ClassifyingTranslator(state, thought_prefixes)


class TranscriptPipeline:
    """ChunkBuffer plus translator: raw chunks in, events out."""

    def __init__(
        self,
        strategy: str = "classify",
        carry_chars: int = DEFAULT_CARRY_CHARS,
        thought_prefixes: Sequence[str] = DEFAULT_THOUGHT_PREFIXES,
    ) -> None:
        self.buffer = ChunkBuffer(carry_chars)
        self.translator = create_translator(strategy, self.buffer.state, thought_prefixes)

    @property
    def state(self) -> StreamState:
        return self.buffer.state

    def push(self, chunk: str | bytes) -> list[TranscriptEvent]:
        text = self.buffer.push(chunk)
        return self.translator.feed(text) if text else []

    def close(self, exit_code: int | None) -> list[TranscriptEvent]:
        text = self.buffer.flush()
        events = self.translator.feed(text) if text else []
        events.extend(self.translator.finish(exit_code))
        return events
