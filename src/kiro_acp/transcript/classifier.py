"""Line classification for kiro-cli chat transcripts.

kiro-cli prints a human-oriented transcript. These rules recover structure
from it line by line, with the open/closed state of the current tool call
as the only memory:

    no tool open:  tool-start | thought | prose
    tool open:     tool-start (closes the open call) | tool-complete | tool-output
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from kiro_acp.config.schema import DEFAULT_THOUGHT_PREFIXES

TOOL_START_RE = re.compile(
    r"^I will run the following command:\s*(.+?)\s*\(using tool:\s*([^)]+)\)\s*$"
)
TOOL_DONE_RE = re.compile(r"- Completed in ")

PROMPT_MARKER = "> "

# Lines worth keeping from the preamble in marker mode
PREAMBLE_ALLOW = (
    TOOL_START_RE,
    re.compile(r"^\s*I will run\b"),
    re.compile(r"- (?:Completed|Failed) in "),
    re.compile(r"^\s*[✓✔✗✘⚠❗]"),
    re.compile(r"^\s*(?:error|warning)\b", re.IGNORECASE),
)

NEWLINE_RE = re.compile(r"\r\n|\r|\n")


class LineKind(Enum):
    """What a single transcript line represents."""

    TOOL_START = "tool_start"
    TOOL_OUTPUT = "tool_output"
    TOOL_COMPLETE = "tool_complete"
    THOUGHT = "thought"
    PROSE = "prose"


@dataclass(frozen=True, slots=True)
class LineClassification:
    """Result of classifying one line. Tool starts carry command and tool name."""

    kind: LineKind
    line: str
    command: str | None = None
    tool_name: str | None = None


def classify_line(
    line: str,
    tool_open: bool,
    thought_prefixes: Sequence[str] = DEFAULT_THOUGHT_PREFIXES,
) -> LineClassification:
    """Classify ``line`` given whether a tool call is currently open."""
    match = TOOL_START_RE.match(line)
    if match:
        return LineClassification(
            LineKind.TOOL_START,
            line,
            command=match.group(1).strip(),
            tool_name=match.group(2).strip(),
        )

    if tool_open:
        if TOOL_DONE_RE.search(line):
            return LineClassification(LineKind.TOOL_COMPLETE, line)
        return LineClassification(LineKind.TOOL_OUTPUT, line)

    if any(line.startswith(prefix) for prefix in thought_prefixes):
        return LineClassification(LineKind.THOUGHT, line)

    return LineClassification(LineKind.PROSE, line)


def is_preamble_keeper(line: str) -> bool:
    """True for preamble lines the marker strategy forwards."""
    return any(pattern.search(line) for pattern in PREAMBLE_ALLOW)


class LineSplitter:
    """Splits a text stream into lines on CR, LF and CRLF.

    The unterminated tail is held until a newline arrives or ``flush()``.
    A trailing CR is also held, so a CRLF split across two pushes yields
    one line break rather than two.
    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def push(self, text: str) -> list[str]:
        data = self._pending + text
        hold_cr = data.endswith("\r")
        if hold_cr:
            data = data[:-1]
        parts = NEWLINE_RE.split(data)
        self._pending = parts.pop() + ("\r" if hold_cr else "")
        return parts

    def flush(self) -> list[str]:
        data, self._pending = self._pending, ""
        if not data:
            return []
        lines = NEWLINE_RE.split(data)
        # A held CR terminated the last line; nothing follows it
        if lines[-1] == "":
            lines.pop()
        return lines


def split_lines(chunks: Iterable[str]) -> Iterator[str]:
    """Split an iterable of chunks into complete lines."""
    splitter = LineSplitter()
    for chunk in chunks:
        yield from splitter.push(chunk)
    yield from splitter.flush()
