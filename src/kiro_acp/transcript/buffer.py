"""Chunk-boundary-safe accumulation of subprocess output.

Output arrives in arbitrarily sized reads. A colour code or a multi-byte
character can straddle two reads, so the buffer keeps a short tail of raw
text back and only normalizes what is safely complete.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass

from kiro_acp.transcript.ansi import safe_cut, strip_ansi

DEFAULT_CARRY_CHARS = 64


@dataclass(slots=True)
class StreamState:
    """Per-stream cursor over one turn's output.

    Attributes:
        raw: Everything received so far, escape codes included.
        carry: Received but not yet normalized tail.
        clean: Normalized text produced so far.
        answer_started: Output moved from preamble to the answer body.
        cursor: Index into ``clean`` already turned into events.
    """

    raw: str = ""
    carry: str = ""
    clean: str = ""
    answer_started: bool = False
    cursor: int = 0

    def advance(self, index: int) -> None:
        """Move the cursor forward. Never moves backwards."""
        if index > self.cursor:
            self.cursor = index


class ChunkBuffer:
    """Turns raw reads into ANSI-free text without tearing escape codes.

    ``push()`` returns the newly normalized text, which lags the input by up
    to ``carry_chars`` characters. ``flush()`` returns the rest.
    """

    def __init__(self, carry_chars: int = DEFAULT_CARRY_CHARS) -> None:
        self.carry_chars = max(0, carry_chars)
        self.state = StreamState()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._closed = False

    def push(self, chunk: str | bytes) -> str:
        """Accept a raw chunk and return newly normalized text."""
        return self._process(chunk, final=False)

    def flush(self) -> str:
        """Normalize whatever is still carried. Further pushes are ignored."""
        if self._closed:
            return ""
        text = self._process(b"", final=True)
        self._closed = True
        return text

    def _process(self, chunk: str | bytes, final: bool) -> str:
        if self._closed:
            return ""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk, final=final)

        state = self.state
        state.raw += chunk
        state.carry += chunk

        if final:
            upto = len(state.carry)
        else:
            upto = max(0, len(state.carry) - self.carry_chars)
            upto = safe_cut(state.carry, upto)

        ready, state.carry = state.carry[:upto], state.carry[upto:]
        if not ready:
            return ""
        cleaned = strip_ansi(ready)
        state.clean += cleaned
        return cleaned
