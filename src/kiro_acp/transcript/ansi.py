"""Terminal escape sequence removal."""

from __future__ import annotations

import re

ESC = "\x1b"
CSI = "\x9b"

# Introducer, optional private/intermediate chars, numeric params, final byte
ANSI_PATTERN = re.compile(
    r"[\x1b\x9b][\[()#;?]*(?:[0-9]{1,4}(?:;[0-9]{0,4})*)?[0-9A-ORZcf-nqry=><]"
)

# Everything up to, but not including, the final byte
_SEQUENCE_BODY = re.compile(r"[\x1b\x9b][\[()#;?]*[0-9;]*")

# Introducers further back than this are never held for more input
MAX_SEQUENCE_LENGTH = 32


def strip_ansi(text: str) -> str:
    """Remove colour, style and cursor escape sequences from ``text``."""
    if ESC not in text and CSI not in text:
        return text
    return ANSI_PATTERN.sub("", text)


def safe_cut(text: str, upto: int) -> int:
    """Move ``upto`` back so it does not split an escape sequence.

    Looks at the last introducer before ``upto``. If its sequence runs past
    ``upto``, or past the end of ``text`` so that it may still be growing,
    the cut moves to the introducer.
    """
    window_start = max(0, upto - MAX_SEQUENCE_LENGTH)
    start = max(text.rfind(ESC, window_start, upto), text.rfind(CSI, window_start, upto))
    if start == -1:
        return upto
    body = _SEQUENCE_BODY.match(text, start)
    body_end = body.end() if body else start + 1
    # The final byte sits at body_end
    if body_end >= len(text) or body_end + 1 > upto:
        return start
    return upto
