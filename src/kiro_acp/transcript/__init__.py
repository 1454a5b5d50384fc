"""Transcript translation: raw kiro-cli output to typed events.

Raw chunks flow through ChunkBuffer (ANSI stripping with a carried tail),
then a translator strategy that classifies lines and tracks tool calls.
"""

from kiro_acp.transcript.ansi import strip_ansi
from kiro_acp.transcript.buffer import ChunkBuffer, StreamState
from kiro_acp.transcript.classifier import (
    LineClassification,
    LineKind,
    LineSplitter,
    classify_line,
)
from kiro_acp.transcript.events import (
    EventKind,
    ToolCallSnapshot,
    ToolCallStatus,
    TranscriptEvent,
)
from kiro_acp.transcript.tool_calls import ToolCallTracker
from kiro_acp.transcript.translator import (
    ClassifyingTranslator,
    MarkerTranslator,
    TranscriptPipeline,
    create_translator,
)

__all__ = [
    "strip_ansi",
    "ChunkBuffer",
    "StreamState",
    "LineClassification",
    "LineKind",
    "LineSplitter",
    "classify_line",
    "EventKind",
    "ToolCallSnapshot",
    "ToolCallStatus",
    "TranscriptEvent",
    "ToolCallTracker",
    "ClassifyingTranslator",
    "MarkerTranslator",
    "TranscriptPipeline",
    "create_translator",
]
