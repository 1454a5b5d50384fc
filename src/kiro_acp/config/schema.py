"""Configuration schema dataclasses for kiro-acp.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

WRAP_POLICIES = ("always", "never", "auto")
STRATEGIES = ("classify", "marker")

DEFAULT_THOUGHT_PREFIXES = [
    "Thought:",
    "Reasoning:",
    "Chain of Thought:",
    "Chain-of-thought:",
    "Scratchpad:",
]


@dataclass
class KiroConfig:
    """How the kiro-cli subprocess is located and invoked.

    Example config.yaml:
        kiro:
          cli: ~/.local/bin/kiro-cli
          agent: reviewer
          model: claude-sonnet-4.5
          trust_tools: "fs_read,fs_write"
          wrap: never
    """

    cli: str | None = None  # Path to kiro-cli; resolved from PATH if unset
    agent: str | None = None  # Preferred agent (ACP mode)
    model: str | None = None  # Preferred model; "auto" when unset
    trust_all_tools: bool = False
    trust_tools: str | None = None  # Comma separated allow-list
    wrap: str = "auto"  # "always", "never" or "auto"
    verbose: bool = True


@dataclass
class TranscriptConfig:
    """How chat output is turned into protocol updates."""

    strategy: str = "classify"  # "classify" or "marker"
    carry_chars: int = 64  # Tail held back before ANSI stripping
    thought_prefixes: list[str] = field(
        default_factory=lambda: list(DEFAULT_THOUGHT_PREFIXES)
    )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    kiro: KiroConfig = field(default_factory=KiroConfig)
    transcript: TranscriptConfig = field(default_factory=TranscriptConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept here
    extra: dict[str, Any] = field(default_factory=dict)
