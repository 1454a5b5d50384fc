"""Logging configuration for kiro-acp.

Uses Python's standard logging module with support for:
- File logging via config or KIRO_ACP_LOG environment variable
- Custom TRACE and VERBOSE levels
- Stderr fallback when no log file is configured and stderr is a console
- Session-prefixed loggers for per-turn messages

stdout is never used: it carries the ACP JSON-RPC stream.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kiro_acp.config.schema import LoggingConfig

# Custom log levels
TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

# Module-level logger
logger = logging.getLogger("kiro_acp")

_initialized = False

_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def parse_level(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name such as "debug" or "trace" to a logging level."""
    if not name:
        return default
    return _LEVEL_MAP.get(name.upper(), default)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Initialize logging based on configuration.

    Call this once at startup. Subsequent calls are no-ops.

    Args:
        config: Optional LoggingConfig with level and file settings.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = parse_level(config.level if config else None)
    logger.setLevel(log_level)

    # Format: HH:MM:SS level: message
    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S"
    )

    # Config already includes the env var via the loader
    log_path = config.file if config and config.file else os.environ.get("KIRO_ACP_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[kiro-acp] Failed to open log file: {e}", file=sys.stderr)
                _add_stderr_handler(formatter, log_level)
    elif sys.stderr.isatty():
        # Only log to stderr if it's a real console, not pipes from the editor
        _add_stderr_handler(formatter, log_level)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    """Add a stderr handler to the logger."""
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for a child logger (e.g., "acp", "transcript").
              If None, returns the root kiro_acp logger.

    Returns:
        A configured logger instance.
    """
    if name:
        return logger.getChild(name)
    return logger


class SessionLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with a short session id.

    Turns of different sessions run concurrently and share one log file.
    """

    def process(
        self, msg: object, kwargs: MutableMapping[str, Any]
    ) -> tuple[object, MutableMapping[str, Any]]:
        session_id = str(self.extra["session_id"]) if self.extra else "-"
        return f"[{session_id[:8]}] {msg}", kwargs


def session_logger(session_id: str, name: str = "acp") -> SessionLogAdapter:
    """Get a child logger whose messages carry ``session_id``."""
    return SessionLogAdapter(get_logger(name), {"session_id": session_id})
