"""Read the host editor's settings to learn its default mode for this agent.

Zed stores agent server settings in ``settings.json``, which allows comments
and trailing commas. Only ``agent_servers.<id>.default_mode`` is read.
"""

from __future__ import annotations

import json
import os
import re
import sys
from pathlib import Path
from typing import Any

from kiro_acp.logging import get_logger

log = get_logger("config")

HOST_AGENT_SERVER_ID = "kiro-cli"

# Strings first so comment markers inside them are kept
_COMMENT_RE = re.compile(
    r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')|(//[^\n]*|/\*.*?\*/)""",
    re.DOTALL,
)
_TRAILING_COMMA_RE = re.compile(
    r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')|,(\s*[}\]])""",
    re.DOTALL,
)


def host_settings_path() -> Path:
    """Locate Zed's settings.json for the current platform."""
    home = Path.home()

    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / "Zed" / "settings.json"
        return home / "AppData" / "Roaming" / "Zed" / "settings.json"

    if sys.platform.startswith(("linux", "freebsd")):
        base = (
            os.environ.get("FLATPAK_XDG_CONFIG_HOME")
            or os.environ.get("XDG_CONFIG_HOME")
            or str(home / ".config")
        )
        return Path(base) / "zed" / "settings.json"

    return home / ".config" / "zed" / "settings.json"


def _strip_comments(source: str) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        # Line comments keep their newline so line numbers in errors survive
        return "\n" if match.group(2).startswith("//") else ""

    return _COMMENT_RE.sub(replace, source)


def _strip_trailing_commas(source: str) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return match.group(2)

    return _TRAILING_COMMA_RE.sub(replace, source)


def parse_loose_json(source: str) -> Any:
    """Parse JSON that may contain comments and trailing commas.

    Raises:
        ValueError: If the cleaned text is still not valid JSON.
    """
    return json.loads(_strip_trailing_commas(_strip_comments(source)))


def host_default_mode(
    server_id: str = HOST_AGENT_SERVER_ID,
    path: Path | None = None,
) -> str | None:
    """Return the host's configured default mode for ``server_id``, if any."""
    settings_path = path or host_settings_path()
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except OSError:
        return None

    try:
        parsed = parse_loose_json(raw)
    except ValueError as e:
        log.debug("Could not parse %s: %s", settings_path, e)
        return None

    if not isinstance(parsed, dict):
        return None
    servers = parsed.get("agent_servers")
    if not isinstance(servers, dict):
        return None
    entry = servers.get(server_id)
    if not isinstance(entry, dict):
        return None
    default_mode = entry.get("default_mode")
    if isinstance(default_mode, str) and default_mode:
        return default_mode
    return None
