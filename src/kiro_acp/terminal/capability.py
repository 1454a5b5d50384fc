"""Check that kiro-cli is installed and logged in before running a turn."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

from kiro_acp.logging import get_logger
from kiro_acp.terminal.kiro_cli import exec_capture

log = get_logger("kiro")

INSTALL_HINT = (
    "Could not find `kiro-cli`. Install the Kiro CLI with "
    "`curl -fsSL https://cli.kiro.dev/install | bash`, or set the "
    "`KIRO_ACP_KIRO_CLI` environment variable to the path of your "
    "`kiro-cli` before starting the editor."
)
LOGIN_HINT = (
    "Kiro CLI does not appear to be logged in. Run `kiro-cli login` in an "
    "external terminal (for example `kiro-cli login --license free --social "
    "google --use-device-flow`), then come back and try again."
)
INVALID_LOGIN_HINT = (
    "Kiro CLI login state is unusable. Run `kiro-cli login` in an external "
    "terminal to log in, then try again."
)
MALFORMED_HINT = (
    "Could not parse the output of `kiro-cli whoami`. Make sure the Kiro CLI "
    "is installed and logged in (`kiro-cli login`), then try again."
)


class NotReadyReason(Enum):
    NOT_FOUND = "not_found"
    NOT_AUTHENTICATED = "not_authenticated"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class Readiness:
    """Result of the readiness probe. ``message`` is user-facing."""

    ok: bool
    message: str = ""
    reason: NotReadyReason | None = None
    account_type: str | None = None


async def check_ready(kiro_cli: str, cwd: str) -> Readiness:
    """Probe ``kiro-cli whoami --format json``.

    Ready means the command exits 0 and prints a JSON object with a
    non-empty string ``accountType``.
    """
    result = await exec_capture(kiro_cli, ["whoami", "--format", "json"], cwd)

    if result.not_found:
        return Readiness(False, INSTALL_HINT, NotReadyReason.NOT_FOUND)

    if result.exit_code != 0:
        log.info("whoami failed: %r %s", result, result.stderr.strip())
        return Readiness(False, LOGIN_HINT, NotReadyReason.NOT_AUTHENTICATED)

    try:
        parsed = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        log.warning("Unparseable whoami output: %s", e)
        return Readiness(False, MALFORMED_HINT, NotReadyReason.MALFORMED)

    account_type = parsed.get("accountType") if isinstance(parsed, dict) else None
    if not isinstance(account_type, str) or not account_type:
        return Readiness(False, INVALID_LOGIN_HINT, NotReadyReason.NOT_AUTHENTICATED)

    log.debug("kiro-cli ready (accountType=%s)", account_type)
    return Readiness(True, account_type=account_type)
