"""kiro-cli agent profiles, exposed to the client as session modes."""

from __future__ import annotations

from dataclasses import dataclass, field

from kiro_acp.logging import get_logger
from kiro_acp.terminal.kiro_cli import exec_capture
from kiro_acp.transcript.ansi import strip_ansi

log = get_logger("kiro")

DEFAULT_MARKER = "*"


@dataclass(frozen=True, slots=True)
class AgentProfile:
    id: str
    name: str
    description: str | None = None


@dataclass
class AgentListing:
    """Parsed ``kiro-cli agent list`` output."""

    agents: list[AgentProfile] = field(default_factory=list)
    default_agent: str | None = None

    def __bool__(self) -> bool:
        return bool(self.agents)


def parse_agent_list(output: str) -> AgentListing:
    """Parse agent list output.

    One agent per line. A leading ``*`` marks kiro's default agent. The
    first token is the id, anything after it is the description.
    """
    listing = AgentListing()

    for raw_line in strip_ansi(output).splitlines():
        line = raw_line.strip()
        if not line:
            continue

        is_default = line.startswith(DEFAULT_MARKER)
        rest = line[1:].lstrip() if is_default else line
        tokens = rest.split()
        if not tokens:
            continue

        name, tail = tokens[0], tokens[1:]
        if is_default:
            listing.default_agent = name
        listing.agents.append(
            AgentProfile(id=name, name=name, description=" ".join(tail) or None)
        )

    return listing


async def list_agents(kiro_cli: str, cwd: str) -> AgentListing:
    """Run ``agent list``. kiro-cli prints part of the list on stderr."""
    result = await exec_capture(kiro_cli, ["agent", "list"], cwd)
    if result.error is not None:
        log.warning("Could not list kiro agents: %s", result.error)
        return AgentListing()
    return parse_agent_list(result.stdout + result.stderr)


async def set_default_agent(kiro_cli: str, name: str, cwd: str) -> bool:
    """Make ``name`` kiro's default agent. Returns True on success."""
    result = await exec_capture(kiro_cli, ["agent", "set-default", "-n", name], cwd)
    if not result.success:
        log.warning(
            "kiro-cli agent set-default %s failed: %r %s",
            name,
            result,
            result.stderr.strip(),
        )
    return result.success
