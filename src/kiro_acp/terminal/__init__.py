"""Running kiro-cli: chat turns, whoami and agent management."""

from kiro_acp.terminal.agents import (
    AgentListing,
    AgentProfile,
    list_agents,
    parse_agent_list,
    set_default_agent,
)
from kiro_acp.terminal.capability import NotReadyReason, Readiness, check_ready
from kiro_acp.terminal.kiro_cli import (
    ChatOptions,
    ChatProcess,
    build_chat_args,
    exec_capture,
    resolve_kiro_cli,
    start_chat,
)
from kiro_acp.terminal.result import ExecResult

__all__ = [
    "AgentListing",
    "AgentProfile",
    "ChatOptions",
    "ChatProcess",
    "ExecResult",
    "NotReadyReason",
    "Readiness",
    "build_chat_args",
    "check_ready",
    "exec_capture",
    "list_agents",
    "parse_agent_list",
    "resolve_kiro_cli",
    "set_default_agent",
    "start_chat",
]
