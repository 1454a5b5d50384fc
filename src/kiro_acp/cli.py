"""Command-line interface for kiro-acp."""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from kiro_acp import __version__
from kiro_acp.config import Config, host_default_mode, host_settings_path, load_config
from kiro_acp.terminal import check_ready, list_agents, resolve_kiro_cli

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kiro-acp",
        description="Agent Client Protocol bridge for the Kiro CLI",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command (default: serve)")

    subparsers.add_parser(
        "serve",
        help="Serve ACP over stdin/stdout (the default)",
    )

    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Check that kiro-cli is installed, logged in and has agents",
    )
    doctor_parser.add_argument(
        "--cwd",
        default=None,
        help="Directory to run checks in (default: current directory)",
    )

    return parser


async def _doctor(cwd: str, config: Config) -> bool:
    kiro_cli = resolve_kiro_cli(config.kiro.cli)
    readiness = await check_ready(kiro_cli, cwd)
    listing = await list_agents(kiro_cli, cwd)

    table = Table(title="kiro-acp doctor")
    table.add_column("Check", style="bold")
    table.add_column("Result")

    table.add_row("kiro-cli", kiro_cli)
    if readiness.ok:
        table.add_row("Login", f"[green]ok[/green] ({readiness.account_type})")
    else:
        table.add_row("Login", f"[red]{readiness.message}[/red]")

    table.add_row("Host settings", str(host_settings_path()))
    table.add_row("Host default mode", host_default_mode() or "-")
    table.add_row("Wrap", config.kiro.wrap)
    table.add_row("Strategy", config.transcript.strategy)
    table.add_row("Model", config.kiro.model or "auto")
    if config.kiro.trust_all_tools:
        table.add_row("Trusted tools", "all")
    elif config.kiro.trust_tools is not None:
        table.add_row("Trusted tools", config.kiro.trust_tools or "none")

    console.print(table)

    if listing:
        agents = Table(title="kiro-cli agents")
        agents.add_column("Agent", style="bold")
        agents.add_column("Default")
        agents.add_column("Description")
        for agent in listing.agents:
            marker = "*" if agent.id == listing.default_agent else ""
            agents.add_row(agent.id, marker, agent.description or "")
        console.print(agents)
    else:
        console.print("[yellow]No kiro-cli agents listed[/yellow]")

    return readiness.ok


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command in (None, "serve"):
        from kiro_acp.__main__ import serve

        return serve()

    if parsed.command == "doctor":
        cwd = parsed.cwd or os.getcwd()
        ok = asyncio.run(_doctor(cwd, load_config(cwd=cwd)))
        return 0 if ok else 1

    parser.print_help()
    return 1
