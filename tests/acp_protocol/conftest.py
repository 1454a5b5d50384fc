"""Pytest fixtures for ACP protocol tests.

Each test runs ``python -m kiro_acp`` as a real subprocess, configured to
use the fake kiro-cli from ``tests.utils``.
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from tests.utils import write_fake_kiro_cli

from .helpers import ACPTestClient, initialize_agent

# The fake kiro-cli relies on a shebang line
collect_ignore_glob = ["test_*.py"] if sys.platform == "win32" else []

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Working directory handed to session/new."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def fake_kiro_log(tmp_path: Path) -> Path:
    """File the fake kiro-cli records its invocations in."""
    return tmp_path / "kiro-invocations.jsonl"


@pytest.fixture
def agent_env(tmp_path: Path, fake_kiro_log: Path) -> dict[str, str]:
    """Environment for the agent: fake kiro-cli and isolated config."""
    kiro_cli = write_fake_kiro_cli(tmp_path / "bin")

    env = {k: v for k, v in os.environ.items() if not k.startswith("KIRO_ACP_")}
    env.update(
        {
            "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
            "KIRO_ACP_KIRO_CLI": str(kiro_cli),
            "KIRO_ACP_LOG": str(tmp_path / "kiro-acp.log"),
            "KIRO_ACP_LOG_LEVEL": "debug",
            "FAKE_KIRO_LOG": str(fake_kiro_log),
        }
    )
    env.pop("KIRO_CLI", None)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    return env


@pytest_asyncio.fixture
async def agent_process(
    agent_env: dict[str, str], project_dir: Path
) -> AsyncIterator[asyncio.subprocess.Process]:
    """Start the agent subprocess and terminate it afterwards."""
    proc = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "kiro_acp",
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
        cwd=str(project_dir),
        env=agent_env,
    )

    yield proc

    if proc.returncode is None:
        proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()


@pytest_asyncio.fixture
async def client(agent_process: asyncio.subprocess.Process) -> ACPTestClient:
    """Test client connected to the agent's stdio."""
    if agent_process.stdin is None or agent_process.stdout is None:
        pytest.fail("Agent process missing stdin/stdout")

    return ACPTestClient(
        reader=agent_process.stdout,
        writer=agent_process.stdin,
    )


@pytest_asyncio.fixture
async def initialized_client(client: ACPTestClient) -> ACPTestClient:
    """Client that has completed initialize handshake."""
    response = await initialize_agent(client)
    assert "result" in response, f"Initialize failed: {response}"
    return client
