"""Locating and running the kiro-cli executable."""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
import signal
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path

from kiro_acp.logging import get_logger
from kiro_acp.terminal.result import ExecResult
from kiro_acp.transcript.ansi import strip_ansi

log = get_logger("kiro")

KIRO_CLI_NAME = "kiro-cli"
READ_CHUNK_SIZE = 4096

# Keep kiro-cli from decorating output meant for a terminal
QUIET_TERMINAL_ENV = {"TERM": "dumb", "NO_COLOR": "1"}


def _candidate_paths() -> list[Path]:
    home = Path.home()
    return [
        home / ".local" / "bin" / KIRO_CLI_NAME,
        Path("/opt/homebrew/bin") / KIRO_CLI_NAME,
        Path("/usr/local/bin") / KIRO_CLI_NAME,
    ]


def resolve_kiro_cli(configured: str | None = None) -> str:
    """Find the kiro-cli executable.

    Order: configured path, PATH lookup, well-known install locations.
    Falls back to the bare name so a later spawn reports "not found".
    """
    if configured:
        return os.path.expanduser(configured)

    on_path = shutil.which(KIRO_CLI_NAME)
    if on_path:
        return on_path

    for candidate in _candidate_paths():
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)

    return KIRO_CLI_NAME


def _subprocess_env(extra: dict[str, str] | None = None) -> dict[str, str]:
    env = os.environ.copy()
    env.update(QUIET_TERMINAL_ENV)
    if extra:
        env.update(extra)
    return env


async def exec_capture(
    kiro_cli: str,
    args: list[str],
    cwd: str,
    timeout: float | None = 30.0,
) -> ExecResult:
    """Run a kiro-cli subcommand to completion and capture its output.

    Spawn errors are reported in the result rather than raised.
    """
    start_time = time.perf_counter()
    full_command = " ".join([kiro_cli, *args])

    try:
        process = await asyncio.create_subprocess_exec(
            kiro_cli,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=_subprocess_env(),
        )
    except OSError as e:
        log.debug("Could not start %s: %s", full_command, e)
        return ExecResult(
            command=full_command,
            exit_code=None,
            error=e,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    try:
        if timeout is not None:
            stdout_data, stderr_data = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        else:
            stdout_data, stderr_data = await process.communicate()
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        log.warning("%s timed out after %ss", full_command, timeout)
        return ExecResult(
            command=full_command,
            exit_code=None,
            timed_out=True,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    return ExecResult(
        command=full_command,
        exit_code=process.returncode,
        stdout=stdout_data.decode("utf-8", errors="replace"),
        stderr=stderr_data.decode("utf-8", errors="replace"),
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )


@dataclass
class ChatOptions:
    """Everything needed to launch one ``kiro-cli chat`` turn."""

    kiro_cli: str
    cwd: str
    input: str
    agent: str | None = None
    model: str | None = None
    resume: bool = False
    verbose: bool = False
    trust_all_tools: bool = False
    trust_tools: str | None = None
    wrap: str = "auto"
    env: dict[str, str] = field(default_factory=dict)


def build_chat_args(options: ChatOptions) -> list[str]:
    """Build the argument list for a non-interactive chat turn.

    The ``default`` agent and ``auto`` model are kiro's own defaults and
    are not passed explicitly. The prompt text is always the last argument.
    """
    args = ["chat", "--no-interactive", "--wrap", options.wrap]
    if options.resume:
        args.append("--resume")
    if options.agent and options.agent != "default":
        args.extend(["--agent", options.agent])
    if options.model and options.model != "auto":
        args.extend(["--model", options.model])
    if options.verbose:
        args.append("--verbose")
    if options.trust_all_tools:
        args.append("--trust-all-tools")
    elif options.trust_tools is not None:
        args.append(f"--trust-tools={options.trust_tools}")
    args.append(options.input)
    return args


class ChatProcess:
    """Handle on a running ``kiro-cli chat`` subprocess.

    stdout is consumed by the caller through ``read_stdout()``; stderr is
    drained in the background so the child never blocks on a full pipe.
    """

    def __init__(self, process: asyncio.subprocess.Process, command: str) -> None:
        self._process = process
        self.command = command
        self._stderr_chunks: list[bytes] = []
        self._stderr_task = asyncio.ensure_future(self._drain_stderr())

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def running(self) -> bool:
        return self._process.returncode is None

    @property
    def stderr_text(self) -> str:
        """ANSI-free stderr received so far."""
        raw = b"".join(self._stderr_chunks).decode("utf-8", errors="replace")
        return strip_ansi(raw)

    async def _drain_stderr(self) -> None:
        stream = self._process.stderr
        if stream is None:
            return
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                return
            self._stderr_chunks.append(data)

    async def read_stdout(self) -> AsyncIterator[bytes]:
        """Yield raw stdout chunks as they arrive, until EOF."""
        stream = self._process.stdout
        if stream is None:
            return
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                return
            yield data

    async def wait(self) -> int | None:
        """Wait for exit. Returns the exit code, or None if killed by a signal."""
        code = await self._process.wait()
        await self._stderr_task
        log.debug("%s exited with %s", self.command, code)
        if code < 0:
            log.debug("%s terminated by signal %d", KIRO_CLI_NAME, -code)
            return None
        return code

    def interrupt(self) -> None:
        """Send SIGINT, as Ctrl-C would in a terminal."""
        if not self.running:
            return
        with contextlib.suppress(ProcessLookupError):
            self._process.send_signal(signal.SIGINT)


async def start_chat(options: ChatOptions) -> ChatProcess:
    """Launch a chat turn.

    Raises:
        FileNotFoundError: kiro-cli is not installed at ``options.kiro_cli``.
        OSError: Any other spawn failure.
    """
    args = build_chat_args(options)
    log.info(
        "Starting %s chat (agent=%s, model=%s, resume=%s)",
        options.kiro_cli,
        options.agent or "default",
        options.model or "auto",
        options.resume,
    )
    process = await asyncio.create_subprocess_exec(
        options.kiro_cli,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=options.cwd,
        env=_subprocess_env(options.env),
    )
    # Prompt text is left out of the logged command line
    return ChatProcess(process, " ".join([options.kiro_cli, *args[:-1]]))
