"""Result of a one-shot kiro-cli invocation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ExecResult:
    """Outcome of running a kiro-cli subcommand to completion.

    Attributes:
        command: The command line that was run, for logging.
        exit_code: Process exit code, or None if it never started, timed
            out, or was killed by a signal.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        error: The OSError raised while spawning, if any.
        timed_out: True if the process was killed after the timeout.
        duration_ms: Wall time in milliseconds.
    """

    command: str
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    error: OSError | None = None
    timed_out: bool = False
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """True if the command completed with exit code 0."""
        return self.exit_code == 0

    @property
    def not_found(self) -> bool:
        """True if the executable could not be found."""
        return isinstance(self.error, FileNotFoundError)

    def __repr__(self) -> str:
        if self.error is not None:
            return f"<ExecResult error={type(self.error).__name__}>"
        if self.timed_out:
            return "<ExecResult timeout>"
        return f"<ExecResult exit={self.exit_code}>"
