"""Shared test utilities for kiro-acp tests.

Provides a scriptable stand-in for the ``kiro-cli`` executable so the
runner, the agent and the protocol tests can spawn a real subprocess.
"""

from __future__ import annotations

import json
import stat
import sys
from pathlib import Path
from typing import Any

# Behaviour is keyed off the subcommand and, for chat, the prompt text:
#   "fail-silent"  -> nothing on stdout, "boom" on stderr, exit 2
#   "fail-loud"    -> an answer, then exit 3
#   "list files"   -> a coloured transcript with one shell tool call
#   "sleep"        -> a partial answer, then hang until interrupted
#   anything else  -> "> Echo: <prompt>"
FAKE_KIRO_SOURCE = r'''
import json
import os
import sys
import time

ESC = "\x1b"


def record(entry):
    path = os.environ.get("FAKE_KIRO_LOG")
    if path:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")


def main(argv):
    record({"argv": argv, "term": os.environ.get("TERM"), "no_color": os.environ.get("NO_COLOR")})

    if argv[:1] == ["whoami"]:
        if os.environ.get("FAKE_KIRO_LOGGED_OUT"):
            print("not logged in", file=sys.stderr)
            return 1
        print(json.dumps({"accountType": "Free", "email": "dev@example.com"}))
        return 0

    if argv[:2] == ["agent", "list"]:
        print(ESC + "[1m* kiro_default" + ESC + "[0m    Default agent")
        print("  reviewer        Reviews code", file=sys.stderr)
        return 0

    if argv[:2] == ["agent", "set-default"]:
        return 0

    if argv[:1] != ["chat"]:
        print("unknown command", file=sys.stderr)
        return 64

    text = argv[-1]
    if "fail-silent" in text:
        print("boom", file=sys.stderr)
        return 2
    if "fail-loud" in text:
        print(ESC + "[32m> " + ESC + "[0mpartial answer")
        return 3
    if "list files" in text:
        sys.stdout.write(
            ESC + "[35m> " + ESC + "[0mLet me list the files.\n"
            + ESC + "[38;5;244mI will run the following command: ls (using tool: shell)" + ESC + "[0m\n"
            + "file.txt\n"
            + " - Completed in 0.01s\n"
            + "There is one file.\n"
        )
        return 0
    if "sleep" in text:
        sys.stdout.write("> working on it\n")
        sys.stdout.flush()
        time.sleep(30)
        return 0

    print(ESC + "[32m> " + ESC + "[0mEcho: " + text)
    return 0


sys.exit(main(sys.argv[1:]))
'''


def write_fake_kiro_cli(directory: Path) -> Path:
    """Write an executable fake ``kiro-cli`` into ``directory``."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "kiro-cli"
    path.write_text(f"#!{sys.executable}\n{FAKE_KIRO_SOURCE}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_fake_kiro_log(path: Path) -> list[dict[str, Any]]:
    """Return the invocations recorded by the fake kiro-cli."""
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]
