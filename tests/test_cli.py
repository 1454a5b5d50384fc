"""Tests for the kiro-acp command line."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from kiro_acp import __version__
from kiro_acp.cli import create_parser, run_cli

from tests.utils import write_fake_kiro_cli

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake kiro-cli needs a shebang")


class TestParser:
    """Test argument parsing."""

    def test_no_command_means_serve(self) -> None:
        assert create_parser().parse_args([]).command is None

    def test_doctor_cwd(self) -> None:
        args = create_parser().parse_args(["doctor", "--cwd", "/work"])
        assert args.command == "doctor"
        assert args.cwd == "/work"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestRunCli:
    """Test command dispatch."""

    @pytest.mark.parametrize("args", [[], ["serve"]])
    def test_serve(self, args: list[str]) -> None:
        with patch("kiro_acp.__main__.serve", return_value=0) as serve:
            assert run_cli(args) == 0
        serve.assert_called_once_with()


@posix_only
class TestDoctor:
    """Test the doctor report against the fake kiro-cli."""

    @pytest.fixture(autouse=True)
    def fake_kiro(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        kiro_cli = write_fake_kiro_cli(tmp_path / "bin")
        monkeypatch.setenv("KIRO_ACP_KIRO_CLI", str(kiro_cli))
        return kiro_cli

    def test_ready(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A logged-in kiro-cli passes and its agents are listed."""
        assert run_cli(["doctor", "--cwd", str(tmp_path)]) == 0

        out = capsys.readouterr().out
        assert "Free" in out
        assert "kiro_default" in out
        assert "reviewer" in out

    def test_logged_out(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("FAKE_KIRO_LOGGED_OUT", "1")
        assert run_cli(["doctor", "--cwd", str(tmp_path)]) == 1
        assert "ok" not in capsys.readouterr().out.split()

    def test_missing_binary(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("KIRO_ACP_KIRO_CLI", str(tmp_path / "nowhere" / "kiro-cli"))
        assert run_cli(["doctor", "--cwd", str(tmp_path)]) == 1
        assert "No kiro-cli agents listed" in capsys.readouterr().out
