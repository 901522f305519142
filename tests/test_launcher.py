"""Tests for the process launcher.

Children are real processes: the current Python interpreter, so the
tests don't depend on any other program being installed.
"""

import os
import shlex
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from envfetch.errors import SpawnError
from envfetch.launcher import run_shell, shell_command, spawn
from envfetch.logging import Logger

PYTHON = sys.executable


def _env(**extra: str) -> dict[str, str]:
    return {**os.environ, **extra}


class TestSpawn:
    """Verify running an executable directly."""

    def test_exit_code_propagates(self) -> None:
        """The child's exit status is returned unchanged."""
        assert spawn(PYTHON, ["-c", "raise SystemExit(3)"], _env()) == 3

    def test_success(self) -> None:
        """A clean exit returns 0."""
        assert spawn(PYTHON, ["-c", "pass"], _env()) == 0

    def test_environment_is_passed(self, tmp_path: Path) -> None:
        """The child sees exactly the variables it was given."""
        out = tmp_path / "out.txt"
        code = (
            "import os, pathlib; "
            f"pathlib.Path({str(out)!r}).write_text(os.environ.get('ENVFETCH_X', 'unset'))"
        )
        spawn(PYTHON, ["-c", code], _env(ENVFETCH_X="hello"))
        assert out.read_text() == "hello"

    def test_parent_environment_untouched(self) -> None:
        """Spawning never changes our own environment."""
        spawn(PYTHON, ["-c", "pass"], _env(ENVFETCH_ONLY_CHILD="1"))
        assert "ENVFETCH_ONLY_CHILD" not in os.environ

    def test_exit_is_logged(self) -> None:
        """The exit code is logged when a logger is given."""
        logger = Logger()
        spawn(PYTHON, ["-c", "raise SystemExit(2)"], _env(), logger=logger)
        assert logger.entries[-1].message == "process exited with exit code 2"

    def test_empty_command(self) -> None:
        """An empty command can't be spawned."""
        with pytest.raises(SpawnError, match="empty command"):
            spawn("", [], _env())

    def test_missing_executable(self, tmp_path: Path) -> None:
        """A command that doesn't exist raises SpawnError."""
        with pytest.raises(SpawnError, match="can't start"):
            spawn(str(tmp_path / "no-such-program"), [], _env())

    def test_nul_in_argument(self) -> None:
        """Arguments the OS can't represent raise SpawnError."""
        with pytest.raises(SpawnError):
            spawn(PYTHON, ["-c", "pass\x00"], _env())

    @pytest.mark.skipif(os.name == "nt", reason="POSIX signals")
    def test_killed_by_signal(self) -> None:
        """A signal death maps to 128 + signal number."""
        code = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"
        assert spawn(PYTHON, ["-c", code], _env()) == 128 + 15


class TestRunShell:
    """Verify running a command line through the shell."""

    def test_shell_command_posix(self) -> None:
        """POSIX uses ``sh -c``."""
        with patch("envfetch.launcher.os.name", "posix"):
            assert shell_command("echo hi") == ("sh", ["-c", "echo hi"])

    def test_shell_command_windows(self) -> None:
        """Windows uses ``%COMSPEC% /C``."""
        with (
            patch("envfetch.launcher.os.name", "nt"),
            patch.dict("envfetch.launcher.os.environ", {"COMSPEC": "C:\\cmd.exe"}),
        ):
            assert shell_command("dir") == ("C:\\cmd.exe", ["/C", "dir"])

    def test_blank_command_line(self) -> None:
        """A blank command line is refused."""
        with pytest.raises(SpawnError):
            run_shell("   ", _env())

    @pytest.mark.skipif(os.name == "nt", reason="POSIX shell quoting")
    def test_runs_through_shell(self) -> None:
        """The command line is interpreted by the shell."""
        line = f"{shlex.quote(PYTHON)} -c 'raise SystemExit(4)' && exit 0"
        assert run_shell(line, _env()) == 4

    @pytest.mark.skipif(os.name == "nt", reason="POSIX shell expansion")
    def test_shell_sees_environment(self) -> None:
        """Variables in the environment expand inside the command line."""
        line = 'test "$ENVFETCH_SHELL" = yes'
        assert run_shell(line, _env(ENVFETCH_SHELL="yes")) == 0
        assert run_shell(line, _env(ENVFETCH_SHELL="no")) == 1
