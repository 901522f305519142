"""Process launcher — run a child with a chosen environment.

Temporary changes only exist in the map handed to a child process.
The launcher starts that child, lets it use our stdin/stdout/stderr
directly (nothing is captured or buffered), waits for it, and returns
its exit code so ``envfetch`` can exit with the same status.

Two entry points:
    - ``spawn(command, args, environment)`` — run an executable.
    - ``run_shell(command_line, environment)`` — run a command line
      through the platform shell (``sh -c`` or ``cmd /C``), which is
      what ``envfetch set FOO bar -- "npm run dev"`` does.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence

from envfetch.errors import SpawnError
from envfetch.logging import Logger

_SOURCE = "launcher"

# Exit status convention for a child killed by a signal.
_SIGNAL_EXIT_BASE = 128


def shell_command(command_line: str) -> tuple[str, list[str]]:
    """Return ``(executable, args)`` that run *command_line* in a shell."""
    if os.name == "nt":
        return os.environ.get("COMSPEC", "cmd"), ["/C", command_line]
    return "sh", ["-c", command_line]


def spawn(
    command: str,
    args: Sequence[str],
    environment: Mapping[str, str],
    *,
    logger: Logger | None = None,
) -> int:
    """Run *command* with *args* and *environment*; block until it exits.

    Returns:
        The child's exit code (``128 + N`` if it was killed by signal N).

    Raises:
        SpawnError: If the command is empty or cannot be started.

    """
    if not command:
        msg = "got an empty command"
        raise SpawnError(msg)

    try:
        completed = subprocess.run([command, *args], env=dict(environment), check=False)
    except (OSError, ValueError) as err:
        msg = f"can't start {command!r}: {err}"
        raise SpawnError(msg) from err

    code = completed.returncode
    if code < 0:
        code = _SIGNAL_EXIT_BASE - code
    if logger is not None:
        logger.info(f"process exited with exit code {code}", source=_SOURCE)
    return code


def run_shell(
    command_line: str,
    environment: Mapping[str, str],
    *,
    logger: Logger | None = None,
) -> int:
    """Run *command_line* through the platform shell.

    Raises:
        SpawnError: If *command_line* is blank or the shell cannot start.

    """
    if not command_line.strip():
        msg = "got an empty command"
        raise SpawnError(msg)
    executable, args = shell_command(command_line)
    return spawn(executable, args, environment, logger=logger)
