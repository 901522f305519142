"""Pick the permanent store for this machine.

Detection runs once per permanent operation and returns a target; the
matching backend is then built by ``open_backend``.

Unix-like systems choose the start-up file of the user's login shell
(the basename of ``$SHELL``):

====== =================================================
zsh    ``$ZDOTDIR/.zshrc`` (``~/.zshrc`` when unset)
bash   ``~/.bashrc``
fish   ``$XDG_CONFIG_HOME/fish/config.fish`` (``~/.config``)
other  ``~/.profile``
====== =================================================
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from envfetch.errors import UnsupportedPlatformError
from envfetch.logging import Logger
from envfetch.persistence.base import (
    PersistenceBackend,
    PersistenceTarget,
    RegistryTarget,
    ShellDialect,
    ShellFileTarget,
)
from envfetch.persistence.registry import RegistryBackend
from envfetch.persistence.shellrc import ShellFileBackend

# sys.platform prefixes that have a POSIX shell and home directory.
_POSIX_PLATFORMS: tuple[str, ...] = (
    "linux",
    "darwin",
    "freebsd",
    "openbsd",
    "netbsd",
    "dragonfly",
    "sunos",
    "aix",
    "cygwin",
    "msys",
)


def shell_name(environ: Mapping[str, str]) -> str:
    """Return the user's shell name (``zsh``, ``bash``, ...) or ``""``."""
    shell = environ.get("SHELL", "")
    return Path(shell).name.lstrip("-") if shell else ""


def detect_target(
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
    *,
    shell_file: Path | None = None,
) -> PersistenceTarget:
    """Return where permanent variables should be stored.

    Args:
        platform: A ``sys.platform`` value (defaults to the current one).
        environ: Variables to inspect (defaults to ``os.environ``).
        home: The user's home directory (defaults to ``Path.home()``).
        shell_file: Explicit start-up file; skips shell detection.

    Raises:
        UnsupportedPlatformError: If the platform has neither a registry
            nor a POSIX shell.

    """
    platform = platform if platform is not None else sys.platform
    environ = environ if environ is not None else os.environ

    if platform.startswith("win"):
        return RegistryTarget()

    if not platform.startswith(_POSIX_PLATFORMS):
        msg = f"don't know where to store permanent variables on {platform!r}"
        raise UnsupportedPlatformError(msg)

    if shell_file is not None:
        dialect = ShellDialect.FISH if shell_file.suffix == ".fish" else ShellDialect.POSIX
        return ShellFileTarget(path=shell_file.expanduser(), dialect=dialect)

    home = home if home is not None else Path.home()
    match shell_name(environ):
        case "zsh":
            zdotdir = environ.get("ZDOTDIR")
            base = Path(zdotdir) if zdotdir else home
            return ShellFileTarget(path=base / ".zshrc")
        case "bash":
            return ShellFileTarget(path=home / ".bashrc")
        case "fish":
            xdg = environ.get("XDG_CONFIG_HOME")
            base = Path(xdg) if xdg else home / ".config"
            return ShellFileTarget(path=base / "fish" / "config.fish", dialect=ShellDialect.FISH)
        case _:
            return ShellFileTarget(path=home / ".profile")


def open_backend(target: PersistenceTarget, *, logger: Logger | None = None) -> PersistenceBackend:
    """Build the backend that serves *target*."""
    if isinstance(target, RegistryTarget):
        return RegistryBackend(target, logger=logger)
    return ShellFileBackend(target, logger=logger)
