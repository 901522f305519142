"""The persistence capability — where permanent variables live.

A permanent change must survive the current process and show up in
*future* shells.  Each platform keeps that state somewhere different:

- **Windows** — one named value per variable under the per-user
  registry key ``HKEY_CURRENT_USER\\Environment``.
- **Unix-like** — ``export`` lines in a shell start-up file
  (``.bashrc``, ``.zshrc``, ``config.fish``, ``.profile``), kept inside
  a program-owned block between two marker comments.

The engine talks to either through the ``PersistenceBackend``
protocol; which variant is used is decided once, by detection, rather
than by platform checks scattered through call sites.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Protocol, TypeAlias

START_MARKER = "# >>> envfetch >>>"
END_MARKER = "# <<< envfetch <<<"


class ShellDialect(StrEnum):
    """Syntax used for the lines inside the managed block.

    - POSIX — ``export KEY="VALUE"`` (sh, bash, zsh).
    - FISH — ``set -gx KEY "VALUE"``.
    """

    POSIX = "posix"
    FISH = "fish"


@dataclass(frozen=True)
class ShellFileTarget:
    """A managed block inside one shell start-up file."""

    path: Path
    dialect: ShellDialect = ShellDialect.POSIX
    start_marker: str = START_MARKER
    end_marker: str = END_MARKER

    def __str__(self) -> str:
        """Return the file path."""
        return str(self.path)


@dataclass(frozen=True)
class RegistryTarget:
    """A registry key below ``HKEY_CURRENT_USER``."""

    key_path: str = "Environment"

    def __str__(self) -> str:
        """Return the full key path."""
        return f"HKEY_CURRENT_USER\\{self.key_path}"


PersistenceTarget: TypeAlias = ShellFileTarget | RegistryTarget


class PersistenceBackend(Protocol):
    """Read and write permanent variables.

    Every mutating call either completes fully or raises
    ``PersistenceError``; no partial write is ever visible.
    """

    @property
    def target(self) -> PersistenceTarget:
        """Return where this backend stores variables."""
        ...

    def get(self, name: str) -> str | None:
        """Return the persisted value of *name*, or None."""
        ...

    def set(self, name: str, value: str) -> None:
        """Persist *name* with *value*, replacing any previous value."""
        ...

    def delete(self, name: str) -> bool:
        """Remove *name*; return False if it was not persisted."""
        ...

    def items(self) -> list[tuple[str, str]]:
        """Return every persisted (name, value) pair."""
        ...
