"""Environment view — an explicit snapshot of a process environment.

Every process has an environment: a set of ``KEY=VALUE`` string pairs
inherited from its parent.  envfetch never edits its own ``os.environ``
from inside helper routines; instead the command line takes one
snapshot with ``Environment.from_os()`` and threads that value through
the engine.  The (possibly modified) view is then handed to a child
process or simply discarded.

Key design properties:
    - **Copy semantics** — a view is a copy; changing it never touches
      the real process environment or any other view.
    - **Strings only** — both keys and values are strings.
    - **Platform case rules** — on Windows names are case-insensitive
      (``Path`` and ``PATH`` are the same variable); elsewhere they are
      case-sensitive.
"""

from __future__ import annotations

import os
from collections.abc import Mapping


class Environment:
    """A key-value store for environment variables.

    Names are unique within a view; setting an existing name replaces
    its value (last write wins).  With *case_insensitive* set, lookups
    fold case and the most recently written spelling is kept.
    """

    def __init__(
        self,
        initial: Mapping[str, str] | None = None,
        *,
        case_insensitive: bool = False,
    ) -> None:
        """Create a view, optionally pre-populated.

        Args:
            initial: Starting variables (copied, not referenced).
            case_insensitive: Treat names that differ only in case as one.

        """
        self._case_insensitive = case_insensitive
        # folded key -> (spelling, value)
        self._vars: dict[str, tuple[str, str]] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    @classmethod
    def from_os(cls) -> Environment:
        """Snapshot the current process environment."""
        return cls(os.environ, case_insensitive=os.name == "nt")

    @property
    def case_insensitive(self) -> bool:
        """Return True if names are compared without case."""
        return self._case_insensitive

    def _fold(self, key: str) -> str:
        return key.upper() if self._case_insensitive else key

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value for *key*, or *default* if not set."""
        entry = self._vars.get(self._fold(key))
        return entry[1] if entry is not None else default

    def set(self, key: str, value: str) -> None:
        """Set *key* to *value* (creates or overwrites)."""
        folded = self._fold(key)
        # Re-insert so a case-insensitive rename keeps the new spelling.
        self._vars.pop(folded, None)
        self._vars[folded] = (key, value)

    def delete(self, key: str) -> None:
        """Remove *key* from the environment.

        Raises:
            KeyError: If *key* does not exist.

        """
        del self._vars[self._fold(key)]

    def items(self) -> list[tuple[str, str]]:
        """Return all (key, value) pairs."""
        return list(self._vars.values())

    def names(self) -> list[str]:
        """Return all variable names."""
        return [key for key, _value in self._vars.values()]

    def to_dict(self) -> dict[str, str]:
        """Return a plain mapping suitable for ``subprocess``."""
        return dict(self._vars.values())

    def copy(self) -> Environment:
        """Return an independent copy of this environment."""
        return Environment(self.to_dict(), case_insensitive=self._case_insensitive)

    def __contains__(self, key: object) -> bool:
        """Return True if *key* is set."""
        return isinstance(key, str) and self._fold(key) in self._vars

    def __len__(self) -> int:
        """Return the number of variables."""
        return len(self._vars)
