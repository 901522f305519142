"""Exception hierarchy shared by every envfetch component.

All failures a user can see derive from ``EnvfetchError`` so the
command line has one thing to catch.  Lower-level exceptions
(``OSError``, ``UnicodeDecodeError``) are wrapped by the component
that hit them, with the original chained as ``__cause__``.
"""

from __future__ import annotations


class EnvfetchError(Exception):
    """Base class for all envfetch errors."""


class InvalidNameError(EnvfetchError):
    """Raise when a variable name cannot be used."""


class VariableNotFoundError(EnvfetchError):
    """Raise when a requested variable does not exist.

    Attributes:
        name: The name that was looked up.
        suggestions: Similar existing names, closest first (may be empty).

    """

    def __init__(self, name: str, suggestions: list[str] | None = None) -> None:
        """Create the error for *name* with optional suggestions."""
        super().__init__(f"can't find variable: {name}")
        self.name = name
        self.suggestions = list(suggestions or [])


class DotenvError(EnvfetchError):
    """Raise when a dotenv file cannot be read at all."""


class PersistenceError(EnvfetchError):
    """Raise when a permanent change cannot be read or written."""


class UnsupportedPlatformError(PersistenceError):
    """Raise when no permanent store is known for this platform."""


class SpawnError(EnvfetchError):
    """Raise when a child process cannot be started."""


class ConfigError(EnvfetchError):
    """Raise when the configuration file cannot be loaded."""
