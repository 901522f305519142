"""Operation engine — get, set, add, delete, load, and print.

The engine is the single place that decides *what* a command does to
which scope:

- **Process scope** changes the ``Environment`` view the engine was
  given.  Nothing outside this process sees it until the caller hands
  the view to a child process.
- **Permanent scope** goes through a ``PersistenceBackend`` and leaves
  the view alone; the running process keeps its environment and only
  future shells see the change.

The backend is created lazily by a factory, once per permanent
operation, so commands that never touch permanent state never run
platform detection.

Mutating operations return an ``OperationResult``: what was applied,
what was removed, and warnings (skipped dotenv lines, a failed entry
of a permanent load, deleting a variable that wasn't set).  Whether a
warning should abort a longer sequence of commands is the caller's
call, not the engine's.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TypeAlias

from envfetch.dotenv import DotenvEntry, ParseResult, parse_file
from envfetch.env import Environment
from envfetch.errors import InvalidNameError, PersistenceError, VariableNotFoundError
from envfetch.logging import Logger
from envfetch.persistence.base import PersistenceBackend
from envfetch.similarity import DEFAULT_MAX_RESULTS, suggest

_SOURCE = "engine"
_BAD_NAME_RE = re.compile(r"[\s=\x00]")

BackendFactory: TypeAlias = Callable[[], PersistenceBackend]


class Scope(StrEnum):
    """Where a change takes effect.

    - PROCESS — only the environment handed to a spawned child.
    - PERMANENT — durable storage read by future shells.
    """

    PROCESS = "process"
    PERMANENT = "permanent"


@dataclass(frozen=True)
class EnvironmentVariable:
    """A single ``name=value`` pair."""

    name: str
    value: str

    def __str__(self) -> str:
        """Format as ``name=value``."""
        return f"{self.name}={self.value}"


@dataclass
class OperationResult:
    """Outcome of a mutating operation."""

    scope: Scope
    applied: list[EnvironmentVariable] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True if the operation produced no warnings."""
        return not self.warnings


def validate_name(name: str) -> None:
    """Reject names no platform can store.

    Raises:
        InvalidNameError: If *name* is empty or contains whitespace,
            ``=`` or a NUL byte.

    """
    if not name:
        msg = "variable name cannot be empty"
        raise InvalidNameError(msg)
    if _BAD_NAME_RE.search(name):
        msg = f"variable name cannot contain spaces, '=' or NUL: {name!r}"
        raise InvalidNameError(msg)


def _no_backend() -> PersistenceBackend:
    msg = "no permanent store configured"
    raise PersistenceError(msg)


class Engine:
    """Apply environment operations to a view or a permanent store."""

    def __init__(
        self,
        view: Environment,
        *,
        backend_factory: BackendFactory | None = None,
        logger: Logger | None = None,
        suggestion_limit: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        """Create an engine.

        Args:
            view: The environment snapshot that process-scope operations
                read and modify.
            backend_factory: Builds the permanent store on demand.
            logger: Receives one entry per applied change.
            suggestion_limit: Maximum number of "did you mean" names.

        """
        self._view = view
        self._backend_factory = backend_factory or _no_backend
        self._logger = logger if logger is not None else Logger()
        self._suggestion_limit = suggestion_limit

    @property
    def view(self) -> Environment:
        """Return the environment view process-scope changes go to."""
        return self._view

    @property
    def logger(self) -> Logger:
        """Return the engine's logger."""
        return self._logger

    # -- reading -------------------------------------------------------------

    def get(self, name: str, *, similar: bool = True) -> str:
        """Return the value of *name* from the view.

        The permanent store is never consulted: the current environment
        is the source of truth for reads.

        Raises:
            VariableNotFoundError: If *name* is not set; carries similar
                names unless *similar* is False.

        """
        value = self._view.get(name)
        if value is not None:
            return value
        suggestions = (
            suggest(name, self._view.names(), self._suggestion_limit) if similar else []
        )
        raise VariableNotFoundError(name, suggestions)

    def print_variables(self) -> list[EnvironmentVariable]:
        """Return every variable in the view, sorted by name for display."""
        return sorted(
            (EnvironmentVariable(name, value) for name, value in self._view.items()),
            key=lambda var: var.name,
        )

    # -- writing -------------------------------------------------------------

    def set(self, name: str, value: str, scope: Scope = Scope.PROCESS) -> OperationResult:
        """Give *name* the value *value* in *scope*."""
        validate_name(name)
        result = OperationResult(scope=scope)
        self._write(name, value, scope, self._backend_for(scope))
        result.applied.append(EnvironmentVariable(name, value))
        return result

    def add(
        self,
        name: str,
        value: str,
        scope: Scope = Scope.PROCESS,
        *,
        separator: str = "",
    ) -> OperationResult:
        """Append *value* to the current value of *name*.

        A missing variable counts as empty, so ``add`` on an absent name
        is the same as ``set``.  *separator* goes between the two parts
        only when the existing value is non-empty.
        """
        validate_name(name)
        backend = self._backend_for(scope)
        current = self._view.get(name) if backend is None else backend.get(name)
        combined = f"{current}{separator}{value}" if current else value
        self._write(name, combined, scope, backend)
        return OperationResult(scope=scope, applied=[EnvironmentVariable(name, combined)])

    def delete(self, name: str, scope: Scope = Scope.PROCESS) -> OperationResult:
        """Remove *name* from *scope*; a missing variable is a warning."""
        validate_name(name)
        result = OperationResult(scope=scope)
        backend = self._backend_for(scope)
        if backend is None:
            try:
                self._view.delete(name)
            except KeyError:
                existed = False
            else:
                existed = True
        else:
            existed = backend.delete(name)

        if existed:
            result.removed.append(name)
            self._logger.info(f"deleted {name} ({scope})", source=_SOURCE)
        else:
            result.warnings.append(f"variable doesn't exist: {name}")
            self._logger.warning(f"variable doesn't exist: {name}", source=_SOURCE)
        return result

    def read_dotenv(self, path: str | Path) -> ParseResult:
        """Parse the dotenv file at *path*, logging each skipped line.

        ``$NAME`` references that the file does not define resolve
        against the view.

        Raises:
            DotenvError: If the file cannot be read.

        """
        parsed = parse_file(path, defaults=self._view.to_dict())
        for warning in parsed.warnings:
            self._logger.warning(f"{path}: {warning}", source=_SOURCE)
        return parsed

    def load(self, path: str | Path, scope: Scope = Scope.PROCESS) -> OperationResult:
        """Apply every assignment of the dotenv file at *path*.

        Raises:
            DotenvError: If the file cannot be read.

        """
        return self.load_entries(self.read_dotenv(path), scope)

    def load_entries(
        self,
        parsed: ParseResult | Iterable[DotenvEntry],
        scope: Scope = Scope.PROCESS,
    ) -> OperationResult:
        """Apply already-parsed entries in order (later entries win).

        In permanent scope a failing entry becomes a warning and the
        remaining entries are still applied.
        """
        result = OperationResult(scope=scope)
        if isinstance(parsed, ParseResult):
            result.warnings.extend(parsed.warnings)
            entries: Iterable[DotenvEntry] = parsed.entries
        else:
            entries = parsed

        backend = self._backend_for(scope)
        for entry in entries:
            try:
                self._write(entry.key, entry.value, scope, backend)
            except PersistenceError as err:
                result.warnings.append(f"line {entry.line}: {err}")
                self._logger.warning(f"skipped {entry.key}: {err}", source=_SOURCE)
                continue
            result.applied.append(EnvironmentVariable(entry.key, entry.value))
        return result

    # -- helpers -------------------------------------------------------------

    def _backend_for(self, scope: Scope) -> PersistenceBackend | None:
        """Resolve the permanent store, or None for process scope."""
        if scope is Scope.PROCESS:
            return None
        return self._backend_factory()

    def _write(
        self,
        name: str,
        value: str,
        scope: Scope,
        backend: PersistenceBackend | None,
    ) -> None:
        if backend is None:
            self._view.set(name, value)
        else:
            backend.set(name, value)
        self._logger.info(f"set {name} ({scope})", source=_SOURCE)
