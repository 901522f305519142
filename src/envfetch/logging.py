"""Structured logging for envfetch operations.

Every engine call leaves a trail of what it did: which variable it
touched, in which scope, and where a permanent change was written.
The logger mirrors a small ``dmesg``-style buffer:

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source).
- **Logger** — an append-only log with filtering and an
  optional echo stream for the command line.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **Echo is opt-in** — the engine never prints; the CLI decides
      which stream (if any) sees the entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TextIO


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "engine").

    """

    level: LogLevel
    message: str
    source: str

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"

    def short(self) -> str:
        """Format as ``level: message`` for terminal output."""
        return f"{self.level.name.lower()}: {self.message}"


class Logger:
    """Append-only log buffer with filtering and optional echo.

    Args:
        stream: If given, entries at or above *echo_level* are also
            written to it, one per line.
        echo_level: Minimum level that is echoed to *stream*.

    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        echo_level: LogLevel = LogLevel.WARNING,
    ) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []
        self._stream = stream
        self._echo_level = echo_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(self, level: LogLevel, message: str, *, source: str) -> None:
        """Append a new entry to the log, echoing it if configured."""
        entry = LogEntry(level=level, message=message, source=source)
        self._entries.append(entry)
        if self._stream is not None and level >= self._echo_level:
            print(entry.short(), file=self._stream)

    def debug(self, message: str, *, source: str) -> None:
        """Log at DEBUG level."""
        self.log(LogLevel.DEBUG, message, source=source)

    def info(self, message: str, *, source: str) -> None:
        """Log at INFO level."""
        self.log(LogLevel.INFO, message, source=source)

    def warning(self, message: str, *, source: str) -> None:
        """Log at WARNING level."""
        self.log(LogLevel.WARNING, message, source=source)

    def error(self, message: str, *, source: str) -> None:
        """Log at ERROR level."""
        self.log(LogLevel.ERROR, message, source=source)

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        return [
            entry
            for entry in self._entries
            if (min_level is None or entry.level >= min_level)
            and (source is None or entry.source == source)
        ]
