"""Tests for the logger.

The logger records structured entries for every change the engine
makes and can echo them to a stream for the command line.
"""

import io

from envfetch.logging import LogEntry, Logger, LogLevel


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry formatting."""

    def test_entry_str(self) -> None:
        """String form should include level, source, and message."""
        entry = LogEntry(level=LogLevel.WARNING, message="skipped A", source="engine")
        assert str(entry) == "[WARNING] engine: skipped A"

    def test_entry_short(self) -> None:
        """Short form is ``level: message`` in lowercase."""
        entry = LogEntry(level=LogLevel.ERROR, message="boom", source="engine")
        assert entry.short() == "error: boom"


class TestLogger:
    """Verify buffering, filtering, and echo."""

    def test_entries_in_order(self) -> None:
        """Entries are kept in the order they were logged."""
        logger = Logger()
        logger.info("first", source="engine")
        logger.warning("second", source="persistence")
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_entries_returns_copy(self) -> None:
        """Mutating the returned list doesn't change the log."""
        logger = Logger()
        logger.info("x", source="engine")
        logger.entries.clear()
        assert len(logger.entries) == 1

    def test_filter_by_level(self) -> None:
        """min_level drops less severe entries."""
        logger = Logger()
        logger.debug("d", source="engine")
        logger.error("e", source="engine")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == ["e"]

    def test_filter_by_source(self) -> None:
        """source keeps only that component's entries."""
        logger = Logger()
        logger.info("a", source="engine")
        logger.info("b", source="launcher")
        assert [e.message for e in logger.filter(source="launcher")] == ["b"]

    def test_echo_respects_level(self) -> None:
        """Only entries at or above the echo level reach the stream."""
        stream = io.StringIO()
        logger = Logger(stream, echo_level=LogLevel.WARNING)
        logger.info("quiet", source="engine")
        logger.warning("loud", source="engine")
        assert stream.getvalue() == "warning: loud\n"
        assert len(logger.entries) == 2

    def test_no_stream_no_echo(self) -> None:
        """Without a stream nothing is printed."""
        logger = Logger()
        logger.error("silent", source="engine")
        assert logger.filter(min_level=LogLevel.ERROR)[0].message == "silent"
