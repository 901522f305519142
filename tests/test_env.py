"""Tests for the environment view.

The view is an explicit copy of a process environment.  Changing it
never touches ``os.environ``; the engine hands it to a child process or
throws it away.
"""

import os

import pytest

from envfetch.env import Environment


class TestEnvironment:
    """Verify the Environment key-value store."""

    def test_get_and_set(self) -> None:
        """Setting a variable should make it retrievable."""
        env = Environment()
        env.set("HOME", "/root")
        assert env.get("HOME") == "/root"

    def test_get_missing_returns_none(self) -> None:
        """Getting a missing key should return None."""
        env = Environment()
        assert env.get("MISSING") is None

    def test_get_missing_with_default(self) -> None:
        """Getting a missing key with a default should return the default."""
        env = Environment()
        assert env.get("MISSING", "fallback") == "fallback"

    def test_set_overwrites(self) -> None:
        """Setting an existing key should overwrite the value (last write wins)."""
        env = Environment()
        env.set("X", "old")
        env.set("X", "new")
        assert env.get("X") == "new"
        assert len(env) == 1

    def test_delete(self) -> None:
        """Deleting a variable should remove it."""
        env = Environment({"X": "val"})
        env.delete("X")
        assert env.get("X") is None
        assert "X" not in env

    def test_delete_missing_raises(self) -> None:
        """Deleting a non-existent key should raise KeyError."""
        env = Environment()
        with pytest.raises(KeyError):
            env.delete("NOPE")

    def test_items_and_names(self) -> None:
        """Items and names should cover every variable."""
        env = Environment({"A": "1", "B": "2"})
        assert dict(env.items()) == {"A": "1", "B": "2"}
        assert sorted(env.names()) == ["A", "B"]

    def test_initial_mapping_is_copied(self) -> None:
        """Later changes to the source mapping don't leak into the view."""
        source = {"A": "1"}
        env = Environment(source)
        source["A"] = "changed"
        assert env.get("A") == "1"

    def test_copy_is_independent(self) -> None:
        """A copied environment should be independent of the original."""
        env = Environment({"X": "original"})
        child = env.copy()
        child.set("X", "modified")
        assert env.get("X") == "original"
        assert child.get("X") == "modified"

    def test_contains(self) -> None:
        """Membership checks use names."""
        env = Environment({"A": "1"})
        assert "A" in env
        assert "B" not in env
        assert 1 not in env


class TestCaseRules:
    """Verify platform case sensitivity."""

    def test_case_sensitive_by_default(self) -> None:
        """Unix-style views treat Path and PATH as different."""
        env = Environment({"PATH": "/bin"})
        assert env.get("Path") is None
        env.set("Path", "x")
        assert len(env) == 2

    def test_case_insensitive_lookup(self) -> None:
        """Windows-style views fold case on lookup."""
        env = Environment({"Path": "C:\\Windows"}, case_insensitive=True)
        assert env.get("PATH") == "C:\\Windows"
        assert "path" in env

    def test_case_insensitive_keeps_latest_spelling(self) -> None:
        """Re-setting with another spelling replaces the entry."""
        env = Environment({"Path": "a"}, case_insensitive=True)
        env.set("PATH", "b")
        assert env.items() == [("PATH", "b")]

    def test_case_insensitive_delete(self) -> None:
        """Delete folds case as well."""
        env = Environment({"Path": "a"}, case_insensitive=True)
        env.delete("PATH")
        assert len(env) == 0
        assert env.copy().case_insensitive


class TestSnapshot:
    """Verify snapshots of the real process environment."""

    def test_from_os_copies_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The snapshot sees current variables but doesn't write back."""
        monkeypatch.setenv("ENVFETCH_SNAPSHOT_TEST", "yes")
        env = Environment.from_os()
        assert env.get("ENVFETCH_SNAPSHOT_TEST") == "yes"
        env.set("ENVFETCH_SNAPSHOT_TEST", "changed")
        env.delete("ENVFETCH_SNAPSHOT_TEST")
        assert os.environ["ENVFETCH_SNAPSHOT_TEST"] == "yes"

    def test_to_dict(self) -> None:
        """to_dict returns a plain mapping for subprocess."""
        env = Environment({"A": "1"})
        mapping = env.to_dict()
        mapping["B"] = "2"
        assert env.get("B") is None
