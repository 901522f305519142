"""Tests for the configuration file."""

import os
import tomllib
from pathlib import Path

import pytest

from envfetch.config import (
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG,
    DEFAULT_PRINT_FORMAT,
    Config,
    config_dir,
    config_file_path,
    init_config,
    load_config,
)
from envfetch.errors import ConfigError


class TestLoadConfig:
    """Verify reading envfetch.toml."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No file means the built-in defaults."""
        config = load_config(tmp_path / CONFIG_FILE_NAME)
        assert config == Config()
        assert config.print_format == DEFAULT_PRINT_FORMAT

    def test_reads_values(self, tmp_path: Path) -> None:
        """Known keys override the defaults."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text(
            'print_format = "{name}={value}"\n'
            "suggestion_limit = 2\n"
            f"shell_file = {str(tmp_path / 'rc')!r}\n"
            'add_separator = ":"\n',
            encoding="utf-8",
        )
        config = load_config(path)
        assert config == Config(
            print_format="{name}={value}",
            suggestion_limit=2,
            shell_file=tmp_path / "rc",
            add_separator=":",
        )

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        """Keys this version doesn't know about are ignored."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("future_option = true\n", encoding="utf-8")
        assert load_config(path) == Config()

    def test_shell_file_expands_home(self) -> None:
        """A leading ~ in shell_file is expanded."""
        config = Config.from_dict({"shell_file": "~/.zshenv"})
        assert config.shell_file == Path("~/.zshenv").expanduser()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """A syntax error is reported as ConfigError."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("print_format = \n", encoding="utf-8")
        with pytest.raises(ConfigError, match="failed to parse config"):
            load_config(path)

    def test_undecodable_file(self, tmp_path: Path) -> None:
        """A file that isn't UTF-8 can't be read."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_bytes(b"\xff\xfe")
        with pytest.raises(ConfigError, match="failed to read config"):
            load_config(path)

    @pytest.mark.parametrize(
        "data",
        [
            {"print_format": 1},
            {"suggestion_limit": "5"},
            {"suggestion_limit": True},
            {"suggestion_limit": -1},
            {"shell_file": ["a"]},
        ],
    )
    def test_bad_values(self, data: dict[str, object]) -> None:
        """Wrong types and negative limits are rejected."""
        with pytest.raises(ConfigError):
            Config.from_dict(data)


class TestInitConfig:
    """Verify writing the default file."""

    def test_writes_defaults(self, tmp_path: Path) -> None:
        """The written file creates its directory and loads as the defaults."""
        path = tmp_path / "envfetch" / CONFIG_FILE_NAME
        assert init_config(path) == path
        assert path.read_text(encoding="utf-8") == DEFAULT_CONFIG
        assert load_config(path) == Config()

    def test_default_text_is_valid_toml(self) -> None:
        """The template parses and matches the default settings."""
        assert Config.from_dict(tomllib.loads(DEFAULT_CONFIG)) == Config()

    def test_unwritable(self, tmp_path: Path) -> None:
        """A path that can't be written raises ConfigError."""
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="failed to write config"):
            init_config(blocker / CONFIG_FILE_NAME)


class TestConfigDir:
    """Verify where the file lives."""

    @pytest.mark.skipif(os.name == "nt", reason="uses APPDATA on Windows")
    def test_xdg_config_home(self) -> None:
        """XDG_CONFIG_HOME wins when set."""
        assert config_dir({"XDG_CONFIG_HOME": "/xdg"}) == Path("/xdg")
        assert config_file_path({"XDG_CONFIG_HOME": "/xdg"}) == Path("/xdg") / CONFIG_FILE_NAME

    @pytest.mark.skipif(os.name == "nt", reason="uses APPDATA on Windows")
    def test_default_under_home(self) -> None:
        """Without XDG_CONFIG_HOME the file lives in ~/.config."""
        assert config_dir({}) == Path.home() / ".config"
