"""User configuration — ``envfetch.toml`` in the user config directory.

The file is optional.  When present it may set::

    # How `envfetch print` formats each variable.
    print_format = '{name} = "{value}"'
    # Maximum number of "did you mean" suggestions.
    suggestion_limit = 5
    # Shell file for permanent variables (skips shell detection).
    shell_file = "~/.zshenv"
    # Inserted between old and new value by `envfetch add`.
    add_separator = ""

Unknown keys are ignored so newer files keep working with older
versions.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from envfetch.errors import ConfigError

CONFIG_FILE_NAME = "envfetch.toml"
DEFAULT_PRINT_FORMAT = '{name} = "{value}"'
DEFAULT_SUGGESTION_LIMIT = 5

DEFAULT_CONFIG = f"""\
# envfetch configuration

# How `envfetch print` formats each variable; {{name}} and {{value}} are replaced.
print_format = '{DEFAULT_PRINT_FORMAT}'

# Maximum number of similar names shown when `envfetch get` misses.
suggestion_limit = {DEFAULT_SUGGESTION_LIMIT}

# Shell start-up file used for permanent variables (detected when unset).
# shell_file = "~/.bashrc"

# Inserted between the old and the new value by `envfetch add`.
add_separator = ""
"""


@dataclass(frozen=True)
class Config:
    """Settings read from the configuration file."""

    print_format: str = DEFAULT_PRINT_FORMAT
    suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT
    shell_file: Path | None = None
    add_separator: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a config from parsed TOML, validating value types.

        Raises:
            ConfigError: If a known key has the wrong type.

        """
        print_format = _typed(data, "print_format", str, DEFAULT_PRINT_FORMAT)
        limit = _typed(data, "suggestion_limit", int, DEFAULT_SUGGESTION_LIMIT)
        separator = _typed(data, "add_separator", str, "")
        shell_file = _typed(data, "shell_file", str, None)
        if limit < 0:
            msg = "suggestion_limit must not be negative"
            raise ConfigError(msg)
        return cls(
            print_format=print_format,
            suggestion_limit=limit,
            shell_file=Path(shell_file).expanduser() if shell_file else None,
            add_separator=separator,
        )


def _typed(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    if key not in data:
        return default
    value = data[key]
    # bool is an int subclass; reject it for numeric settings.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        msg = f"{key} must be of type {kind.__name__}, got {type(value).__name__}"
        raise ConfigError(msg)
    return value


def config_dir(environ: dict[str, str] | None = None) -> Path:
    """Return the per-user configuration directory."""
    environ = environ if environ is not None else dict(os.environ)
    if os.name == "nt":
        appdata = environ.get("APPDATA")
        if appdata:
            return Path(appdata)
    xdg = environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def config_file_path(environ: dict[str, str] | None = None) -> Path:
    """Return the default location of ``envfetch.toml``."""
    return config_dir(environ) / CONFIG_FILE_NAME


def load_config(path: Path) -> Config:
    """Read the config at *path*; a missing file yields the defaults.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.

    """
    if not path.exists():
        return Config()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as err:
        msg = f"failed to read config {path}: {err}"
        raise ConfigError(msg) from err
    except tomllib.TOMLDecodeError as err:
        msg = f"failed to parse config {path}: {err}"
        raise ConfigError(msg) from err
    return Config.from_dict(data)


def init_config(path: Path) -> Path:
    """Write the default configuration to *path*.

    Raises:
        ConfigError: If the file cannot be written.

    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    except OSError as err:
        msg = f"failed to write config {path}: {err}"
        raise ConfigError(msg) from err
    return path
