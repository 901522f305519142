"""Permanent storage — shell start-up files and the Windows registry.

Re-exports public symbols so callers can write::

    from envfetch.persistence import detect_target, open_backend
"""

from envfetch.persistence.base import (
    END_MARKER,
    START_MARKER,
    PersistenceBackend,
    PersistenceTarget,
    RegistryTarget,
    ShellDialect,
    ShellFileTarget,
)
from envfetch.persistence.detect import detect_target, open_backend, shell_name
from envfetch.persistence.registry import RegistryBackend, broadcast_environment_change
from envfetch.persistence.shellrc import (
    ShellFileBackend,
    atomic_write_text,
    format_line,
    parse_block,
    quote_value,
)

__all__ = [
    "END_MARKER",
    "START_MARKER",
    "PersistenceBackend",
    "PersistenceTarget",
    "RegistryBackend",
    "RegistryTarget",
    "ShellDialect",
    "ShellFileBackend",
    "ShellFileTarget",
    "atomic_write_text",
    "broadcast_environment_change",
    "detect_target",
    "format_line",
    "open_backend",
    "parse_block",
    "quote_value",
    "shell_name",
]
