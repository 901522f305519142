"""Windows registry backend — one named value per variable.

Windows keeps per-user environment variables under
``HKEY_CURRENT_USER\\Environment``.  Explorer (and therefore every new
console) reads that key, so writing there is the Windows counterpart of
editing ``.bashrc``.

After each change we broadcast ``WM_SETTINGCHANGE`` with the string
``"Environment"`` so running top-level windows reload the key and new
shells see the change without a logoff.

The registry module is injectable: on Windows it defaults to the
standard ``winreg`` module; tests pass an in-memory stand-in so the
backend can be exercised on any platform.
"""

from __future__ import annotations

import ctypes
import sys
from typing import Any

from envfetch.errors import PersistenceError
from envfetch.logging import Logger
from envfetch.persistence.base import RegistryTarget

_SOURCE = "persistence"

_HWND_BROADCAST = 0xFFFF
_WM_SETTINGCHANGE = 0x001A
_SMTO_ABORTIFHUNG = 0x0002
_BROADCAST_TIMEOUT_MS = 5000


def broadcast_environment_change() -> bool:
    """Tell running windows that the environment changed.

    Returns:
        True if the message was delivered (or there is nothing to tell
        because we are not on Windows).

    """
    if sys.platform != "win32":
        return True
    result = ctypes.c_ulong()
    delivered = ctypes.windll.user32.SendMessageTimeoutW(  # type: ignore[attr-defined]
        _HWND_BROADCAST,
        _WM_SETTINGCHANGE,
        0,
        "Environment",
        _SMTO_ABORTIFHUNG,
        _BROADCAST_TIMEOUT_MS,
        ctypes.byref(result),
    )
    return bool(delivered)


def _default_registry() -> Any:
    if sys.platform != "win32":
        msg = "the Windows registry is only available on Windows"
        raise PersistenceError(msg)
    import winreg  # noqa: PLC0415

    return winreg


class RegistryBackend:
    """Persist variables as values of a per-user registry key."""

    def __init__(
        self,
        target: RegistryTarget | None = None,
        *,
        registry: Any = None,
        broadcast: Any = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a backend for *target*.

        Args:
            target: The key to use (defaults to ``HKCU\\Environment``).
            registry: A ``winreg``-compatible module.
            broadcast: Callable run after every change; returns False
                when the notification could not be delivered.
            logger: Optional logger for write events.

        """
        self._target = target or RegistryTarget()
        self._reg = registry if registry is not None else _default_registry()
        self._broadcast = broadcast if broadcast is not None else broadcast_environment_change
        self._logger = logger

    @property
    def target(self) -> RegistryTarget:
        """Return the registry key target."""
        return self._target

    def _open(self, access: int) -> Any:
        return self._reg.OpenKey(self._reg.HKEY_CURRENT_USER, self._target.key_path, 0, access)

    def get(self, name: str) -> str | None:
        """Return the stored value for *name*, or None."""
        try:
            with self._open(self._reg.KEY_READ) as key:
                value, _kind = self._reg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        except OSError as err:
            msg = f"can't read {name} from {self._target}: {err}"
            raise PersistenceError(msg) from err
        return str(value)

    def items(self) -> list[tuple[str, str]]:
        """Return every (name, value) stored under the key."""
        try:
            with self._open(self._reg.KEY_READ) as key:
                _subkeys, count, _modified = self._reg.QueryInfoKey(key)
                pairs = []
                for index in range(count):
                    name, value, _kind = self._reg.EnumValue(key, index)
                    pairs.append((name, str(value)))
        except FileNotFoundError:
            return []
        except OSError as err:
            msg = f"can't list {self._target}: {err}"
            raise PersistenceError(msg) from err
        return pairs

    def set(self, name: str, value: str) -> None:
        """Write *name*, creating the key if it does not exist yet."""
        # %VAR% references only expand when stored as REG_EXPAND_SZ.
        kind = self._reg.REG_EXPAND_SZ if "%" in value else self._reg.REG_SZ
        try:
            with self._reg.CreateKeyEx(
                self._reg.HKEY_CURRENT_USER, self._target.key_path, 0, self._reg.KEY_SET_VALUE
            ) as key:
                self._reg.SetValueEx(key, name, 0, kind, value)
        except OSError as err:
            msg = f"can't write {name} to {self._target}: {err}"
            raise PersistenceError(msg) from err
        self._notify(f"persisted {name} in {self._target}")

    def delete(self, name: str) -> bool:
        """Remove *name*; return False if it was not stored."""
        try:
            with self._open(self._reg.KEY_SET_VALUE) as key:
                self._reg.DeleteValue(key, name)
        except FileNotFoundError:
            return False
        except OSError as err:
            msg = f"can't delete {name} from {self._target}: {err}"
            raise PersistenceError(msg) from err
        self._notify(f"removed {name} from {self._target}")
        return True

    def _notify(self, message: str) -> None:
        delivered = self._broadcast()
        if self._logger is None:
            return
        self._logger.info(message, source=_SOURCE)
        if not delivered:
            self._logger.warning(
                "environment change broadcast timed out; new shells may need a logoff",
                source=_SOURCE,
            )
