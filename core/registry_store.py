"""
Registry access for association keys.

Every path is fully hive-qualified (``HKCR\\.txt``) so that writes land on the
intended key instead of a merged or redirected view.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

try:
    import winreg
except ModuleNotFoundError:  # pragma: no cover - non-Windows environments
    winreg = None

_HIVE_ALIASES = {
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKCU": "HKEY_CURRENT_USER",
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKU": "HKEY_USERS",
}

FILE_EXTS_SUBKEY = r"Software\Microsoft\Windows\CurrentVersion\Explorer\FileExts"


def split_key_path(path: str) -> Tuple[str, str]:
    """Split ``HKCR\\.txt`` into the canonical hive name and the subkey."""
    hive, _, subkey = path.strip().strip("\\").partition("\\")
    hive = hive.upper()
    hive = _HIVE_ALIASES.get(hive, hive)
    if hive not in _HIVE_ALIASES.values():
        raise ValueError(f"Unknown registry hive in path: {path!r}")
    return hive, subkey


def class_root_key(name: str) -> str:
    return f"HKCR\\{name}"


def open_command_key(prog_id: str) -> str:
    return f"HKCR\\{prog_id}\\shell\\open\\command"


def file_exts_key(extension: str) -> str:
    return f"HKCU\\{FILE_EXTS_SUBKEY}\\{extension}"


class RegistryStore:
    """Thin wrapper over winreg exposing read, write, exists and create."""

    def __init__(self, *, winreg_module=None) -> None:
        self._winreg = winreg_module or winreg
        if self._winreg is None:
            raise RuntimeError("The Windows registry is not available on this platform.")

    def read_value(self, path: str, name: str = "") -> Optional[str]:
        try:
            with self._open_key(path, writable=False) as key:
                value, _ = self._winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        return value

    def write_value(self, path: str, name: str, value: str) -> None:
        with self._open_key(path, writable=True) as key:
            self._winreg.SetValueEx(key, name, 0, self._winreg.REG_SZ, value)

    def key_exists(self, path: str) -> bool:
        try:
            with self._open_key(path, writable=False):
                return True
        except FileNotFoundError:
            return False

    def create_key(self, path: str) -> None:
        with self._open_key(path, writable=True):
            pass

    def read_dword(self, path: str, name: str) -> Optional[int]:
        """Return a DWORD value, or None when absent or of another type."""
        try:
            with self._open_key(path, writable=False) as key:
                value, value_type = self._winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        if value_type != self._winreg.REG_DWORD:
            return None
        return int(value)

    @contextmanager
    def _open_key(self, path: str, *, writable: bool) -> Iterator:
        hive_name, subkey = split_key_path(path)
        hive = getattr(self._winreg, hive_name)
        access = self._winreg.KEY_READ | self._winreg.KEY_WOW64_64KEY
        if writable:
            access |= self._winreg.KEY_WRITE

        try:
            key = self._winreg.OpenKey(hive, subkey, 0, access)
        except FileNotFoundError:
            if not writable:
                raise
            key = self._winreg.CreateKeyEx(hive, subkey, 0, access)
        try:
            yield key
        finally:
            self._winreg.CloseKey(key)
