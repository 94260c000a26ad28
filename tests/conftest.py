"""Shared pytest fixtures: an in-memory winreg stand-in and a recording command runner."""

from __future__ import annotations

import copy
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

os.environ.setdefault("LOCALAPPDATA", tempfile.mkdtemp(prefix="text_assoc_repair_logs_"))

import pytest

from core.command_runner import CommandResult
from core.registry_store import RegistryStore, split_key_path
from core.settings import RepairSettings
from core.shell_refresh import ShellRefresher

EDITOR_PATH = r"C:\Windows\System32\notepad.exe"


@dataclass
class _FakeKey:
    ident: Tuple[str, str]
    writable: bool


class FakeWinreg:
    """Honours the subset of the winreg API that RegistryStore uses."""

    HKEY_CLASSES_ROOT = "HKEY_CLASSES_ROOT"
    HKEY_CURRENT_USER = "HKEY_CURRENT_USER"
    HKEY_LOCAL_MACHINE = "HKEY_LOCAL_MACHINE"
    HKEY_USERS = "HKEY_USERS"
    KEY_READ = 0x20019
    KEY_WRITE = 0x20006
    KEY_WOW64_64KEY = 0x0100
    REG_SZ = 1
    REG_DWORD = 4

    def __init__(self) -> None:
        self.keys: Dict[Tuple[str, str], Dict[str, Tuple[object, int]]] = {}
        self.denied: set[Tuple[str, str]] = set()
        self.access_log: List[int] = []
        self.open_handles = 0

    # winreg surface

    def OpenKey(self, hive, subkey, reserved=0, access=KEY_READ):
        self.access_log.append(access)
        ident = (hive, self._norm(subkey))
        if ident not in self.keys:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        writable = access & self.KEY_WRITE == self.KEY_WRITE
        if writable and ident in self.denied:
            raise PermissionError(5, "Access is denied")
        self.open_handles += 1
        return _FakeKey(ident, writable)

    def CreateKeyEx(self, hive, subkey, reserved=0, access=KEY_WRITE):
        self.access_log.append(access)
        ident = (hive, self._norm(subkey))
        if ident in self.denied:
            raise PermissionError(5, "Access is denied")
        parts = ident[1].split("\\")
        for depth in range(1, len(parts) + 1):
            self.keys.setdefault((hive, "\\".join(parts[:depth])), {})
        self.open_handles += 1
        return _FakeKey(ident, True)

    def QueryValueEx(self, key: _FakeKey, name):
        values = self.keys[key.ident]
        try:
            return values[(name or "").lower()]
        except KeyError:
            raise FileNotFoundError(2, "The system cannot find the file specified") from None

    def SetValueEx(self, key: _FakeKey, name, reserved, value_type, value) -> None:
        if not key.writable or key.ident in self.denied:
            raise PermissionError(5, "Access is denied")
        self.keys[key.ident][(name or "").lower()] = (value, value_type)

    def CloseKey(self, key: _FakeKey) -> None:
        self.open_handles -= 1

    # test helpers

    def set(self, path: str, name: str, value, value_type: int = REG_SZ) -> None:
        hive, subkey = split_key_path(path)
        key = self.CreateKeyEx(hive, subkey)
        self.SetValueEx(key, name, 0, value_type, value)
        self.CloseKey(key)

    def get(self, path: str, name: str = "") -> Optional[object]:
        values = self.keys.get(self._ident(path))
        if values is None or name.lower() not in values:
            return None
        return values[name.lower()][0]

    def has_key(self, path: str) -> bool:
        return self._ident(path) in self.keys

    def deny(self, path: str) -> None:
        self.denied.add(self._ident(path))

    def snapshot(self) -> Dict[Tuple[str, str], Dict[str, Tuple[object, int]]]:
        return copy.deepcopy(self.keys)

    def _ident(self, path: str) -> Tuple[str, str]:
        hive, subkey = split_key_path(path)
        return hive, self._norm(subkey)

    @staticmethod
    def _norm(subkey: str) -> str:
        return subkey.strip("\\").lower()


class FakeRunner:
    """Records every command; `reg export` writes a stub file unless the key is missing."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.missing_keys: set[str] = set()
        self.failures: Dict[Tuple[str, ...], CommandResult] = {}
        self.explorer_running = True

    def run(self, args: Sequence[str]) -> CommandResult:
        cmd = [str(arg) for arg in args]
        self.calls.append(cmd)
        for prefix, result in self.failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                return result

        if cmd[:2] == ["reg", "export"]:
            if cmd[2] in self.missing_keys:
                return CommandResult(1, "", "ERROR: The system was unable to find the specified registry key or value.")
            Path(cmd[3]).write_text("Windows Registry Editor Version 5.00\r\n", encoding="utf-16")
            return CommandResult(0, "The operation completed successfully.")
        if cmd[0] == "tasklist":
            if self.explorer_running:
                return CommandResult(0, "explorer.exe                  4242 Console                    1     98,120 K")
            return CommandResult(0, "INFO: No tasks are running which match the specified criteria.")
        if cmd[:2] == ["cmd", "/c"] and cmd[2] in ("assoc", "ftype"):
            return CommandResult(0, " ".join(cmd[3:]))
        return CommandResult(0)

    def calls_to(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]


@pytest.fixture
def fake_winreg() -> FakeWinreg:
    return FakeWinreg()


@pytest.fixture
def registry(fake_winreg: FakeWinreg) -> RegistryStore:
    return RegistryStore(winreg_module=fake_winreg)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def refresher(runner: FakeRunner) -> ShellRefresher:
    return ShellRefresher(runner, sleep=lambda _seconds: None)


@pytest.fixture
def settings(tmp_path: Path) -> RepairSettings:
    return RepairSettings(editor_path=EDITOR_PATH, backup_dir=tmp_path / "RegistryBackups")
