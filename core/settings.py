"""
Run configuration for the association repair.

Defaults can be overridden by an optional HKCU policy key and then by
command-line values.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from core.registry_store import RegistryStore
from shared.association_model import (
    DEFAULT_EXTENSIONS,
    DEFAULT_PROG_ID,
    PRIMARY_EXTENSION,
    ExtensionSet,
    normalize_extension,
)
from text_assoc_repair.text_assoc_repair import logger as app_logger

POLICY_KEY = r"HKCU\Software\TextAssocRepair"
BACKUP_DIR_ENV = "TEXT_ASSOC_REPAIR_BACKUP_DIR"
BACKUP_DIR_NAME = "RegistryBackups"


def tool_directory() -> Path:
    """
    Directory the tool was launched from.

    For a frozen build this is the executable's folder; for the installed
    console script it is the folder holding the launcher (Python's Scripts
    directory), so packaged installs usually pass --backup-dir.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0] or ".").resolve().parent


def default_backup_dir() -> Path:
    override = os.environ.get(BACKUP_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return tool_directory() / BACKUP_DIR_NAME


def default_editor_path() -> str:
    system_root = os.environ.get("SystemRoot") or os.environ.get("WINDIR") or r"C:\Windows"
    return system_root.rstrip("\\") + r"\System32\notepad.exe"


@dataclass(eq=True)
class RepairSettings:
    extensions: ExtensionSet = field(default_factory=lambda: ExtensionSet(DEFAULT_EXTENSIONS))
    prog_id: str = DEFAULT_PROG_ID
    primary_extension: str = PRIMARY_EXTENSION
    editor_path: str = field(default_factory=default_editor_path)
    backup_dir: Path = field(default_factory=default_backup_dir)
    skip_shell_restart: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.extensions, ExtensionSet):
            self.extensions = ExtensionSet(self.extensions)
        self.primary_extension = normalize_extension(self.primary_extension)
        if self.primary_extension not in self.extensions:
            raise ValueError(f"Primary extension {self.primary_extension} is not in {self.extensions!r}")
        self.backup_dir = Path(self.backup_dir)


class SettingsManager:
    """Builds RepairSettings, consulting the policy key when a registry is available."""

    def __init__(self, registry: Optional[RegistryStore] = None) -> None:
        self.registry = registry
        self._logger = app_logger.get_logger()

    def read_settings(
        self,
        *,
        skip_shell_restart: Optional[bool] = None,
        backup_dir: Optional[Path] = None,
    ) -> RepairSettings:
        settings = RepairSettings()

        policy_skip = self._read_policy_bool("SkipShellRestart")
        if policy_skip is not None:
            settings.skip_shell_restart = policy_skip

        if skip_shell_restart:
            settings.skip_shell_restart = True
        if backup_dir is not None:
            settings.backup_dir = Path(backup_dir)
        return settings

    def _read_policy_bool(self, name: str) -> Optional[bool]:
        if self.registry is None:
            return None
        try:
            raw = self.registry.read_dword(POLICY_KEY, name)
            present = raw is not None or self.registry.read_value(POLICY_KEY, name) is not None
        except OSError as exc:
            self._logger.warning("Unable to read policy value {}: {}", name, exc)
            return None
        if raw is None:
            if present:
                self._logger.warning("Policy value {} has unexpected type; ignoring.", name)
            return None
        return bool(raw)
