"""
Exports the association keys to timestamped .reg files before they change.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Tuple

from core.command_runner import CommandRunner
from core.registry_store import class_root_key, file_exts_key
from shared.run_report import BackupRecord
from text_assoc_repair.text_assoc_repair import logger as app_logger

BACKUP_PREFIX = "assoc_backup_"
BACKUP_SUFFIX = ".reg"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def sanitize_label(value: str) -> str:
    cleaned = "".join(ch for ch in value if ch.isalnum() or ch in ("-", "_"))
    return cleaned or "key"


def backup_targets(extensions: Iterable[str], prog_id: str) -> List[Tuple[str, str]]:
    """
    Return (key path, file label) pairs in export order.

    Class-root keys for every extension come first, then the program
    identifier once, then the per-user FileExts overrides.
    """
    extensions = list(extensions)
    targets = [(class_root_key(ext), sanitize_label(ext)) for ext in extensions]
    targets.append((class_root_key(prog_id), sanitize_label(prog_id)))
    targets.extend((file_exts_key(ext), f"FileExts_{sanitize_label(ext)}") for ext in extensions)
    return targets


def backup_file_name(label: str, timestamp: datetime) -> str:
    return f"{BACKUP_PREFIX}{label}_{timestamp.strftime(TIMESTAMP_FORMAT)}{BACKUP_SUFFIX}"


class BackupExporter:
    """Wraps ``reg export`` so every attempt yields a BackupRecord."""

    def __init__(self, runner: CommandRunner, backup_dir: Path) -> None:
        self.runner = runner
        self.backup_dir = Path(backup_dir)
        self._logger = app_logger.get_logger()

    def export(self, key_path: str, destination: Path) -> BackupRecord:
        result = self.runner.run(["reg", "export", key_path, str(destination), "/y"])
        if result.ok:
            self._logger.info("Backed up {} to {}", key_path, destination.name)
        else:
            self._logger.warning(
                "Could not back up {} (key may not exist): {}",
                key_path,
                result.describe(),
            )
        return BackupRecord(source_key=key_path, destination=destination, exit_status=result.returncode)

    def export_all(self, extensions: Iterable[str], prog_id: str, *, timestamp: datetime) -> List[BackupRecord]:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._logger.error("Unable to create backup directory {}: {}", self.backup_dir, exc)
        self._logger.info("Backing up association keys to {}", self.backup_dir)

        records = []
        for key_path, label in backup_targets(extensions, prog_id):
            destination = self.backup_dir / backup_file_name(label, timestamp)
            records.append(self.export(key_path, destination))
        return records
