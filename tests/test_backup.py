"""Tests for the .reg backup exporter."""

from datetime import datetime
from pathlib import Path

from core.backup import (
    BACKUP_PREFIX,
    BackupExporter,
    backup_file_name,
    backup_targets,
    sanitize_label,
)
from core.command_runner import CommandResult
from shared.association_model import DEFAULT_EXTENSIONS

STAMP = datetime(2026, 10, 19, 13, 5, 9)
FILE_EXTS = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Explorer\FileExts"


def test_backup_targets_order_and_count() -> None:
    targets = backup_targets(DEFAULT_EXTENSIONS, "txtfile")

    assert len(targets) == 2 * len(DEFAULT_EXTENSIONS) + 1
    assert [key for key, _ in targets[:5]] == [rf"HKCR\{ext}" for ext in DEFAULT_EXTENSIONS]
    assert targets[5] == (r"HKCR\txtfile", "txtfile")
    assert [key for key, _ in targets[6:]] == [rf"{FILE_EXTS}\{ext}" for ext in DEFAULT_EXTENSIONS]
    assert targets[6][1] == "FileExts_txt"


def test_labels_are_sanitised() -> None:
    assert sanitize_label(".txt") == "txt"
    assert sanitize_label("my prog:id") == "myprogid"
    assert sanitize_label("...") == "key"


def test_backup_file_name_format() -> None:
    assert backup_file_name("txt", STAMP) == "assoc_backup_txt_20261019_130509.reg"


def test_export_all_creates_directory_and_writes_every_target(runner, tmp_path: Path) -> None:
    backup_dir = tmp_path / "nested" / "RegistryBackups"
    exporter = BackupExporter(runner, backup_dir)

    records = exporter.export_all(DEFAULT_EXTENSIONS, "txtfile", timestamp=STAMP)

    assert len(records) == 11
    assert all(record.succeeded for record in records)
    assert sorted(path.name for path in backup_dir.iterdir()) == sorted(record.destination.name for record in records)
    first = runner.calls_to("reg", "export")[0]
    assert first == ["reg", "export", r"HKCR\.txt", str(backup_dir / "assoc_backup_txt_20261019_130509.reg"), "/y"]


def test_missing_key_does_not_stop_later_exports(runner, tmp_path: Path) -> None:
    runner.missing_keys.add(r"HKCR\.cfg")
    runner.missing_keys.add(rf"{FILE_EXTS}\.nfo")
    exporter = BackupExporter(runner, tmp_path)

    records = exporter.export_all(DEFAULT_EXTENSIONS, "txtfile", timestamp=STAMP)

    assert len(runner.calls_to("reg", "export")) == 11
    failed = [record.source_key for record in records if not record.succeeded]
    assert failed == [r"HKCR\.cfg", rf"{FILE_EXTS}\.nfo"]
    assert len(list(tmp_path.glob(f"{BACKUP_PREFIX}*.reg"))) == 9


def test_export_records_launch_failure(mocker, tmp_path: Path) -> None:
    runner = mocker.Mock()
    runner.run.return_value = CommandResult(None, "", "[WinError 2] The system cannot find the file specified")
    exporter = BackupExporter(runner, tmp_path)

    record = exporter.export(r"HKCR\.txt", tmp_path / "out.reg")

    assert record.exit_status is None
    assert record.succeeded is False
    assert record.source_key == r"HKCR\.txt"
