"""
Entry point for the text association repair tool.
"""

from __future__ import annotations

import argparse
import ctypes
import sys
from pathlib import Path
from typing import Optional, Sequence

from core.app import APP_NAME, APP_VERSION, RepairCoordinator
from core.registry_store import RegistryStore
from core.settings import SettingsManager
from text_assoc_repair.text_assoc_repair import logger as app_logger
from text_assoc_repair.text_assoc_repair.privileges import is_admin

_MUTEX_NAME = "Global\\TextAssocRepairMutex"
_ERROR_ALREADY_EXISTS = 183


class _InstanceGuard:
    """Named mutex guard so two repairs never interleave registry writes."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._handle = None
        self._kernel32 = ctypes.WinDLL("kernel32", use_last_error=True) if sys.platform == "win32" else None

    def acquire(self) -> bool:
        if self._kernel32 is None:
            return True
        ctypes.set_last_error(0)
        handle = self._kernel32.CreateMutexW(None, False, self._name)
        if not handle:
            return True
        if ctypes.get_last_error() == _ERROR_ALREADY_EXISTS:
            self._kernel32.CloseHandle(handle)
            return False
        self._handle = handle
        return True

    def release(self) -> None:
        if self._kernel32 is None or not self._handle:
            return
        self._kernel32.ReleaseMutex(self._handle)
        self._kernel32.CloseHandle(self._handle)
        self._handle = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="text-assoc-repair",
        description="Back up and repair text file associations so they open in Notepad.",
    )
    parser.add_argument(
        "--skip-shell-restart",
        action="store_true",
        help="Do not restart explorer.exe after repairing (log off or restart it manually).",
    )
    parser.add_argument(
        "--backup-dir",
        type=Path,
        default=None,
        help=(
            "Directory for the exported .reg backups (default: RegistryBackups in the folder the "
            "tool was launched from, i.e. Python's Scripts folder for a pip-installed command)."
        ),
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any repair, verification or restart step failed.",
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug output on the console.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the repair once and return the process exit code."""
    args = build_parser().parse_args(argv)
    app_logger.configure(verbose=args.verbose)
    logger = app_logger.get_logger()

    try:
        registry = RegistryStore()
    except RuntimeError as exc:
        logger.error("{} requires Windows: {}", APP_NAME, exc)
        return 1

    guard = _InstanceGuard(_MUTEX_NAME)
    if not guard.acquire():
        logger.error("Another {} run is in progress.", APP_NAME)
        return 1

    try:
        if not is_admin():
            logger.warning("Not running as administrator; writes under HKEY_CLASSES_ROOT will likely fail.")

        settings = SettingsManager(registry).read_settings(
            skip_shell_restart=args.skip_shell_restart,
            backup_dir=args.backup_dir,
        )
        report = RepairCoordinator(settings, registry=registry).run()
    finally:
        guard.release()

    if args.strict and report.failed_changes:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
