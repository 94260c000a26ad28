"""
Logging setup for the association repair tool.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path(os.environ.get("LOCALAPPDATA", str(Path.home() / "AppData" / "Local"))) / "Text Association Repair"
DEFAULT_LOG_PATH = LOG_DIR / "repair.log"
_CONSOLE_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"


def configure(log_path: Optional[Path] = None, *, verbose: bool = False) -> None:
    """
    Configure loguru for the tool.

    The console sink carries the operator transcript; the file sink keeps a
    DEBUG-level copy of every run. Configuration happens only once.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = log_path or DEFAULT_LOG_PATH

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=_CONSOLE_FORMAT, colorize=True)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            target,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
        )
    except OSError as exc:
        _logger.warning("Unable to open log file {}: {}", target, exc)
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
