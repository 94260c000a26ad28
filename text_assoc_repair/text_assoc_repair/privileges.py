"""
Elevation checks for registry writes under HKEY_CLASSES_ROOT.
"""

from __future__ import annotations

import ctypes
import sys


def is_admin() -> bool:
    """Return True when the current process runs with administrator rights."""
    if sys.platform != "win32":
        return False
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        return False
