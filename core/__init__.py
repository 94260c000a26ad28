"""
Core helpers for backing up and repairing text file associations.
"""

from .app import RepairCoordinator  # noqa: F401
from .registry_store import RegistryStore  # noqa: F401
