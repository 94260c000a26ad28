"""
Association data shared by the backup, repair, and verification stages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".txt", ".log", ".cfg", ".ini", ".nfo")
DEFAULT_PROG_ID = "txtfile"
PRIMARY_EXTENSION = ".txt"
ARGUMENT_PLACEHOLDER = "%1"

_EXTENSION_RE = re.compile(r"^\.[a-z0-9][a-z0-9_+\-]*$")


def normalize_extension(value: str) -> str:
    """Lowercase an extension and make sure it carries a leading dot."""
    ext = (value or "").strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    if not _EXTENSION_RE.match(ext):
        raise ValueError(f"Invalid file extension: {value!r}")
    return ext


class ExtensionSet:
    """Ordered, immutable collection of extensions handled in a run."""

    __slots__ = ("_items",)

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> None:
        items: list[str] = []
        for raw in extensions:
            ext = normalize_extension(raw)
            if ext in items:
                raise ValueError(f"Duplicate extension: {ext}")
            items.append(ext)
        if not items:
            raise ValueError("At least one extension is required.")
        self._items: Tuple[str, ...] = tuple(items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExtensionSet):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"ExtensionSet({list(self._items)!r})"

    def targets(self, prog_id: str) -> Tuple["AssociationTarget", ...]:
        return tuple(AssociationTarget(extension=ext, prog_id=prog_id) for ext in self._items)


@dataclass(frozen=True)
class AssociationTarget:
    """Binding of one extension to the shared program identifier."""

    extension: str
    prog_id: str


@dataclass(frozen=True)
class ProgramIdentifierCommand:
    """The open command stored under the shared program identifier."""

    prog_id: str
    editor_path: str

    @property
    def command(self) -> str:
        return f"{self.editor_path} {ARGUMENT_PLACEHOLDER}"
