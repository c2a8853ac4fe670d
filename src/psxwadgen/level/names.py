"""Index -> name tables for Final Doom's indexed map lumps."""

from __future__ import annotations

from typing import Iterable, List

from ..wad import NS_FLATS, NS_TEXTURES, WadDirectory
from .layout import pack_lump_name

__all__ = ["NameTable", "build_name_tables"]


class NameTable:
    """Append-only list of lump names addressed by zero-based index.

    Lookups outside the table resolve to an empty name.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        for name in names:
            self.append(name)

    @classmethod
    def from_namespace(cls, directory: WadDirectory, namespace: str) -> "NameTable":
        return cls(lump.name for lump in directory.enumerate(namespace))

    def append(self, name: str) -> int:
        self._names.append(name.upper()[:8])
        return len(self._names) - 1

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(self._names)

    def lookup(self, index: int) -> str:
        if 0 <= index < len(self._names):
            return self._names[index]
        return ""

    def lookup_padded(self, index: int) -> bytes:
        return pack_lump_name(self.lookup(index))


def build_name_tables(iwad: WadDirectory) -> tuple[NameTable, NameTable]:
    """Return ``(textures, flats)`` tables scanned from ``iwad``."""
    return (
        NameTable.from_namespace(iwad, NS_TEXTURES),
        NameTable.from_namespace(iwad, NS_FLATS),
    )
