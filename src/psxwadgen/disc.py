"""PlayStation Doom disc directory layout.

The converter takes the ``PSXDOOM`` directory of a mounted disc or an
extracted image. It must contain ``ABIN`` (holding ``PSXDOOM.WAD``),
``CDAUDIO`` and the ``MAPDIR*`` folders with one WAD per level. Final
Doom ships its levels as ``.ROM`` files instead, using the indexed sector
and sidedef layouts.

Directory and file name matching is case-insensitive because disc images
are frequently extracted with inconsistent case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List

from .level.errors import E_INPUT_DIR, E_NOT_FOUND, DiscLayoutError

__all__ = ["DiscLayout", "find_canonical"]

IWAD_NAME = "PSXDOOM.WAD"


def find_canonical(directory: Path, name: str) -> Path | None:
    """Return the entry of ``directory`` matching ``name`` ignoring case."""
    wanted = name.lower()
    for child in sorted(directory.iterdir()):
        if child.name.lower() == wanted:
            return child
    return None


def _has_suffix(path: Path, suffix: str) -> bool:
    return path.is_file() and path.name.lower().endswith(suffix.lower())


@dataclass(slots=True)
class DiscLayout:
    root: Path
    abin: Path
    cdaudio: Path
    map_dirs: List[Path] = field(default_factory=list)
    is_final_doom: bool = False

    @classmethod
    def open(cls, root: str | Path) -> "DiscLayout":
        root = Path(root)
        if not root.is_dir():
            raise DiscLayoutError(
                E_INPUT_DIR, f"cannot open input directory '{root}'"
            )
        abin = cdaudio = mapdir0 = None
        map_dirs: List[Path] = []
        for child in sorted(root.iterdir()):
            if not child.is_dir():
                continue
            lower = child.name.lower()
            if lower == "abin":
                abin = child
            elif lower == "cdaudio":
                cdaudio = child
            if lower.startswith("mapdir"):
                map_dirs.append(child)
                if lower == "mapdir0":
                    mapdir0 = child
        if abin is None or cdaudio is None or mapdir0 is None:
            raise DiscLayoutError(
                E_INPUT_DIR,
                f"'{root}' is not a PSX Doom root directory",
                {
                    "abin": abin is not None,
                    "cdaudio": cdaudio is not None,
                    "mapdir0": mapdir0 is not None,
                },
            )
        final_doom = any(_has_suffix(p, ".rom") for p in mapdir0.iterdir())
        return cls(
            root=root,
            abin=abin,
            cdaudio=cdaudio,
            map_dirs=map_dirs,
            is_final_doom=final_doom,
        )

    @property
    def map_extension(self) -> str:
        return ".rom" if self.is_final_doom else ".wad"

    def iwad_path(self) -> Path:
        found = find_canonical(self.abin, IWAD_NAME)
        if found is None or not found.is_file():
            raise DiscLayoutError(
                E_NOT_FOUND, f"{IWAD_NAME} not found in '{self.abin}'"
            )
        return found

    def map_files(self) -> Iterator[Path]:
        ext = self.map_extension
        for map_dir in self.map_dirs:
            for path in sorted(map_dir.iterdir(), key=lambda p: p.name.lower()):
                if _has_suffix(path, ext):
                    yield path
