"""WAD directory reader.

Parses the IWAD/PWAD header and lump directory of a PlayStation Doom WAD
and exposes lumps grouped by namespace, in on-disk order. Payloads are
only read when a lump is fetched.

PSX WADs flag compressed lumps by setting the high bit of the first name
byte. The flag is preserved on :class:`LumpInfo`; fetching such a lump
raises :class:`SourceError` since decompression is handled elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Tuple
import struct

from .level.constants import (
    LUMP_NAME_SIZE,
    WAD_DIRECTORY_ENTRY_SIZE,
    WAD_HEADER_SIZE,
    WAD_MAGIC_IWAD,
    WAD_MAGIC_PWAD,
)
from .level.errors import (
    E_BAD_WAD,
    E_COMPRESSED_LUMP,
    E_SOURCE_IO,
    SourceError,
)
from .utils.io import safe_read_file

__all__ = [
    "NS_GLOBAL",
    "NS_SPRITES",
    "NS_FLATS",
    "NS_TEXTURES",
    "LumpInfo",
    "WadDirectory",
]

NS_GLOBAL = "global"
NS_SPRITES = "sprites"
NS_FLATS = "flats"
NS_TEXTURES = "textures"

# marker name -> (namespace, opens)
_MARKERS: Dict[str, Tuple[str, bool]] = {
    "S_START": (NS_SPRITES, True),
    "SS_START": (NS_SPRITES, True),
    "S_END": (NS_SPRITES, False),
    "SS_END": (NS_SPRITES, False),
    "F_START": (NS_FLATS, True),
    "FF_START": (NS_FLATS, True),
    "F_END": (NS_FLATS, False),
    "FF_END": (NS_FLATS, False),
    "T_START": (NS_TEXTURES, True),
    "TT_START": (NS_TEXTURES, True),
    "T_END": (NS_TEXTURES, False),
    "TT_END": (NS_TEXTURES, False),
}


@dataclass(frozen=True, slots=True)
class LumpInfo:
    name: str
    size: int
    position: int
    index: int
    namespace: str = NS_GLOBAL
    compressed: bool = False
    # name field as stored, compression bit cleared
    raw_name: bytes = b""


def _decode_name(raw: bytes) -> Tuple[str, bytes, bool]:
    compressed = bool(raw[0] & 0x80)
    cleaned = bytes([raw[0] & 0x7F]) + raw[1:]
    name = cleaned.split(b"\x00", 1)[0].decode("ascii", errors="replace")
    return name.upper(), cleaned, compressed


class WadDirectory:
    """In-memory view of a WAD file's directory."""

    def __init__(self, data: bytes, *, label: str = "<memory>"):
        self.label = label
        self._data = data
        self.magic, self.lumps = self._parse(data)

    @classmethod
    def from_bytes(cls, data: bytes, *, label: str = "<memory>") -> "WadDirectory":
        return cls(bytes(data), label=label)

    @classmethod
    def from_file(cls, path: str | Path) -> "WadDirectory":
        p = Path(path)
        try:
            data = safe_read_file(p)
        except OSError as exc:
            raise SourceError(
                E_SOURCE_IO, f"cannot open '{p}'", {"error": str(exc)}
            ) from exc
        return cls(data, label=str(p))

    def _parse(self, data: bytes) -> Tuple[bytes, List[LumpInfo]]:
        if len(data) < WAD_HEADER_SIZE:
            raise SourceError(
                E_BAD_WAD, f"{self.label}: file too small for WAD header"
            )
        magic, numlumps, infotableofs = struct.unpack_from("<4sii", data, 0)
        if magic not in (WAD_MAGIC_IWAD, WAD_MAGIC_PWAD):
            raise SourceError(
                E_BAD_WAD, f"{self.label}: not a WAD file", {"magic": magic.hex()}
            )
        dir_end = infotableofs + numlumps * WAD_DIRECTORY_ENTRY_SIZE
        if numlumps < 0 or infotableofs < 0 or dir_end > len(data):
            raise SourceError(
                E_BAD_WAD,
                f"{self.label}: directory out of range",
                {"numlumps": numlumps, "infotableofs": infotableofs},
            )
        lumps: List[LumpInfo] = []
        namespace = NS_GLOBAL
        for i in range(numlumps):
            e_off = infotableofs + i * WAD_DIRECTORY_ENTRY_SIZE
            filepos, size = struct.unpack_from("<ii", data, e_off)
            name, raw_name, compressed = _decode_name(
                data[e_off + 8 : e_off + 8 + LUMP_NAME_SIZE]
            )
            marker = _MARKERS.get(name)
            if marker is not None:
                ns, opens = marker
                namespace = ns if opens else NS_GLOBAL
                lump_ns = NS_GLOBAL
            else:
                lump_ns = namespace
            if size < 0 or (size and (filepos < 0 or filepos + size > len(data))):
                raise SourceError(
                    E_BAD_WAD,
                    f"{self.label}: lump {name} out of range",
                    {"index": i, "filepos": filepos, "size": size},
                )
            lumps.append(
                LumpInfo(
                    name=name,
                    size=size,
                    position=filepos,
                    index=i,
                    namespace=lump_ns,
                    compressed=compressed,
                    raw_name=raw_name,
                )
            )
        return magic, lumps

    def __len__(self) -> int:
        return len(self.lumps)

    def __iter__(self) -> Iterator[LumpInfo]:
        return iter(self.lumps)

    def enumerate(self, namespace: str = NS_GLOBAL) -> List[LumpInfo]:
        return [l for l in self.lumps if l.namespace == namespace]

    def find(self, name: str, namespace: str = NS_GLOBAL) -> LumpInfo | None:
        wanted = name.upper()
        found = None
        for lump in self.lumps:
            if lump.namespace == namespace and lump.name == wanted:
                found = lump  # last one wins
        return found

    def fetch(self, lump: LumpInfo) -> bytes:
        if lump.compressed:
            raise SourceError(
                E_COMPRESSED_LUMP,
                f"{self.label}: lump {lump.name} is compressed",
                {"index": lump.index},
            )
        return self._data[lump.position : lump.position + lump.size]
