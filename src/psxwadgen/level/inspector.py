"""Flat container inspection utilities.

Public functions:
- inspect_wad(path_or_bytes) -> dict
- validate_wad(info) -> list[str]
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List
import struct
import zlib

from ..utils.io import safe_read_file
from .constants import (
    WAD_DIRECTORY_ENTRY_SIZE,
    WAD_HEADER_SIZE,
    WAD_MAGIC_IWAD,
    WAD_MAGIC_PWAD,
)
from .errors import E_BAD_WAD, E_SOURCE_IO, SourceError
from .layout import unpack_lump_name

__all__ = [
    "DirectoryEntry",
    "parse_header",
    "parse_directory",
    "inspect_wad",
    "validate_wad",
    "coverage_gaps",
]


@dataclass(slots=True)
class DirectoryEntry:
    index: int
    name: str
    offset: int
    size: int


def _read_exact(data: bytes, offset: int, size: int, label: str) -> bytes:
    end = offset + size
    if offset < 0 or end > len(data):
        raise SourceError(
            E_BAD_WAD,
            f"out of range read for {label}: {offset}+{size}>{len(data)}",
        )
    return data[offset:end]


def parse_header(data: bytes) -> Dict[str, Any]:
    raw = _read_exact(data, 0, WAD_HEADER_SIZE, "header")
    magic, numlumps, infotableofs = struct.unpack_from("<4sii", raw, 0)
    return {
        "magic": magic.decode("ascii", errors="replace"),
        "magic_ok": magic in (WAD_MAGIC_PWAD, WAD_MAGIC_IWAD),
        "numlumps": numlumps,
        "infotableofs": infotableofs,
    }


def parse_directory(data: bytes, header: Dict[str, Any]) -> List[DirectoryEntry]:
    entries: List[DirectoryEntry] = []
    base = header["infotableofs"]
    for i in range(header["numlumps"]):
        raw = _read_exact(
            data, base + i * WAD_DIRECTORY_ENTRY_SIZE, WAD_DIRECTORY_ENTRY_SIZE, f"dir[{i}]"
        )
        offset, size = struct.unpack_from("<ii", raw, 0)
        entries.append(DirectoryEntry(i, unpack_lump_name(raw[8:16]), offset, size))
    return entries


def coverage_gaps(file_size: int, ranges: List[tuple[int, int]]) -> List[str]:
    """Report gaps and overlaps when ``ranges`` should tile ``[0, file_size)``.

    Zero-length ranges occupy no bytes and are ignored.
    """
    issues: List[str] = []
    cursor = 0
    for start, end in sorted(r for r in ranges if r[1] > r[0]):
        if start > cursor:
            issues.append(f"Gap {cursor}..{start}")
        elif start < cursor:
            issues.append(f"Overlap at {start} (covered up to {cursor})")
        cursor = max(cursor, end)
    if cursor < file_size:
        issues.append(f"Gap {cursor}..{file_size}")
    elif cursor > file_size:
        issues.append(f"Range beyond end of file ({cursor}>{file_size})")
    return issues


def inspect_wad(source: str | Path | bytes) -> Dict[str, Any]:
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        try:
            data = safe_read_file(Path(source))
        except OSError as exc:
            raise SourceError(
                E_SOURCE_IO, f"cannot open '{source}'", {"error": str(exc)}
            ) from exc
    header = parse_header(data)
    entries = parse_directory(data, header)
    return {
        "file_size": len(data),
        "crc32": zlib.crc32(data) & 0xFFFFFFFF,
        "header": header,
        "directory_entries": [asdict(e) for e in entries],
    }


def validate_wad(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    header = info["header"]
    if not header["magic_ok"]:
        issues.append("Header magic mismatch")
    if header["infotableofs"] != WAD_HEADER_SIZE:
        issues.append(
            f"Directory offset {header['infotableofs']} != {WAD_HEADER_SIZE}"
        )
    file_size = info["file_size"]
    entries = info["directory_entries"]
    ranges = [
        (0, WAD_HEADER_SIZE),
        (
            header["infotableofs"],
            header["infotableofs"] + WAD_DIRECTORY_ENTRY_SIZE * len(entries),
        ),
    ]
    for e in entries:
        if e["offset"] < 0 or e["size"] < 0:
            issues.append(f"Lump {e['name']} has negative offset/size")
            continue
        if e["offset"] + e["size"] > file_size:
            issues.append(f"Lump {e['name']} exceeds file size")
        ranges.append((e["offset"], e["offset"] + e["size"]))
    issues.extend(coverage_gaps(file_size, ranges))
    return issues
