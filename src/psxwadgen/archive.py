"""Deferred ZIP archive builder.

Entries are accumulated in insertion order and nothing is serialised
until :meth:`ZipArchive.to_bytes` (or :meth:`ZipArchive.write`). Output
happens in two ordered passes over the same entry list:

1. local file headers + payloads; CRC-32 over the raw bytes and the
   optional raw-deflate compression are computed here,
2. central directory records reusing the values from pass one,

followed by the end-of-central-directory record. Every entry carries the
same synthetic DOS time/date stamp so output is reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List
import struct
import zlib

from .level.errors import (
    E_ARCHIVE_LIMIT,
    E_COMPRESS,
    E_CONFIG,
    ArchiveError,
    SizeError,
)
from .logging import get_logger
from .reporting import TaskStatus, get_reporter
from .utils.io import atomic_write_bytes

__all__ = [
    "ZipEntryKind",
    "ZipEntry",
    "ZipArchive",
    "compress_raw_deflate",
    "DOS_TIME",
    "DOS_DATE",
]

LOCAL_HEADER_SIG = 0x04034B50
CENTRAL_HEADER_SIG = 0x02014B50
END_OF_DIR_SIG = 0x06054B50

VERSION_MADE_BY = 0x0B14
VERSION_DEFLATE = 0x14  # 2.0
VERSION_STORE = 0x0A  # 1.0

METHOD_STORE = 0
METHOD_DEFLATE = 8
FLAG_MAX_COMPRESSION = 0x0002
FLAG_UTF8 = 0x0800

# 01:01:00 and 1995-11-16
DOS_TIME = (1 << 5) | (1 << 11)
DOS_DATE = 16 | (11 << 5) | (15 << 9)

_LOCAL = struct.Struct("<IHHHHHIIIHH")
_CENTRAL = struct.Struct("<IHHHHHHIIIHHHHHII")
_END = struct.Struct("<IHHHHIIH")

_MAX_U16 = 0xFFFF
_MAX_U32 = 0xFFFFFFFF


class ZipEntryKind(Enum):
    BINARY = "binary"
    TEXT = "text"
    DIRECTORY = "directory"


_ATTRIBUTES = {
    # kind: (internal, external)
    ZipEntryKind.BINARY: (0x00, 0x20),
    ZipEntryKind.TEXT: (0x01, 0x20),
    ZipEntryKind.DIRECTORY: (0x00, 0x10),
}


@dataclass(slots=True)
class ZipEntry:
    name: str
    data: bytes | None
    kind: ZipEntryKind
    deflate: bool
    # filled in during serialisation
    crc32: int = 0
    compressed_length: int = 0
    offset: int = 0
    method: int = METHOD_STORE

    @property
    def length(self) -> int:
        return len(self.data) if self.data else 0

    @property
    def flags(self) -> int:
        bits = FLAG_MAX_COMPRESSION if self.method == METHOD_DEFLATE else 0
        if not self.name.isascii():
            bits |= FLAG_UTF8
        return bits

    @property
    def wants_deflate(self) -> bool:
        return (
            self.deflate
            and self.kind is not ZipEntryKind.DIRECTORY
            and self.length > 0
        )


def compress_raw_deflate(data: bytes) -> bytes:
    """Deflate ``data`` at maximum compression without a zlib wrapper."""
    try:
        co = zlib.compressobj(
            zlib.Z_BEST_COMPRESSION, zlib.DEFLATED, -zlib.MAX_WBITS, 9
        )
        return co.compress(data) + co.flush()
    except zlib.error as exc:
        raise SizeError(E_COMPRESS, f"deflate failed: {exc}") from exc


class ZipArchive:
    """Append-only list of archive entries with deferred serialisation."""

    def __init__(self, filename: str | Path | None = None):
        self.filename = Path(filename) if filename is not None else None
        self._entries: List[ZipEntry] = []
        self.directory_offset = 0
        self.directory_length = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ZipEntry]:
        return iter(self._entries)

    def add_file(
        self,
        name: str,
        data: bytes | None,
        kind: ZipEntryKind = ZipEntryKind.BINARY,
        deflate: bool = True,
    ) -> ZipEntry:
        if len(self._entries) >= _MAX_U16:
            raise ArchiveError(
                E_ARCHIVE_LIMIT, "too many archive entries", {"limit": _MAX_U16}
            )
        if kind is ZipEntryKind.DIRECTORY:
            data, deflate = None, False
        entry = ZipEntry(
            name=name,
            data=bytes(data) if data is not None else None,
            kind=kind,
            deflate=deflate,
        )
        self._entries.append(entry)
        return entry

    def add_directory(self, name: str) -> ZipEntry:
        if not name.endswith("/"):
            name += "/"
        return self.add_file(name, None, ZipEntryKind.DIRECTORY, deflate=False)

    @property
    def version_needed(self) -> int:
        if any(e.wants_deflate for e in self._entries):
            return VERSION_DEFLATE
        return VERSION_STORE

    # Serialisation -----------------------------------------------------------
    def _write_local(self, entry: ZipEntry, out: bytearray, version: int) -> None:
        raw = entry.data or b""
        entry.offset = len(out)
        entry.crc32 = zlib.crc32(raw) & _MAX_U32 if raw else 0
        if entry.wants_deflate:
            entry.method = METHOD_DEFLATE
            payload = compress_raw_deflate(raw)
        else:
            entry.method = METHOD_STORE
            payload = raw
        entry.compressed_length = len(payload)
        if (
            entry.length > _MAX_U32
            or entry.compressed_length > _MAX_U32
            or entry.offset > _MAX_U32
        ):
            raise SizeError(
                E_ARCHIVE_LIMIT,
                f"entry {entry.name} exceeds 32-bit zip limits",
                {"offset": entry.offset, "length": entry.length},
            )
        name = entry.name.encode("utf-8")
        out += _LOCAL.pack(
            LOCAL_HEADER_SIG,
            version,
            entry.flags,
            entry.method,
            DOS_TIME,
            DOS_DATE,
            entry.crc32,
            entry.compressed_length,
            entry.length,
            len(name),
            0,
        )
        out += name
        out += payload

    def _write_central(self, entry: ZipEntry, out: bytearray, version: int) -> int:
        name = entry.name.encode("utf-8")
        internal, external = _ATTRIBUTES[entry.kind]
        out += _CENTRAL.pack(
            CENTRAL_HEADER_SIG,
            VERSION_MADE_BY,
            version,
            entry.flags,
            entry.method,
            DOS_TIME,
            DOS_DATE,
            entry.crc32,
            entry.compressed_length,
            entry.length,
            len(name),
            0,  # extra field length
            0,  # comment length
            0,  # disk number start
            internal,
            external,
            entry.offset,
        )
        out += name
        return _CENTRAL.size + len(name)

    def to_bytes(self) -> bytes:
        rep = get_reporter()
        out = bytearray()
        version = self.version_needed
        rep.start_task("zip.entries", "Archive entries", total=len(self._entries))
        try:
            for entry in self._entries:
                self._write_local(entry, out, version)
                rep.advance("zip.entries", current_item=entry.name)
        except Exception:
            rep.end_task("zip.entries", TaskStatus.FAILED)
            raise
        rep.end_task("zip.entries", entries=len(self._entries), bytes=len(out))

        self.directory_offset = len(out)
        if self.directory_offset > _MAX_U32:
            raise SizeError(E_ARCHIVE_LIMIT, "archive exceeds 4 GiB")
        self.directory_length = 0
        for entry in self._entries:
            self.directory_length += self._write_central(entry, out, version)

        count = len(self._entries)
        out += _END.pack(
            END_OF_DIR_SIG,
            0,
            0,
            count,
            count,
            self.directory_length,
            self.directory_offset,
            0,
        )
        get_logger().debug(
            "archive: %d entries, central directory %d bytes at %d",
            count,
            self.directory_length,
            self.directory_offset,
        )
        return bytes(out)

    def write(self, path: str | Path | None = None) -> int:
        target = Path(path) if path is not None else self.filename
        if target is None:
            raise ArchiveError(E_CONFIG, "no output file name for archive")
        return atomic_write_bytes(target, self.to_bytes())
