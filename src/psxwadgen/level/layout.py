"""Low-level layout helpers (lump name packing, int16 wrapping)."""

from __future__ import annotations

from .constants import LUMP_NAME_SIZE

__all__ = ["pack_lump_name", "unpack_lump_name", "wrap_int16"]


def pack_lump_name(name: str, size: int = LUMP_NAME_SIZE) -> bytes:
    """Encode ``name`` into exactly ``size`` bytes, NUL-padded or truncated."""
    name_bytes = name.encode("ascii", errors="replace")[:size]
    return name_bytes + b"\x00" * (size - len(name_bytes))


def unpack_lump_name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def wrap_int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000
