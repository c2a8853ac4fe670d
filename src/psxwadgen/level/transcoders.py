"""Pure per-lump transcoders from PSX map layouts to vanilla Doom layouts.

Every lump kind pairs a size function (input length -> output length,
used by the planner before any payload is read) with a transcoder that
produces exactly that many bytes. Trailing bytes that do not form a whole
source record are ignored by the record-based transcoders and by their
size functions alike.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict
import struct

from .constants import (
    DOOM_SECTOR_SIZE,
    DOOM_SIDEDEF_SIZE,
    DOOM_VERTEX_SIZE,
    FRACBITS,
    FRACUNIT,
    LUMP_LEAFS,
    LUMP_SECTORS,
    LUMP_SIDEDEFS,
    LUMP_THINGS,
    LUMP_VERTEXES,
    MAPTHING_SIZE,
    PSX_SECTOR_INDEXED_SIZE,
    PSX_SECTOR_SIZE,
    PSX_SIDEDEF_INDEXED_SIZE,
    PSX_VERTEX_SIZE,
)
from .context import TranslationContext
from .layout import wrap_int16
from .things import remap_thing

__all__ = [
    "LumpKind",
    "classify_lump",
    "fixed_to_int",
    "output_size",
    "transcode",
    "vertexes_size",
    "translate_vertexes",
    "sectors_size",
    "translate_sectors",
    "translate_sectors_indexed",
    "sidedefs_size",
    "translate_sidedefs_indexed",
    "translate_things",
]

_PSX_VERTEX = struct.Struct("<ii")
_DOOM_VERTEX = struct.Struct("<hh")
# floor/ceiling height, floor/ceiling pic, light, color, special, tag, flags
_PSX_SECTOR = struct.Struct("<hh8s8sBBhhH")
_PSX_SECTOR_INDEXED = struct.Struct("<hhHHBBhhH")
_DOOM_SECTOR = struct.Struct("<hh8s8shhh")
# x/y offset, top/bottom/mid texture, sector
_PSX_SIDEDEF_INDEXED = struct.Struct("<hhHHHh")
_DOOM_SIDEDEF = struct.Struct("<hh8s8s8sh")
_MAPTHING = struct.Struct("<hhhhH")

assert _PSX_SECTOR.size == PSX_SECTOR_SIZE
assert _PSX_SECTOR_INDEXED.size == PSX_SECTOR_INDEXED_SIZE
assert _DOOM_SECTOR.size == DOOM_SECTOR_SIZE
assert _PSX_SIDEDEF_INDEXED.size == PSX_SIDEDEF_INDEXED_SIZE
assert _DOOM_SIDEDEF.size == DOOM_SIDEDEF_SIZE


class LumpKind(Enum):
    IDENTITY = "identity"
    VERTEXES = "vertexes"
    SECTORS = "sectors"
    SIDEDEFS = "sidedefs"
    THINGS = "things"
    DROP = "drop"


def classify_lump(name: str, ctx: TranslationContext) -> LumpKind:
    """Resolve how a lump named ``name`` is carried into the output."""
    if not ctx.translate:
        return LumpKind.IDENTITY
    key = name.upper()
    if key == LUMP_LEAFS:
        return LumpKind.DROP
    if key == LUMP_VERTEXES:
        return LumpKind.VERTEXES
    if key == LUMP_SECTORS:
        return LumpKind.SECTORS
    if key == LUMP_SIDEDEFS and ctx.indexed:
        return LumpKind.SIDEDEFS
    if key == LUMP_THINGS and ctx.fix_things:
        return LumpKind.THINGS
    return LumpKind.IDENTITY


# ---------------------------------------------------------------------------
# VERTEXES
# ---------------------------------------------------------------------------


def fixed_to_int(value: int) -> int:
    """Convert 16.16 fixed point to an integer, rounding half away from zero."""
    magnitude = abs(value)
    whole = magnitude >> FRACBITS
    if magnitude & (FRACUNIT - 1) >= FRACUNIT // 2:
        whole += 1
    return -whole if value < 0 else whole


def vertexes_size(in_size: int) -> int:
    return (in_size // PSX_VERTEX_SIZE) * DOOM_VERTEX_SIZE


def translate_vertexes(data: bytes, ctx: TranslationContext | None = None) -> bytes:
    count = len(data) // PSX_VERTEX_SIZE
    out = bytearray()
    for x, y in _PSX_VERTEX.iter_unpack(data[: count * PSX_VERTEX_SIZE]):
        out += _DOOM_VERTEX.pack(
            wrap_int16(fixed_to_int(x)), wrap_int16(fixed_to_int(y))
        )
    return bytes(out)


# ---------------------------------------------------------------------------
# SECTORS
# ---------------------------------------------------------------------------


def sectors_size(in_size: int, indexed: bool = False) -> int:
    unit = PSX_SECTOR_INDEXED_SIZE if indexed else PSX_SECTOR_SIZE
    return (in_size // unit) * DOOM_SECTOR_SIZE


def translate_sectors(data: bytes, ctx: TranslationContext | None = None) -> bytes:
    count = len(data) // PSX_SECTOR_SIZE
    out = bytearray()
    for rec in _PSX_SECTOR.iter_unpack(data[: count * PSX_SECTOR_SIZE]):
        floorh, ceilh, floorpic, ceilpic, light, _color, special, tag, _ = rec
        out += _DOOM_SECTOR.pack(
            floorh, ceilh, floorpic, ceilpic, light, special, tag
        )
    return bytes(out)


def translate_sectors_indexed(data: bytes, ctx: TranslationContext) -> bytes:
    count = len(data) // PSX_SECTOR_INDEXED_SIZE
    out = bytearray()
    chunk = data[: count * PSX_SECTOR_INDEXED_SIZE]
    for rec in _PSX_SECTOR_INDEXED.iter_unpack(chunk):
        floorh, ceilh, floorpic, ceilpic, light, _color, special, tag, _ = rec
        out += _DOOM_SECTOR.pack(
            floorh,
            ceilh,
            ctx.flats.lookup_padded(floorpic),
            ctx.flats.lookup_padded(ceilpic),
            light,
            special,
            tag,
        )
    return bytes(out)


# ---------------------------------------------------------------------------
# SIDEDEFS (indexed layout only)
# ---------------------------------------------------------------------------


def sidedefs_size(in_size: int) -> int:
    return (in_size // PSX_SIDEDEF_INDEXED_SIZE) * DOOM_SIDEDEF_SIZE


def translate_sidedefs_indexed(data: bytes, ctx: TranslationContext) -> bytes:
    count = len(data) // PSX_SIDEDEF_INDEXED_SIZE
    out = bytearray()
    chunk = data[: count * PSX_SIDEDEF_INDEXED_SIZE]
    for xoff, yoff, top, bottom, mid, sector in _PSX_SIDEDEF_INDEXED.iter_unpack(
        chunk
    ):
        out += _DOOM_SIDEDEF.pack(
            xoff,
            yoff,
            ctx.textures.lookup_padded(top),
            ctx.textures.lookup_padded(bottom),
            ctx.textures.lookup_padded(mid),
            sector,
        )
    return bytes(out)


# ---------------------------------------------------------------------------
# THINGS
# ---------------------------------------------------------------------------


def translate_things(data: bytes, ctx: TranslationContext) -> bytes:
    count = len(data) // MAPTHING_SIZE
    out = bytearray()
    for x, y, angle, thing_type, options in _MAPTHING.iter_unpack(
        data[: count * MAPTHING_SIZE]
    ):
        new_type, new_options = remap_thing(
            x, y, thing_type, options, ctx.flags, ctx.diagnostics
        )
        out += _MAPTHING.pack(x, y, angle, wrap_int16(new_type), new_options)
    # a trailing partial record is carried over untouched
    out += data[count * MAPTHING_SIZE :]
    return bytes(out)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def output_size(kind: LumpKind, in_size: int, ctx: TranslationContext) -> int:
    if kind is LumpKind.DROP:
        return 0
    if kind is LumpKind.VERTEXES:
        return vertexes_size(in_size)
    if kind is LumpKind.SECTORS:
        return sectors_size(in_size, ctx.indexed)
    if kind is LumpKind.SIDEDEFS:
        return sidedefs_size(in_size)
    return in_size  # IDENTITY, THINGS


_TRANSCODERS: Dict[LumpKind, Callable[[bytes, TranslationContext], bytes]] = {
    LumpKind.VERTEXES: translate_vertexes,
    LumpKind.SIDEDEFS: translate_sidedefs_indexed,
    LumpKind.THINGS: translate_things,
}


def transcode(kind: LumpKind, data: bytes, ctx: TranslationContext) -> bytes:
    if kind is LumpKind.DROP:
        return b""
    if kind is LumpKind.IDENTITY:
        return bytes(data)
    if kind is LumpKind.SECTORS:
        if ctx.indexed:
            return translate_sectors_indexed(data, ctx)
        return translate_sectors(data, ctx)
    return _TRANSCODERS[kind](data, ctx)
