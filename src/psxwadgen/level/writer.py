"""Flat container (vanilla PWAD) writer driven by a :class:`WadPlan`.

The output buffer is allocated once at the planned file size. Header,
directory and lump payloads are written at the offsets the plan assigns;
any transcoder output whose length differs from the plan aborts the run.
"""

from __future__ import annotations

from pathlib import Path
import struct

from ..logging import get_logger
from ..reporting import TaskStatus, get_reporter
from ..utils.io import atomic_write_bytes
from ..wad import WadDirectory
from .constants import (
    LUMP_NAME_SIZE,
    WAD_DIRECTORY_ENTRY_SIZE,
    WAD_HEADER_SIZE,
    WAD_MAGIC_PWAD,
)
from .context import TranslationContext
from .errors import E_SIZE_MISMATCH, PlanError, internal_error
from .layout import pack_lump_name
from .planner import ContainerKind, LumpPlan, WadPlan
from .transcoders import transcode

__all__ = ["pack_wad_header", "pack_directory_entry", "write_wad", "write_wad_file"]

_DIRENTRY = struct.Struct("<ii8s")


def pack_wad_header(numlumps: int, magic: bytes = WAD_MAGIC_PWAD) -> bytes:
    return struct.pack("<4sii", magic, numlumps, WAD_HEADER_SIZE)


def pack_directory_entry(offset: int, size: int, name: str | bytes) -> bytes:
    """Pack one entry; ``bytes`` names are written as stored (padded to 8)."""
    if isinstance(name, bytes):
        raw = name[:LUMP_NAME_SIZE].ljust(LUMP_NAME_SIZE, b"\x00")
    else:
        raw = pack_lump_name(name)
    return _DIRENTRY.pack(offset, size, raw)


def _entry_name(lp: LumpPlan, ctx: TranslationContext) -> str | bytes:
    # repacking keeps the source name bytes; vanilla output is upper-case
    if not ctx.translate and lp.source.raw_name:
        return lp.source.raw_name
    return lp.name


def write_wad(
    directory: WadDirectory,
    plan: WadPlan,
    ctx: TranslationContext,
    *,
    magic: bytes = WAD_MAGIC_PWAD,
) -> bytes:
    if plan.container is not ContainerKind.WAD:
        raise internal_error(
            "write_wad needs a WAD plan", {"container": plan.container.value}
        )
    rep = get_reporter()
    buf = bytearray(plan.file_size)

    buf[0:WAD_HEADER_SIZE] = pack_wad_header(plan.lump_count, magic)
    for i, lp in enumerate(plan.lumps):
        e_off = WAD_HEADER_SIZE + i * WAD_DIRECTORY_ENTRY_SIZE
        buf[e_off : e_off + WAD_DIRECTORY_ENTRY_SIZE] = pack_directory_entry(
            lp.offset, lp.output_size, _entry_name(lp, ctx)
        )

    rep.start_task(
        "write.lumps", f"Lumps ({directory.label})", total=plan.lump_count
    )
    try:
        for lp in plan.lumps:
            if lp.input_size:
                payload = transcode(lp.kind, directory.fetch(lp.source), ctx)
            else:
                payload = b""
            if len(payload) != lp.output_size:
                raise PlanError(
                    E_SIZE_MISMATCH,
                    f"lump {lp.name}: planned {lp.output_size} bytes, "
                    f"produced {len(payload)}",
                    {"kind": lp.kind.value, "index": lp.source.index},
                )
            buf[lp.offset : lp.offset + lp.output_size] = payload
            rep.advance("write.lumps", current_item=lp.name)
    except Exception:
        rep.end_task("write.lumps", TaskStatus.FAILED)
        raise
    rep.end_task(
        "write.lumps",
        lumps=plan.lump_count,
        bytes=plan.file_size,
        planned=plan.file_size,
    )
    if len(buf) != plan.file_size:  # pragma: no cover
        raise internal_error("output buffer resized during write")
    get_logger().debug(
        "wrote %d lumps (%d bytes) from %s",
        plan.lump_count,
        plan.file_size,
        directory.label,
    )
    return bytes(buf)


def write_wad_file(
    path: Path,
    directory: WadDirectory,
    plan: WadPlan,
    ctx: TranslationContext,
) -> int:
    data = write_wad(directory, plan, ctx)
    return atomic_write_bytes(path, data)
