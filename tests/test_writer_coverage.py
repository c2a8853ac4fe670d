from __future__ import annotations

"""Writer output validated through the inspector.

Every byte of a written WAD belongs to exactly one of: header, directory,
or a lump payload.
"""

import struct
from collections import Counter

import pytest

from psxwadgen.level.context import TranslationContext, TranslationFlags
from psxwadgen.level.errors import WadGenError
from psxwadgen.level.inspector import coverage_gaps, inspect_wad, validate_wad
from psxwadgen.level.names import NameTable
from psxwadgen.level.planner import ContainerKind, compute_wad_plan
from psxwadgen.level.writer import write_wad, write_wad_file
from psxwadgen.wad import WadDirectory

from wad_helper import (
    build_wad,
    psx_map,
    psx_sector_indexed,
    psx_sidedef_indexed,
    psx_vertex,
    thing,
)


def _write(data: bytes, ctx: TranslationContext | None = None) -> bytes:
    ctx = ctx or TranslationContext()
    directory = WadDirectory.from_bytes(data)
    plan = compute_wad_plan(directory.enumerate(), ctx)
    out = write_wad(directory, plan, ctx)
    assert len(out) == plan.file_size
    return out


def test_written_wad_has_full_coverage():
    out = _write(psx_map())
    info = inspect_wad(out)
    assert validate_wad(info) == []
    assert info["header"]["magic"] == "PWAD"
    assert info["header"]["infotableofs"] == 12
    assert info["header"]["numlumps"] == 11


def test_written_lumps_translated():
    out = _write(psx_map())
    reread = WadDirectory.from_bytes(out)
    vertexes = reread.fetch(reread.find("VERTEXES"))
    assert struct.unpack("<hhhh", vertexes) == (1, -2, 1, 0)
    assert len(reread.fetch(reread.find("SECTORS"))) == 26
    assert reread.find("LEAFS") is None
    # untouched lump copied verbatim
    assert reread.fetch(reread.find("NODES")) == b"\x05" * 28


def test_things_fixed_when_requested():
    data = psx_map(things=thing(0, 0, 0, 3002, 0x20 | 0x07))
    out = _write(data, TranslationContext(flags=TranslationFlags.FIX_THING_TYPES))
    reread = WadDirectory.from_bytes(out)
    rec = struct.unpack("<hhhhH", reread.fetch(reread.find("THINGS")))
    assert rec == (0, 0, 0, 58, 0x07)


def test_repack_copies_every_lump():
    source = WadDirectory.from_bytes(psx_map())
    out = _write(psx_map(), TranslationContext.repack())
    reread = WadDirectory.from_bytes(out)
    assert [l.name for l in reread] == [l.name for l in source]
    for a, b in zip(source, reread):
        assert source.fetch(a) == reread.fetch(b)
    assert validate_wad(inspect_wad(out)) == []


def test_write_needs_wad_plan():
    directory = WadDirectory.from_bytes(psx_map())
    ctx = TranslationContext()
    plan = compute_wad_plan(directory.enumerate(), ctx, ContainerKind.ARCHIVE)
    with pytest.raises(WadGenError):
        write_wad(directory, plan, ctx)


def test_write_wad_file(tmp_path):
    directory = WadDirectory.from_bytes(psx_map())
    ctx = TranslationContext()
    plan = compute_wad_plan(directory.enumerate(), ctx)
    out = tmp_path / "sub" / "MAP01.wad"
    written = write_wad_file(out, directory, plan, ctx)
    assert written == out.stat().st_size == plan.file_size
    assert validate_wad(inspect_wad(out)) == []
    assert not list(out.parent.glob("*.tmp"))


def test_coverage_gaps_detects_gap_and_overlap():
    assert coverage_gaps(10, [(0, 4), (4, 10)]) == []
    assert coverage_gaps(10, [(0, 4), (6, 10)]) == ["Gap 4..6"]
    issues = coverage_gaps(10, [(0, 6), (4, 10)])
    assert len(issues) == 1 and issues[0].startswith("Overlap")
    # zero-length ranges are ignored
    assert coverage_gaps(4, [(0, 4), (2, 2)]) == []


def test_validate_flags_corrupt_directory():
    out = bytearray(_write(psx_map()))
    # move the directory offset away from the header
    struct.pack_into("<i", out, 8, 16)
    issues = validate_wad(inspect_wad(bytes(out)))
    assert any("Directory offset" in i for i in issues)


def _count_fetches(monkeypatch) -> Counter:
    fetched: Counter = Counter()
    original = WadDirectory.fetch

    def counting(self, lump):
        fetched[lump.name] += 1
        return original(self, lump)

    monkeypatch.setattr(WadDirectory, "fetch", counting)
    return fetched


@pytest.mark.parametrize("indexed", [False, True])
def test_each_lump_fetched_once(monkeypatch, indexed):
    if indexed:
        data = build_wad(
            [
                ("MAP01", b""),
                ("THINGS", thing(thing_type=3001) + thing()),
                ("SIDEDEFS", psx_sidedef_indexed(top=1, bottom=0, mid=0)),
                ("VERTEXES", psx_vertex(1 << 16, 0)),
                ("SECTORS", psx_sector_indexed(floorpic=0, ceilpic=1)),
                ("REJECT", b""),
                ("LEAFS", b"\x00" * 4),
            ]
        )
    else:
        data = psx_map(things=thing(thing_type=3001))
    ctx = TranslationContext(
        flags=TranslationFlags.FIX_THING_TYPES,
        indexed=indexed,
        textures=NameTable(["STARTAN3", "BIGDOOR2"]),
        flats=NameTable(["FLOOR0_1", "NUKAGE1"]),
    )
    fetched = _count_fetches(monkeypatch)
    _write(data, ctx)

    lumps = list(WadDirectory.from_bytes(data))
    expected = {l.name for l in lumps if l.size and l.name != "LEAFS"}
    assert set(fetched) == expected
    assert all(n == 1 for n in fetched.values())
    assert "LEAFS" not in fetched
    assert "MAP01" not in fetched
