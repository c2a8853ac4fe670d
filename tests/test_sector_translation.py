import struct

from psxwadgen.level.context import TranslationContext
from psxwadgen.level.names import NameTable
from psxwadgen.level.transcoders import translate_sectors, translate_sectors_indexed

from wad_helper import name_field, psx_sector, psx_sector_indexed

_DOOM_SECTOR = struct.Struct("<hh8s8shhh")


def _flats(count: int) -> NameTable:
    return NameTable(f"FLAT{i}" for i in range(count))


def test_plain_sector_drops_color_and_flags():
    data = psx_sector(
        floorh=-16,
        ceilh=200,
        floorpic=b"NUKAGE1",
        ceilpic=b"F_SKY1",
        light=144,
        color=42,
        special=9,
        tag=3,
        flags=0xBEEF,
    )
    out = translate_sectors(data)
    assert len(out) == 26
    assert _DOOM_SECTOR.unpack(out) == (
        -16,
        200,
        name_field("NUKAGE1"),
        name_field("F_SKY1"),
        144,
        9,
        3,
    )


def test_plain_sector_names_copied_verbatim():
    # 8-character names carry no terminator
    out = translate_sectors(psx_sector(floorpic=b"FLOOR4_8", ceilpic=b"CEIL3_5"))
    fields = _DOOM_SECTOR.unpack(out)
    assert fields[2] == b"FLOOR4_8"
    assert fields[3] == name_field("CEIL3_5")


def test_indexed_sector_resolves_flat_names():
    ctx = TranslationContext(indexed=True, flats=_flats(10))
    out = translate_sectors_indexed(
        psx_sector_indexed(floorpic=5, ceilpic=0, light=255, special=1, tag=7), ctx
    )
    fields = _DOOM_SECTOR.unpack(out)
    assert fields[2] == name_field("FLAT5")
    assert fields[3] == name_field("FLAT0")
    assert fields[4:] == (255, 1, 7)


def test_indexed_sector_out_of_range_index_is_blank():
    ctx = TranslationContext(indexed=True, flats=_flats(10))
    out = translate_sectors_indexed(psx_sector_indexed(floorpic=9999, ceilpic=9), ctx)
    fields = _DOOM_SECTOR.unpack(out)
    assert fields[2] == b"\x00" * 8
    assert fields[3] == name_field("FLAT9")


def test_multiple_records_and_trailing_bytes():
    data = psx_sector(tag=1) + psx_sector(tag=2) + b"\x00" * 10
    out = translate_sectors(data)
    assert len(out) == 2 * 26
    assert [rec[-1] for rec in _DOOM_SECTOR.iter_unpack(out)] == [1, 2]


def test_context_default_is_plain_layout():
    assert TranslationContext().indexed is False
