import struct

from psxwadgen.level.transcoders import fixed_to_int, translate_vertexes

from wad_helper import psx_vertex


def _i32(value: int) -> int:
    return struct.unpack("<i", struct.pack("<I", value))[0]


def test_half_rounds_away_from_zero():
    assert fixed_to_int(0x00018000) == 2
    assert fixed_to_int(_i32(0xFFFE8000)) == -2
    assert fixed_to_int(0x8000) == 1
    assert fixed_to_int(-0x8000) == -1


def test_negative_fraction_uses_magnitude():
    assert fixed_to_int(-0x14000) == -1
    assert fixed_to_int(-0x1C000) == -2


def test_below_half_truncates_toward_zero():
    assert fixed_to_int(0x00017FFF) == 1
    assert fixed_to_int(-0x00017FFF) == -1
    assert fixed_to_int(0) == 0
    assert fixed_to_int(0x7FFF) == 0


def test_whole_values_unchanged():
    assert fixed_to_int(5 << 16) == 5
    assert fixed_to_int(-(5 << 16)) == -5


def test_translate_vertexes_records():
    data = psx_vertex(0x00018000, _i32(0xFFFE8000)) + psx_vertex(10 << 16, 0)
    out = translate_vertexes(data)
    assert struct.unpack("<hhhh", out) == (2, -2, 10, 0)


def test_translate_vertexes_wraps_to_int16():
    # 32767.99998 rounds to 32768, which does not fit a signed 16-bit field
    out = translate_vertexes(psx_vertex(0x7FFFFFFF, 0x7FFF << 16))
    x, y = struct.unpack("<hh", out)
    assert x == -32768
    assert y == 0x7FFF


def test_translate_vertexes_ignores_trailing_bytes():
    out = translate_vertexes(psx_vertex(1 << 16, 1 << 16) + b"\x01\x02\x03")
    assert out == struct.pack("<hh", 1, 1)
