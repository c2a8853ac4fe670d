import struct

from psxwadgen.level.context import TranslationContext, TranslationFlags
from psxwadgen.level.things import blend_mode, remap_thing
from psxwadgen.level.transcoders import translate_things

from wad_helper import thing

FIX = TranslationFlags.FIX_THING_TYPES
FIX_EE = TranslationFlags.FIX_THING_TYPES | TranslationFlags.USE_EXTENDED_TYPE_IDS
USEBLEND = 0x20


def _blend(mode: int) -> int:
    return USEBLEND | (mode << 6)


def _remap(thing_type, options, flags, sink=None):
    seen = [] if sink is None else sink
    return remap_thing(10, -20, thing_type, options, flags, seen.append), seen


def test_blend_mode_extraction():
    assert blend_mode(0x00) == 0
    assert blend_mode(0x40) == 1
    assert blend_mode(0x80) == 2
    assert blend_mode(0xC7) == 3


def test_no_fix_leaves_thing_untouched():
    (t, o), diags = _remap(3002, _blend(2) | 7, TranslationFlags.NONE)
    assert (t, o) == (3002, _blend(2) | 7)
    assert diags == []


def test_plain_thing_blend_bits_stripped():
    (t, o), diags = _remap(3001, 0xC7, FIX)
    assert (t, o) == (3001, 0x07)
    assert diags == []


def test_demon_with_blend_becomes_spectre():
    (t, o), _ = _remap(3002, _blend(1) | 0x0F, FIX)
    assert (t, o) == (58, 0x0F)


def test_demon_without_blend_unchanged():
    (t, o), _ = _remap(3002, 0x07, FIX_EE)
    assert (t, o) == (3002, 0x07)


def test_demon_extended_ids_by_blend_mode():
    expected = {0: 892, 1: 893, 2: 889, 3: 890}
    for mode, den in expected.items():
        (t, o), _ = _remap(3002, _blend(mode) | 0x07, FIX_EE)
        assert (t, o) == (den, 0x07), mode


def test_spectral_cacodemon_extended():
    (t, o), diags = _remap(3005, _blend(0) | 0x07, FIX_EE)
    assert (t, o) == (894, 0x07)
    assert diags == []


def test_cacodemon_unknown_blend_reports():
    (t, o), diags = _remap(3005, _blend(2), FIX_EE)
    assert (t, o) == (3005, 0)
    assert len(diags) == 1
    assert diags[0].thing_type == 3005
    assert diags[0].blend_mode == 2
    assert (diags[0].x, diags[0].y) == (10, -20)


def test_cacodemon_vanilla_ids_silent():
    (t, o), diags = _remap(3005, _blend(2), FIX)
    assert (t, o) == (3005, 0)
    assert diags == []


def test_chain_remap():
    (t, _), _ = _remap(64, 0x07, FIX)
    assert t == 62
    (t, _), _ = _remap(64, 0x07, FIX_EE)
    assert t == 891


def test_unknown_spectral_thing_reports():
    (t, o), diags = _remap(9, _blend(3) | 0x01, FIX)
    assert (t, o) == (9, 0x01)
    assert len(diags) == 1
    assert "9" in diags[0].message


def test_translate_things_lump():
    seen = []
    ctx = TranslationContext(flags=FIX_EE, diagnostics=seen.append)
    data = thing(1, 2, 90, 3002, _blend(3) | 0x07) + thing(3, 4, 0, 64, 0x10) + b"\xaa\xbb"
    out = translate_things(data, ctx)
    assert len(out) == len(data)
    recs = list(struct.iter_unpack("<hhhhH", out[:20]))
    assert recs == [(1, 2, 90, 890, 0x07), (3, 4, 0, 891, 0x10)]
    assert out[20:] == b"\xaa\xbb"
    assert seen == []
