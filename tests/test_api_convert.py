from __future__ import annotations

"""End-to-end conversion of a synthetic disc tree."""

import io
import struct
import zipfile

import pytest

from psxwadgen.api import (
    add_resource_files,
    convert_disc,
    make_context,
    plan_dry_run,
    repack_level,
    translate_level,
    translate_level_file,
    validate_wad,
)
from psxwadgen.archive import ZipArchive
from psxwadgen.level.context import TranslationFlags
from psxwadgen.level.errors import ConfigError, DiscLayoutError
from psxwadgen.profile import ConversionProfile
from psxwadgen.wad import WadDirectory

from disc_helper import RESOURCE_TEXT, iwad_bytes, make_disc, make_res_dir
from wad_helper import build_wad, name_field, psx_map, thing


def test_convert_disc_archive(tmp_path):
    root = make_disc(tmp_path / "disc", maps=2)
    out = tmp_path / "psxdoom.pke"
    result = convert_disc(root, ConversionProfile(output=out))
    assert result.output_file == out
    assert result.bytes_written == out.stat().st_size
    assert result.maps == ["MAP01.WAD", "MAP02.WAD"]
    with zipfile.ZipFile(out) as zf:
        assert zf.namelist() == ["maps/", "maps/MAP01.WAD", "maps/MAP02.WAD"]
        assert zf.testzip() is None
        # maps are repacked verbatim, LEAFS included
        repacked = WadDirectory.from_bytes(zf.read("maps/MAP01.WAD"))
        assert repacked.find("LEAFS") is not None
        assert zf.getinfo("maps/MAP01.WAD").compress_type == zipfile.ZIP_DEFLATED


def test_convert_disc_store_maps_and_vanilla(tmp_path):
    root = make_disc(tmp_path / "disc", maps=1)
    profile = ConversionProfile(
        output=tmp_path / "out.pke",
        vanilla_maps=tmp_path / "vanilla",
        deflate_maps=False,
        fix_things=True,
    )
    result = convert_disc(root, profile)
    assert result.vanilla_maps == [tmp_path / "vanilla" / "MAP01.wad"]
    assert validate_wad(result.vanilla_maps[0]) == []
    vanilla = WadDirectory.from_file(result.vanilla_maps[0])
    assert vanilla.find("LEAFS") is None
    with zipfile.ZipFile(profile.output) as zf:
        for info in zf.infolist():
            assert info.compress_type == zipfile.ZIP_STORED


def test_convert_final_doom_uses_name_tables(tmp_path):
    root = make_disc(tmp_path / "disc", final_doom=True, maps=1)
    profile = ConversionProfile(output=tmp_path / "fd.pke", vanilla_maps=tmp_path / "v")
    result = convert_disc(root, profile)
    assert result.maps == ["MAP01.ROM"]
    vanilla = WadDirectory.from_file(result.vanilla_maps[0])
    side = vanilla.fetch(vanilla.find("SIDEDEFS"))
    assert len(side) == 30
    _, _, top, bottom, mid, _ = struct.unpack("<hh8s8s8sh", side)
    assert top == name_field("BIGDOOR2")
    assert bottom == name_field("STARTAN3")
    assert mid == b"\x00" * 8
    sector = vanilla.fetch(vanilla.find("SECTORS"))
    assert struct.unpack("<hh8s8shhh", sector)[2] == name_field("NUKAGE1")


def test_convert_bad_input(tmp_path):
    with pytest.raises(DiscLayoutError):
        convert_disc(tmp_path, ConversionProfile(output=tmp_path / "x.pke"))
    assert not (tmp_path / "x.pke").exists()


def test_translate_level_file(tmp_path):
    src = tmp_path / "MAP01.WAD"
    src.write_bytes(psx_map(things=thing(0, 0, 0, 64, 0x07)))
    out = tmp_path / "out" / "MAP01.wad"
    seen = []
    ctx = make_context(TranslationFlags.FIX_THING_TYPES, diagnostics=seen.append)
    written = translate_level_file(src, out, ctx)
    assert written == out.stat().st_size
    d = WadDirectory.from_file(out)
    assert struct.unpack("<hhhhH", d.fetch(d.find("THINGS")))[3] == 62
    assert seen == []


def test_make_context_with_iwad():
    ctx = make_context(iwad=WadDirectory.from_bytes(iwad_bytes()))
    assert ctx.indexed is True
    assert list(ctx.flats) == ["FLOOR0_1", "NUKAGE1"]
    assert list(ctx.textures) == ["STARTAN3", "BIGDOOR2"]


def test_repack_matches_source_lumps():
    source = WadDirectory.from_bytes(psx_map())
    out = WadDirectory.from_bytes(repack_level(source))
    assert [l.name for l in out] == [l.name for l in source]
    assert translate_level(source, make_context()) != repack_level(source)


def test_plan_dry_run(tmp_path):
    src = tmp_path / "MAP01.WAD"
    src.write_bytes(psx_map())
    plan, d = plan_dry_run(src)
    assert d["file_size"] == plan.file_size
    assert d["dropped"] == ["LEAFS"]
    assert not list(tmp_path.glob("*.wad"))


def test_add_resource_files(tmp_path):
    res = make_res_dir(tmp_path)
    archive = ZipArchive()
    added = add_resource_files(archive, res)
    assert added == [
        "EDFROOT.edf",
        "EMAPINFO.txt",
        "gameversion.txt",
        "ANIMATED.lmp",
        "SWITCHES.lmp",
    ]
    with zipfile.ZipFile(io.BytesIO(archive.to_bytes())) as zf:
        infos = {i.filename: i for i in zf.infolist()}
        for name, text in RESOURCE_TEXT.items():
            assert zf.read(name) == text
            assert infos[name].internal_attr == 1
            assert infos[name].compress_type == zipfile.ZIP_DEFLATED
        for name in ("ANIMATED.lmp", "SWITCHES.lmp"):
            assert infos[name].internal_attr == 0
            assert infos[name].compress_type == zipfile.ZIP_STORED
        assert zf.read("ANIMATED.lmp") == (res / "ANIMATED.LMP").read_bytes()


def test_add_resource_files_missing_file(tmp_path):
    res = make_res_dir(tmp_path)
    (res / "gameversion.txt").unlink()
    with pytest.raises(ConfigError) as exc:
        add_resource_files(ZipArchive(), res)
    assert "gameversion.txt" in exc.value.message


def test_add_resource_files_missing_dir(tmp_path):
    with pytest.raises(ConfigError):
        add_resource_files(ZipArchive(), tmp_path / "nope")


def test_convert_disc_with_resources(tmp_path):
    root = make_disc(tmp_path / "disc", maps=1)
    profile = ConversionProfile(output=tmp_path / "r.pke", res_dir=make_res_dir(tmp_path))
    result = convert_disc(root, profile)
    assert result.resources[0] == "EDFROOT.edf"
    with zipfile.ZipFile(profile.output) as zf:
        assert zf.namelist() == [
            "maps/",
            "maps/MAP01.WAD",
            "EDFROOT.edf",
            "EMAPINFO.txt",
            "gameversion.txt",
            "ANIMATED.lmp",
            "SWITCHES.lmp",
        ]
        assert zf.testzip() is None


def test_repack_keeps_stored_name_bytes():
    source = WadDirectory.from_bytes(
        build_wad([("map01", b""), ("things", thing()), ("LEAFS", b"\x00" * 4)])
    )
    repacked = WadDirectory.from_bytes(repack_level(source))
    assert [l.raw_name for l in repacked] == [
        b"map01\x00\x00\x00",
        b"things\x00\x00",
        b"LEAFS\x00\x00\x00",
    ]
    # vanilla output is looked up by upper-case name
    translated = WadDirectory.from_bytes(translate_level(source, make_context()))
    assert [l.raw_name for l in translated] == [
        b"MAP01\x00\x00\x00",
        b"THINGS\x00\x00",
    ]
