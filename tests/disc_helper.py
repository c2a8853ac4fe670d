from __future__ import annotations

"""Builds a minimal PSXDOOM disc directory tree under a temp path."""
from pathlib import Path

from wad_helper import build_wad, psx_map, psx_sector_indexed, psx_sidedef_indexed, psx_vertex


def iwad_bytes() -> bytes:
    return build_wad(
        [
            ("F_START", b""),
            ("FLOOR0_1", b"\x00" * 4),
            ("NUKAGE1", b"\x00" * 4),
            ("F_END", b""),
            ("T_START", b""),
            ("STARTAN3", b"\x00" * 4),
            ("BIGDOOR2", b"\x00" * 4),
            ("T_END", b""),
        ],
        magic=b"IWAD",
    )


def final_doom_map() -> bytes:
    return build_wad(
        [
            ("MAP01", b""),
            ("SIDEDEFS", psx_sidedef_indexed(top=1, bottom=0, mid=7)),
            ("VERTEXES", psx_vertex(1 << 16, 1 << 16)),
            ("SECTORS", psx_sector_indexed(floorpic=1, ceilpic=0)),
            ("LEAFS", b"\x00" * 4),
        ]
    )


def make_disc(root: Path, *, final_doom: bool = False, maps: int = 2) -> Path:
    psx = root / "PSXDOOM"
    (psx / "ABIN").mkdir(parents=True)
    (psx / "CDAUDIO").mkdir()
    (psx / "ABIN" / "PSXDOOM.WAD").write_bytes(iwad_bytes())
    ext = "ROM" if final_doom else "WAD"
    for i in range(maps):
        map_dir = psx / f"MAPDIR{i // 8}"
        map_dir.mkdir(exist_ok=True)
        data = final_doom_map() if final_doom else psx_map()
        (map_dir / f"MAP{i + 1:02d}.{ext}").write_bytes(data)
    return psx


RESOURCE_TEXT = {
    "EDFROOT.edf": b"stdinclude(\"root.edf\")\n",
    "EMAPINFO.txt": b"[MAP01]\nlevelname = Attack\n",
    "gameversion.txt": b"psxdoom\n",
}


def make_res_dir(root: Path) -> Path:
    """Resource directory; binary lumps use the upper-case disc spelling."""
    res = root / "res"
    res.mkdir(parents=True)
    for name, text in RESOURCE_TEXT.items():
        (res / name).write_bytes(text)
    (res / "ANIMATED.LMP").write_bytes(b"\x00" * 23 + b"\xff")
    (res / "SWITCHES.LMP").write_bytes(b"\x01" * 20 + b"\x00" * 20)
    return res
