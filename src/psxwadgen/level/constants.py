"""Binary layout constants for PSX map lumps and vanilla WAD output."""

from __future__ import annotations

# Flat container (vanilla WAD)
WAD_HEADER_SIZE = 12
WAD_DIRECTORY_ENTRY_SIZE = 16
WAD_MAGIC_PWAD = b"PWAD"
WAD_MAGIC_IWAD = b"IWAD"
LUMP_NAME_SIZE = 8

# Fixed point
FRACBITS = 16
FRACUNIT = 1 << FRACBITS

# VERTEXES: two 16.16 fixed values in, two int16 out
PSX_VERTEX_SIZE = 8
DOOM_VERTEX_SIZE = 4

# SECTORS
PSX_SECTOR_SIZE = 28
PSX_SECTOR_INDEXED_SIZE = 16
DOOM_SECTOR_SIZE = 26

# SIDEDEFS
PSX_SIDEDEF_INDEXED_SIZE = 12
DOOM_SIDEDEF_SIZE = 30

# THINGS
MAPTHING_SIZE = 10

# Lump names with special handling
LUMP_VERTEXES = "VERTEXES"
LUMP_SECTORS = "SECTORS"
LUMP_SIDEDEFS = "SIDEDEFS"
LUMP_THINGS = "THINGS"
LUMP_LEAFS = "LEAFS"  # PSX render geometry, no vanilla equivalent

# Thing option bits
MTF_EASY = 0x0001
MTF_NORMAL = 0x0002
MTF_HARD = 0x0004
MTF_AMBUSH = 0x0008
MTF_MULTIPLAYER = 0x0010
MTF_PSX_USEBLEND = 0x0020
MTF_PSX_BLENDMASK = 0x00C0
MTF_BLENDSHIFT = 6

# PSX blend modes
PBM_TL50 = 0  # 50% translucent
PBM_TLADD100 = 1  # 100% additive
PBM_NIGHTMARE = 2  # 100% subtractive
PBM_TLADD25 = 3  # 25% additive

# Editor numbers
DEN_SPECTRE = 58  # vanilla only
DEN_HANGINGLEG = 62  # closest vanilla type to the bloody chain
DEN_CHAIN = 64  # arch-vile in vanilla, bloody chain on PSX
DEN_DEMON = 3002
DEN_CACODEMON = 3005

DEN_EE_NMSPECTRE = 889
DEN_EE_SPECTRE3 = 890
DEN_EE_CHAIN = 891
DEN_EE_SPECTRE0 = 892
DEN_EE_SPECTRE1 = 893
DEN_EE_SPECCACO = 894

SPECTRE_BY_BLEND = {
    PBM_TL50: DEN_EE_SPECTRE0,
    PBM_TLADD100: DEN_EE_SPECTRE1,
    PBM_NIGHTMARE: DEN_EE_NMSPECTRE,
    PBM_TLADD25: DEN_EE_SPECTRE3,
}
