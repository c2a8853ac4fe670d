"""Run-wide translation settings threaded through planner and writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable

from ..logging import get_logger
from .names import NameTable

__all__ = [
    "TranslationFlags",
    "ThingDiagnostic",
    "DiagnosticSink",
    "log_diagnostic",
    "TranslationContext",
]


class TranslationFlags(IntFlag):
    NONE = 0
    FIX_THING_TYPES = 1
    USE_EXTENDED_TYPE_IDS = 2  # only meaningful with FIX_THING_TYPES


@dataclass(frozen=True, slots=True)
class ThingDiagnostic:
    """An unrecognised type/blend combination seen while remapping things."""

    x: int
    y: int
    thing_type: int
    blend_mode: int
    message: str


DiagnosticSink = Callable[[ThingDiagnostic], None]


def log_diagnostic(diag: ThingDiagnostic) -> None:
    get_logger().warning(diag.message)


@dataclass(frozen=True, slots=True)
class TranslationContext:
    """Settings for one conversion run.

    ``indexed`` selects the Final Doom lump layouts, where sector and
    sidedef lumps reference texture/flat names by index into
    ``textures``/``flats``. ``translate=False`` turns every lump into a
    verbatim copy (used when repacking maps unchanged).
    """

    flags: TranslationFlags = TranslationFlags.NONE
    indexed: bool = False
    textures: NameTable = field(default_factory=NameTable)
    flats: NameTable = field(default_factory=NameTable)
    diagnostics: DiagnosticSink = log_diagnostic
    translate: bool = True

    @property
    def fix_things(self) -> bool:
        return bool(self.flags & TranslationFlags.FIX_THING_TYPES)

    @property
    def extended_types(self) -> bool:
        return bool(self.flags & TranslationFlags.USE_EXTENDED_TYPE_IDS)

    @classmethod
    def repack(cls) -> "TranslationContext":
        return cls(translate=False)
