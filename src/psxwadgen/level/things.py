"""THINGS remapping for PSX-specific actor variants.

PSX Doom marks spectres, spectral cacodemons and friends with a blend
mode packed into the thing options word. Vanilla engines read those bits
as unrelated flags, so they are always stripped when fixing things; the
thing type is rewritten to the closest vanilla or Eternity editor number.
"""

from __future__ import annotations

from typing import Tuple

from .constants import (
    DEN_CACODEMON,
    DEN_CHAIN,
    DEN_DEMON,
    DEN_EE_CHAIN,
    DEN_EE_SPECCACO,
    DEN_HANGINGLEG,
    DEN_SPECTRE,
    MTF_BLENDSHIFT,
    MTF_PSX_BLENDMASK,
    MTF_PSX_USEBLEND,
    PBM_TL50,
    SPECTRE_BY_BLEND,
)
from .context import DiagnosticSink, ThingDiagnostic, TranslationFlags

__all__ = ["blend_mode", "remap_thing"]


def blend_mode(options: int) -> int:
    return (options & MTF_PSX_BLENDMASK) >> MTF_BLENDSHIFT


def remap_thing(
    x: int,
    y: int,
    thing_type: int,
    options: int,
    flags: TranslationFlags,
    sink: DiagnosticSink,
) -> Tuple[int, int]:
    """Return the ``(type, options)`` pair to emit for one thing."""
    if not flags & TranslationFlags.FIX_THING_TYPES:
        return thing_type, options

    extended = bool(flags & TranslationFlags.USE_EXTENDED_TYPE_IDS)
    use_blend = bool(options & MTF_PSX_USEBLEND)
    mode = blend_mode(options)

    if thing_type == DEN_DEMON:
        if use_blend:
            thing_type = SPECTRE_BY_BLEND[mode] if extended else DEN_SPECTRE
    elif thing_type == DEN_CACODEMON:
        if use_blend and extended:
            if mode == PBM_TL50:
                thing_type = DEN_EE_SPECCACO
            else:
                sink(
                    ThingDiagnostic(
                        x,
                        y,
                        thing_type,
                        mode,
                        f"unknown Cacodemon type at ({x}, {y}); "
                        f"spectre type = {mode}",
                    )
                )
    elif thing_type == DEN_CHAIN:
        thing_type = DEN_EE_CHAIN if extended else DEN_HANGINGLEG
    elif use_blend:
        sink(
            ThingDiagnostic(
                x,
                y,
                thing_type,
                mode,
                f"unknown spectral thing type {thing_type} at ({x}, {y}); "
                f"spectre type = {mode}",
            )
        )

    options &= ~(MTF_PSX_USEBLEND | MTF_PSX_BLENDMASK)
    return thing_type, options
