"""Layout planning for translated level containers.

The planner walks lump descriptors (name + size only) once, resolves each
lump's :class:`LumpKind` and output size, and assigns output offsets in
source directory order. The writer consumes the resulting
:class:`WadPlan` and never recomputes layout itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence

from ..wad import LumpInfo
from .constants import WAD_DIRECTORY_ENTRY_SIZE, WAD_HEADER_SIZE
from .context import TranslationContext
from .errors import E_INTERNAL, E_ZERO_SIZE, PlanError
from .transcoders import LumpKind, classify_lump, output_size

__all__ = [
    "ContainerKind",
    "LumpPlan",
    "WadPlan",
    "compute_wad_plan",
    "to_plan_dict",
]


class ContainerKind(Enum):
    WAD = "wad"  # header + directory preamble
    ARCHIVE = "archive"  # no preamble; offsets are within the payload stream


@dataclass(frozen=True, slots=True)
class LumpPlan:
    name: str
    kind: LumpKind
    source: LumpInfo
    input_size: int
    output_size: int
    offset: int


@dataclass(slots=True)
class WadPlan:
    container: ContainerKind
    lumps: List[LumpPlan]
    preamble_size: int
    file_size: int
    dropped: List[str]

    @property
    def lump_count(self) -> int:
        return len(self.lumps)

    @property
    def directory_offset(self) -> int:
        return WAD_HEADER_SIZE if self.container is ContainerKind.WAD else 0

    @property
    def payload_size(self) -> int:
        return self.file_size - self.preamble_size


def to_plan_dict(plan: WadPlan) -> Dict[str, Any]:
    return {
        "container": plan.container.value,
        "lump_count": plan.lump_count,
        "directory_offset": plan.directory_offset,
        "preamble_size": plan.preamble_size,
        "file_size": plan.file_size,
        "dropped": list(plan.dropped),
        "lumps": [
            {
                "name": lp.name,
                "kind": lp.kind.value,
                "source_index": lp.source.index,
                "input_size": lp.input_size,
                "output_size": lp.output_size,
                "offset": lp.offset,
            }
            for lp in plan.lumps
        ],
        "statistics": {
            "input_bytes": sum(lp.input_size for lp in plan.lumps),
            "output_bytes": plan.payload_size,
            "translated": sum(
                1 for lp in plan.lumps if lp.kind is not LumpKind.IDENTITY
            ),
        },
    }


def compute_wad_plan(
    lumps: Sequence[LumpInfo],
    ctx: TranslationContext,
    container: ContainerKind = ContainerKind.WAD,
) -> WadPlan:
    # Pass 1: kinds and sizes.
    sized: List[tuple[LumpInfo, LumpKind, int]] = []
    dropped: List[str] = []
    for lump in lumps:
        kind = classify_lump(lump.name, ctx)
        if kind is LumpKind.DROP:
            dropped.append(lump.name)
            continue
        sized.append((lump, kind, output_size(kind, lump.size, ctx)))

    if container is ContainerKind.WAD:
        preamble = WAD_HEADER_SIZE + WAD_DIRECTORY_ENTRY_SIZE * len(sized)
    else:
        preamble = 0
    total = preamble + sum(size for _, _, size in sized)
    if not sized:
        raise PlanError(
            E_ZERO_SIZE,
            "zero-size output: no lumps left to write",
            {"dropped": dropped, "file_size": total},
        )

    # Pass 2: offsets, same order as pass 1.
    planned: List[LumpPlan] = []
    cursor = preamble
    for lump, kind, size in sized:
        planned.append(
            LumpPlan(
                name=lump.name,
                kind=kind,
                source=lump,
                input_size=lump.size,
                output_size=size,
                offset=cursor,
            )
        )
        cursor += size
    if cursor != total:  # pragma: no cover
        raise PlanError(
            E_INTERNAL,
            "offset pass disagrees with size pass",
            {"cursor": cursor, "total": total},
        )
    return WadPlan(
        container=container,
        lumps=planned,
        preamble_size=preamble,
        file_size=total,
        dropped=dropped,
    )
