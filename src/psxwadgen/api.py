"""High-level operations for psxwadgen."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

from .archive import ZipArchive, ZipEntryKind
from .disc import DiscLayout, find_canonical
from .level.context import DiagnosticSink, TranslationContext, TranslationFlags, log_diagnostic
from .level.errors import E_CONFIG, E_NOT_FOUND, ConfigError
from .level.inspector import inspect_wad as _inspect_wad_impl
from .level.inspector import validate_wad as _validate_wad_impl
from .level.names import build_name_tables
from .level.planner import ContainerKind, WadPlan, compute_wad_plan, to_plan_dict
from .level.writer import write_wad
from .logging import get_logger, section
from .profile import ConversionProfile
from .reporting import get_reporter, task
from .utils.io import atomic_write_bytes, safe_read_file
from .wad import NS_GLOBAL, WadDirectory

__all__ = [
    "ConvertResult",
    "make_context",
    "translate_level",
    "translate_level_file",
    "repack_level",
    "add_maps_to_archive",
    "add_resource_files",
    "convert_disc",
    "plan_dry_run",
    "inspect_wad",
    "validate_wad",
]

MAPS_DIR = "maps/"

# Eternity EDF root, level info and game mode detection
RESOURCE_SCRIPTS = ("EDFROOT.edf", "EMAPINFO.txt", "gameversion.txt")
# (file in the resource directory, archive entry name)
RESOURCE_LUMPS = (("ANIMATED.LMP", "ANIMATED.lmp"), ("SWITCHES.LMP", "SWITCHES.lmp"))


@dataclass(slots=True)
class ConvertResult:
    output_file: Path
    bytes_written: int
    maps: List[str] = field(default_factory=list)
    vanilla_maps: List[Path] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)


def make_context(
    flags: TranslationFlags = TranslationFlags.NONE,
    *,
    iwad: WadDirectory | None = None,
    diagnostics: DiagnosticSink = log_diagnostic,
) -> TranslationContext:
    """Build a context; passing ``iwad`` selects the indexed lump layouts."""
    if iwad is None:
        return TranslationContext(flags=flags, diagnostics=diagnostics)
    textures, flats = build_name_tables(iwad)
    get_logger().debug(
        "name tables: %d textures, %d flats", len(textures), len(flats)
    )
    return TranslationContext(
        flags=flags,
        indexed=True,
        textures=textures,
        flats=flats,
        diagnostics=diagnostics,
    )


def translate_level(directory: WadDirectory, ctx: TranslationContext) -> bytes:
    """Translate a PSX map WAD into a vanilla-format PWAD image."""
    plan = compute_wad_plan(directory.enumerate(NS_GLOBAL), ctx)
    return write_wad(directory, plan, ctx)


def repack_level(directory: WadDirectory) -> bytes:
    """Rebuild a map WAD as a PWAD with every lump copied verbatim."""
    return translate_level(directory, TranslationContext.repack())


def translate_level_file(
    source: str | Path, output: str | Path, ctx: TranslationContext
) -> int:
    directory = WadDirectory.from_file(source)
    data = translate_level(directory, ctx)
    written = atomic_write_bytes(Path(output), data)
    get_reporter().status(
        "Translate summary: "
        + f"map={Path(source).name} output={Path(output).name} bytes={written}"
    )
    return written


def add_maps_to_archive(
    archive: ZipArchive,
    layout: DiscLayout,
    ctx: TranslationContext,
    *,
    vanilla_dir: Path | None = None,
    deflate: bool = True,
) -> ConvertResult:
    """Add every map file on the disc to ``archive`` as a repacked PWAD.

    With ``vanilla_dir`` set, each map is also translated with ``ctx`` and
    written to ``<vanilla_dir>/<base>.wad``.
    """
    rep = get_reporter()
    result = ConvertResult(output_file=archive.filename or Path(), bytes_written=0)
    map_files = list(layout.map_files())
    rep.start_task("maps", "Map WADs", total=len(map_files))
    for path in map_files:
        directory = WadDirectory.from_file(path)
        archive.add_file(
            MAPS_DIR + path.name, repack_level(directory), ZipEntryKind.BINARY, deflate
        )
        result.maps.append(path.name)
        if vanilla_dir is not None:
            out_path = Path(vanilla_dir) / (path.stem + ".wad")
            atomic_write_bytes(out_path, translate_level(directory, ctx))
            result.vanilla_maps.append(out_path)
        rep.advance("maps", current_item=path.name)
    rep.end_task("maps", entries=len(map_files))
    return result


def add_resource_files(archive: ZipArchive, res_dir: str | Path) -> List[str]:
    """Add the Eternity script lumps and ANIMATED/SWITCHES from ``res_dir``.

    Scripts are deflated text entries; the two binary lumps are stored.
    File names are matched ignoring case. Returns the entry names added.
    """
    res_dir = Path(res_dir)
    if not res_dir.is_dir():
        raise ConfigError(E_CONFIG, f"resource directory '{res_dir}' not found")
    added: List[str] = []
    wanted = [(name, name, ZipEntryKind.TEXT) for name in RESOURCE_SCRIPTS]
    wanted += [(src, entry, ZipEntryKind.BINARY) for src, entry in RESOURCE_LUMPS]
    for src_name, entry_name, kind in wanted:
        path = find_canonical(res_dir, src_name)
        if path is None or not path.is_file():
            raise ConfigError(
                E_NOT_FOUND,
                f"resource {src_name} missing from '{res_dir}'",
                {"res_dir": str(res_dir)},
            )
        try:
            data = safe_read_file(path)
        except OSError as exc:
            raise ConfigError(
                E_CONFIG, f"cannot read resource {path}", {"error": str(exc)}
            ) from exc
        archive.add_file(entry_name, data, kind, deflate=kind is ZipEntryKind.TEXT)
        added.append(entry_name)
    get_logger().debug("added %d resource files from %s", len(added), res_dir)
    return added


def convert_disc(
    input_dir: str | Path,
    profile: ConversionProfile,
    *,
    diagnostics: DiagnosticSink = log_diagnostic,
) -> ConvertResult:
    """Convert a PSX Doom disc directory into an archive for Eternity."""
    logger = get_logger()
    with section("Open input"):
        layout = DiscLayout.open(input_dir)
        iwad_path = layout.iwad_path()
        iwad = WadDirectory.from_file(iwad_path)
        logger.info("added %s (%d lumps)", iwad_path, len(iwad))
        if layout.is_final_doom:
            logger.info("Final Doom data detected; using indexed map lumps")
    ctx = make_context(
        profile.flags,
        iwad=iwad if layout.is_final_doom else None,
        diagnostics=diagnostics,
    )
    archive = ZipArchive(profile.output)
    with section("Maps"):
        archive.add_directory(MAPS_DIR)
        result = add_maps_to_archive(
            archive,
            layout,
            ctx,
            vanilla_dir=profile.vanilla_maps,
            deflate=profile.deflate_maps,
        )
    if profile.res_dir is not None:
        with section("Scripts"):
            result.resources = add_resource_files(archive, profile.res_dir)
    with task("archive.write", "Write archive"):
        written = archive.write(profile.output)
    result.output_file = profile.output
    result.bytes_written = written
    get_reporter().status(
        "Convert summary: "
        + f"output={profile.output.name} bytes={written} maps={len(result.maps)} "
        + f"vanilla={len(result.vanilla_maps)} resources={len(result.resources)}"
    )
    return result


def plan_dry_run(
    source: str | Path,
    ctx: TranslationContext | None = None,
    container: ContainerKind = ContainerKind.WAD,
) -> tuple[WadPlan, dict[str, Any]]:
    """Compute the translation plan for a map WAD without writing output."""
    directory = WadDirectory.from_file(source)
    plan = compute_wad_plan(
        directory.enumerate(NS_GLOBAL), ctx or TranslationContext(), container
    )
    return plan, to_plan_dict(plan)


def inspect_wad(path: str | Path) -> dict:
    return _inspect_wad_impl(path)


def validate_wad(path: str | Path) -> list[str]:
    return _validate_wad_impl(_inspect_wad_impl(path))
