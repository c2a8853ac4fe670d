"""Command line interface for psxwadgen."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    convert_disc,
    inspect_wad,
    make_context,
    plan_dry_run,
    translate_level_file,
)
from .level.context import TranslationFlags
from .level.errors import WadGenError
from .level.inspector import validate_wad
from .level.planner import ContainerKind
from .logging import configure_logging, step
from .profile import ConversionProfile, load_profile
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)
from .wad import WadDirectory


def _flags_from_args(args: argparse.Namespace) -> TranslationFlags:
    flags = TranslationFlags.NONE
    if args.fix_things:
        flags |= TranslationFlags.FIX_THING_TYPES
    if args.ee:
        flags |= TranslationFlags.USE_EXTENDED_TYPE_IDS
    return flags


def _convert_cmd(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile) if args.profile else ConversionProfile()
    profile = profile.merged(
        output=args.output,
        vanilla_maps=args.vanilla_maps,
        res_dir=args.res_dir,
        fix_things=args.fix_things,
        ee_doomednums=args.ee,
        deflate_maps=False if args.store_maps else None,
    )
    convert_disc(args.input, profile)
    return 0


def _translate_cmd(args: argparse.Namespace) -> int:
    iwad = WadDirectory.from_file(args.iwad) if args.iwad else None
    ctx = make_context(_flags_from_args(args), iwad=iwad)
    step(f"translating {args.map.name}")
    translate_level_file(args.map, args.output, ctx)
    return 0


def _plan_cmd(args: argparse.Namespace) -> int:
    iwad = WadDirectory.from_file(args.iwad) if args.iwad else None
    ctx = make_context(_flags_from_args(args), iwad=iwad)
    plan, plan_dict = plan_dry_run(args.map, ctx, ContainerKind(args.container))
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(plan_dict, indent=2, sort_keys=True))
    else:
        rep.status(
            "Plan summary: "
            + f"lumps={plan.lump_count} file_size={plan.file_size} "
            + f"dropped={','.join(plan.dropped) or '-'}"
        )
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    info = inspect_wad(args.wad)
    issues = validate_wad(info)
    rep = get_reporter()
    if args.json:
        print(json.dumps({**info, "issues": issues}, indent=2, sort_keys=True))
    else:
        for e in info["directory_entries"]:
            rep.verbose(f"{e['index']:5d} {e['name']:<8} @{e['offset']} +{e['size']}")
        rep.status(
            "Inspect summary: "
            + f"magic={info['header']['magic']} lumps={info['header']['numlumps']} "
            + f"file_size={info['file_size']} issues={len(issues)}"
        )
        for issue in issues:
            rep.warning(issue)
    return 1 if issues else 0


def _add_flag_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--fix-things",
        dest="fix_things",
        action="store_true",
        default=None,
        help="Remap PSX-specific thing types and strip blend flags",
    )
    p.add_argument(
        "--ee",
        action="store_true",
        default=None,
        help="With --fix-things, use Eternity editor numbers",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="psxwadgen",
        description="Convert PlayStation Doom data for PC source ports",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("convert", help="Convert a PSXDOOM disc directory")
    c.add_argument("input", type=Path, help="PSXDOOM directory on the disc")
    c.add_argument("-o", "--output", type=Path, help="Output archive (default psxdoom.pke)")
    c.add_argument("--profile", type=Path, help="Conversion profile (YAML or JSON)")
    c.add_argument(
        "--vanilla-maps",
        dest="vanilla_maps",
        type=Path,
        help="Also write vanilla-format map WADs into this directory",
    )
    c.add_argument(
        "--res-dir",
        dest="res_dir",
        type=Path,
        help="Directory holding EDFROOT.edf, EMAPINFO.txt, gameversion.txt, "
        "ANIMATED.LMP and SWITCHES.LMP to add to the archive",
    )
    c.add_argument(
        "--store-maps",
        dest="store_maps",
        action="store_true",
        help="Store map WADs in the archive without compression",
    )
    _add_flag_args(c)
    c.set_defaults(func=_convert_cmd)

    t = sub.add_parser("translate", help="Translate one map WAD to vanilla format")
    t.add_argument("map", type=Path)
    t.add_argument("output", type=Path)
    t.add_argument(
        "--iwad",
        type=Path,
        help="PSX IWAD supplying texture/flat names (Final Doom .ROM maps)",
    )
    _add_flag_args(t)
    t.set_defaults(func=_translate_cmd)

    pl = sub.add_parser("plan", help="Compute translation plan (dry run, no write)")
    pl.add_argument("map", type=Path)
    pl.add_argument("--json", action="store_true", help="Emit JSON plan")
    pl.add_argument(
        "--container",
        choices=[k.value for k in ContainerKind],
        default=ContainerKind.WAD.value,
    )
    pl.add_argument("--iwad", type=Path)
    _add_flag_args(pl)
    pl.set_defaults(func=_plan_cmd)

    i = sub.add_parser("inspect", help="Inspect and validate a WAD file")
    i.add_argument("wad", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON report")
    i.set_defaults(func=_inspect_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except WadGenError as exc:
        rep = get_reporter()
        rep.flush()
        rep.error(str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
