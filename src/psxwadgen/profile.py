"""Conversion profile loading (JSON/YAML).

A profile stores the switches for a conversion run so they do not have
to be repeated on every command line::

    fix_things: true
    ee_doomednums: true
    vanilla_maps: out/maps
    res_dir: res
    deflate_maps: true
    output: psxdoom.pke

Command-line switches take precedence over profile values.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any
import json

import yaml

from .level.context import TranslationFlags
from .level.errors import E_CONFIG, ConfigError

__all__ = ["ConversionProfile", "load_profile", "parse_profile_dict"]

DEF_OUTPUT_NAME = "psxdoom.pke"


@dataclass(frozen=True, slots=True)
class ConversionProfile:
    fix_things: bool = False
    ee_doomednums: bool = False
    vanilla_maps: Path | None = None
    res_dir: Path | None = None
    deflate_maps: bool = True
    output: Path = Path(DEF_OUTPUT_NAME)

    @property
    def flags(self) -> TranslationFlags:
        flags = TranslationFlags.NONE
        if self.fix_things:
            flags |= TranslationFlags.FIX_THING_TYPES
        if self.ee_doomednums:
            flags |= TranslationFlags.USE_EXTENDED_TYPE_IDS
        return flags

    def merged(self, **overrides: Any) -> "ConversionProfile":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


_BOOL_KEYS = {"fix_things", "ee_doomednums", "deflate_maps"}
_PATH_KEYS = {"vanilla_maps", "res_dir", "output"}
_NULLABLE_KEYS = {"vanilla_maps", "res_dir"}


def parse_profile_dict(data: dict[str, Any], *, base_dir: Path | None = None) -> ConversionProfile:
    known = {f.name for f in fields(ConversionProfile)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(E_CONFIG, f"unknown profile keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(
                    E_CONFIG, f"profile key '{key}' must be a boolean", {"value": value}
                )
            values[key] = value
        elif key in _PATH_KEYS:
            if value is None and key in _NULLABLE_KEYS:
                values[key] = None
                continue
            if not isinstance(value, str):
                raise ConfigError(
                    E_CONFIG, f"profile key '{key}' must be a path string", {"value": value}
                )
            p = Path(value)
            if base_dir is not None and not p.is_absolute():
                p = base_dir / p
            values[key] = p
    return ConversionProfile(**values)


def load_profile(path: str | Path) -> ConversionProfile:
    p = Path(path)
    if not p.exists():
        raise ConfigError(E_CONFIG, f"profile not found: {p}")
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data: Any = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(E_CONFIG, f"cannot parse profile {p}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(E_CONFIG, "root of profile must be a mapping")
    return parse_profile_dict(data, base_dir=p.parent)
