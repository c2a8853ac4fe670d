"""Error definitions for psxwadgen."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_ZERO_SIZE = "E_ZERO_SIZE"
E_BAD_WAD = "E_BAD_WAD"
E_SOURCE_IO = "E_SOURCE_IO"
E_COMPRESSED_LUMP = "E_COMPRESSED_LUMP"
E_INPUT_DIR = "E_INPUT_DIR"
E_NOT_FOUND = "E_NOT_FOUND"
E_COMPRESS = "E_COMPRESS"
E_ARCHIVE_LIMIT = "E_ARCHIVE_LIMIT"
E_CONFIG = "E_CONFIG"
E_SIZE_MISMATCH = "E_SIZE_MISMATCH"
E_INTERNAL = "E_INTERNAL"


@dataclass
class WadGenError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class PlanError(WadGenError):
    pass


class SourceError(WadGenError):
    pass


class DiscLayoutError(WadGenError):
    pass


class ArchiveError(WadGenError):
    pass


class SizeError(ArchiveError):
    pass


class ConfigError(WadGenError):
    pass


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> WadGenError:
    return WadGenError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "WadGenError",
    "PlanError",
    "SourceError",
    "DiscLayoutError",
    "ArchiveError",
    "SizeError",
    "ConfigError",
    "internal_error",
    "E_ZERO_SIZE",
    "E_BAD_WAD",
    "E_SOURCE_IO",
    "E_COMPRESSED_LUMP",
    "E_INPUT_DIR",
    "E_NOT_FOUND",
    "E_COMPRESS",
    "E_ARCHIVE_LIMIT",
    "E_CONFIG",
    "E_SIZE_MISMATCH",
    "E_INTERNAL",
]
