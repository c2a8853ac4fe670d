"""File IO helpers: bounded reads and all-or-nothing writes."""

from __future__ import annotations
from pathlib import Path
import os
import tempfile

__all__ = ["DataError", "safe_read_file", "atomic_write_bytes"]

MAX_INPUT_SIZE = 512 * 1024 * 1024


class DataError(OSError):
    pass


def safe_read_file(path: Path, max_size: int = MAX_INPUT_SIZE) -> bytes:
    if not path.exists():
        raise DataError(f"File not found: {path}")
    size = path.stat().st_size
    if size > max_size:
        raise DataError(f"File too large: {size}>{max_size}")
    return path.read_bytes()


def atomic_write_bytes(path: Path, data: bytes) -> int:
    """Write ``data`` to ``path`` via a sibling temp file and rename.

    The destination is untouched if anything fails before the rename.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return len(data)
