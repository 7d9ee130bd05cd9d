"""Small filesystem and formatting helpers."""

import logging
import re
import shutil
from pathlib import Path
from typing import Container, Optional

from .errors import RenameError

logger = logging.getLogger(__name__)

SKIPPED_SUFFIXES = ("~", ".tmp", ".swp")

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMGT]?B?)\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "B": 1, "K": 1024, "KB": 1024, "M": 1024 ** 2, "MB": 1024 ** 2,
               "G": 1024 ** 3, "GB": 1024 ** 3, "T": 1024 ** 4, "TB": 1024 ** 4}


def format_size(size_bytes: int) -> str:
    """Format size in bytes to human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    size = float(size_bytes)
    for unit in ["KB", "MB", "GB"]:
        size /= 1024
        if size < 1024 or unit == "GB":
            return f"{size:.2f}{unit}"
    return f"{size:.2f}GB"


def parse_size(value) -> int:
    """Parse ``"10MB"``, ``"512KB"`` or a plain byte count into bytes."""
    if isinstance(value, (int, float)):
        return int(value)
    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit.upper()])


def is_skipped_name(name: str) -> bool:
    """Hidden, backup and editor temp files are never scanned."""
    return name.startswith(".") or name.endswith(SKIPPED_SUFFIXES)


def unique_path(dest: Path, claimed: Optional[Container[Path]] = None) -> Path:
    """
    If dest is taken, append '_1', '_2', ... before the suffix.

    A path is taken when it exists on disk or is in ``claimed``. Returns a
    path that is neither.
    """
    claimed = claimed if claimed is not None else ()

    def taken(candidate: Path) -> bool:
        return candidate.exists() or candidate in claimed

    if not taken(dest):
        return dest

    stem = dest.stem
    suffix = dest.suffix
    parent = dest.parent
    i = 1
    while True:
        candidate = parent / f"{stem}_{i}{suffix}"
        if not taken(candidate):
            return candidate
        i += 1


def copy_file(src: Path, dst: Path) -> None:
    """Copy a file with its metadata, creating parent folders."""
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as e:
        logger.error(f"Failed to copy {src} to {dst}: {e}")
        raise RenameError(f"failed to copy {src} to {dst}: {e}") from e
    logger.debug(f"Copied {src} to {dst}")
