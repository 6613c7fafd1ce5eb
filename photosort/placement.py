"""Destination planning, collision decisions and the copy itself."""

import enum
import shutil
from pathlib import Path

from photosort.dates import ResolvedDate


class Placement(enum.Enum):
    """What to do with a file whose destination path has been planned."""

    COPY = "copy"  # Nothing at the destination yet
    SKIP_IDENTICAL = "skip_identical"  # Same name and same size already there
    SKIP_CONFLICT = "skip_conflict"  # Same name, different size: never overwritten


def plan_destination(date: ResolvedDate, file_name: str, target_root: Path) -> Path:
    """
    Map a resolved date and file name to ``target_root/YYYY/MonthName/D/file_name``.

    Year and day are not zero-padded. Files with the same date and name
    always map to the same path, whatever directory they came from.

    Example:
        (2022, 1, 6), "a.jpg" -> target_root/2022/January/6/a.jpg
    """
    return Path(target_root) / str(date.year) / date.month_name / str(date.day) / file_name


def decide_placement(source_len: int, destination_path: Path) -> Placement:
    """
    Decide whether a file may be copied to ``destination_path``.

    Size equality is the only test for "already copied"; contents are not
    compared.

    Raises:
        OSError: If the existing destination cannot be stat-ed
    """
    try:
        destination_len = destination_path.stat().st_size
    except FileNotFoundError:
        return Placement.COPY

    if destination_len == source_len:
        return Placement.SKIP_IDENTICAL
    return Placement.SKIP_CONFLICT


def ensure_parent(destination_path: Path) -> Path:
    """Create the parent directory chain of ``destination_path`` if missing."""
    parent = destination_path.parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent


def copy_file(source_path: Path, destination_path: Path) -> int:
    """
    Copy the contents of ``source_path`` to ``destination_path``.

    Permissions and timestamps are not carried over. The parent directory
    must already exist, see ensure_parent.

    Returns:
        int: Number of bytes written

    Raises:
        OSError: If the copy fails
    """
    shutil.copyfile(str(source_path), str(destination_path))
    return destination_path.stat().st_size
