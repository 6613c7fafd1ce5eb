"""
Walk a source tree and file every entry into the dated target tree.

Each file is handled in isolation: ``process_file`` never raises, it
returns a FileOutcome describing what happened, and ``organize`` folds
those outcomes into a single Summary.
"""

import datetime
import enum
import errno
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from photosort.dates import resolve_date
from photosort.errors import FileDateError
from photosort.placement import Placement, copy_file, decide_placement, ensure_parent, plan_destination
from photosort.summary import Summary


class Outcome(enum.Enum):
    """Terminal classification of one discovered file."""

    COPIED = "copied"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass(frozen=True)
class FileRecord:
    """A discovered file with the file system metadata needed to place it."""

    path: Path
    name: str
    extension: str  # lowercased, includes dot
    size: int  # bytes
    modified: Optional[float]  # st_mtime

    @classmethod
    def from_path(cls, path: Path) -> "FileRecord":
        """
        Build a record by stat-ing ``path``.

        Raises:
            OSError: If the file metadata cannot be read
        """
        stat = path.stat()
        return cls(
            path=path,
            name=path.name,
            extension=path.suffix.lower(),
            size=stat.st_size,
            modified=stat.st_mtime,
        )


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one file, ready to be folded into a Summary."""

    path: Path
    outcome: Outcome
    copied_bytes: int = 0
    exif_error: bool = False
    destination: Optional[Path] = None


class ScanError:
    """A directory entry the walk could not enumerate."""

    def __init__(self, error: OSError):
        self.error = error

    def __repr__(self):
        return f"ScanError({self.error!r})"


def scan_source(source_dir: Path, logger, exclude: Optional[Path] = None) -> Iterator[Union[Path, ScanError]]:
    """
    Recursively yield every non-directory entry under ``source_dir``.

    Enumeration failures are yielded in place as ScanError values so the
    caller can count them without the walk stopping. Dangling symbolic
    links and symbolic links to directories are reported the same way.
    ``exclude`` prunes a directory (the target, when it lives inside the
    source) from the walk.

    Args:
        source_dir (Path): Root of the walk
        logger (logging.Logger): Logger for folder progress
        exclude (Path, optional): Directory not to descend into

    Yields:
        Path or ScanError: One item per entry, in enumeration order
    """
    errors = []

    for folder_name, dir_names, file_names in os.walk(source_dir, onerror=errors.append):
        # os.walk reports listing failures through onerror before moving on
        while errors:
            yield ScanError(errors.pop(0))

        folder = Path(folder_name)
        logger.debug(f"Source Folder: {folder}")

        if exclude is not None:
            dir_names[:] = [d for d in dir_names if (folder / d).resolve() != exclude]

        # Symbolic links to directories are listed with the directories but never followed
        for dir_name in [d for d in dir_names if (folder / d).is_symlink()]:
            dir_names.remove(dir_name)
            yield ScanError(
                IsADirectoryError(errno.EISDIR, "Symbolic link to a directory is not followed", str(folder / dir_name))
            )

        for file_name in file_names:
            path = folder / file_name
            if path.is_symlink() and not path.exists():
                yield ScanError(FileNotFoundError(errno.ENOENT, "Broken symbolic link", str(path)))
                continue
            yield path

    while errors:
        yield ScanError(errors.pop(0))


def process_file(path: Path, target_root: Path, logger) -> FileOutcome:
    """
    Date, plan, decide and copy a single file.

    Args:
        path (Path): Source file
        target_root (Path): Root of the dated target tree
        logger (logging.Logger): Logger for progress, warnings and errors

    Returns:
        FileOutcome: The file's classification; never raises for per-file failures
    """
    # Read the file metadata and resolve its date
    try:
        record = FileRecord.from_path(path)
    except OSError as e:
        logger.error(f"Error while reading the file metadata for the file {path} - [{e}]")
        return FileOutcome(path, Outcome.ERROR)

    try:
        resolution = resolve_date(record, logger)
    except FileDateError as e:
        logger.error(f"Error while reading the file date for the file {path} - [{e}]")
        return FileOutcome(path, Outcome.ERROR)

    exif_error = resolution.exif_error
    destination = plan_destination(resolution.date, record.name, target_root)

    # If a file already occupies the slot, compare sizes and never overwrite
    try:
        placement = decide_placement(record.size, destination)
    except OSError as e:
        logger.error(f"Error while trying to read the size of the target file {destination} - [{e}]")
        return FileOutcome(path, Outcome.ERROR, exif_error=exif_error, destination=destination)

    if placement is Placement.SKIP_IDENTICAL:
        logger.info(f"Skipping {path}. It's already present at {destination}")
        return FileOutcome(path, Outcome.SKIPPED, exif_error=exif_error, destination=destination)

    if placement is Placement.SKIP_CONFLICT:
        logger.warning(
            "A file with the same name but a different size exists at the target. "
            f"This file would be skipped for copying - {path}"
        )
        return FileOutcome(path, Outcome.DUPLICATE, exif_error=exif_error, destination=destination)

    # Create the parent directory structure, then copy
    try:
        ensure_parent(destination)
    except OSError as e:
        logger.error(f"Error creating the parent directory {destination.parent} at the target - [{e}]")
        return FileOutcome(path, Outcome.ERROR, exif_error=exif_error, destination=destination)

    try:
        copied = copy_file(path, destination)
    except OSError as e:
        logger.error(f"Error while copying {path} to {destination} - [{e}]")
        return FileOutcome(path, Outcome.ERROR, exif_error=exif_error, destination=destination)

    logger.info(f"Copied {path} to {destination}")
    return FileOutcome(path, Outcome.COPIED, copied, exif_error, destination)


def apply_outcome(summary: Summary, outcome: FileOutcome) -> Summary:
    """
    Fold one file's outcome into the summary.

    A metadata warning is only tallied for files that were actually copied.
    """
    if outcome.outcome is Outcome.COPIED:
        if outcome.exif_error:
            summary.mark_exif_error(outcome.path)
        summary.mark_copied(outcome.copied_bytes)
    elif outcome.outcome is Outcome.SKIPPED:
        summary.mark_skipped()
    elif outcome.outcome is Outcome.DUPLICATE:
        summary.mark_duplicate(outcome.path)
    else:
        summary.mark_error(outcome.path)
    return summary


def organize(source_dir: Path, target_dir: Path, logger) -> Summary:
    """
    Copy every file under ``source_dir`` into ``target_dir/YYYY/Month/D/``.

    Both directories must already exist. One failing file never stops the
    walk; every failure ends up in the returned summary instead.

    Args:
        source_dir (Path): Directory to scan recursively
        target_dir (Path): Root of the dated target tree
        logger (logging.Logger): Logger for progress, warnings and errors

    Returns:
        Summary: Counters and paths for the whole run, with its duration set
    """
    started = time.monotonic()
    summary = Summary()

    source_dir = Path(source_dir)
    target_dir = Path(target_dir)

    # Keep the target out of the walk when it is nested inside the source
    exclude = None
    if source_dir.resolve() in target_dir.resolve().parents:
        exclude = target_dir.resolve()

    for entry in scan_source(source_dir, logger, exclude=exclude):
        if isinstance(entry, ScanError):
            logger.error(f"Error while scanning - [{entry.error}]")
            summary.mark_scan_error()
            continue

        apply_outcome(summary, process_file(entry, target_dir, logger))

    summary.set_duration(datetime.timedelta(seconds=time.monotonic() - started))
    logger.debug(f"Processed {summary.total_count} files")
    return summary
