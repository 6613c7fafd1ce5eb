"""
Command-line interface for photosort.

USAGE EXAMPLES:
---------------
1. Copy everything under an import folder into a dated archive:
    photosort -s ~/Pictures/import -t ~/Pictures/archive

2. Same, with debug output and a persistent log file:
    photosort -v -l ~/photosort.log -s ~/Pictures/import -t ~/Pictures/archive

3. Run as a module, without colours in the summary:
    python -m photosort --no-color -s import/ -t archive/

Files land in TARGET/YYYY/MonthName/D/ by EXIF capture date, or by file
modification time (UTC) when no usable capture date exists. Files already
present with the same size are skipped; same-named files of a different
size are reported and never overwritten.
"""

import argparse
import datetime
import logging
import os
import sys
from pathlib import Path

from photosort import __version__
from photosort.errors import InvalidPathError
from photosort.organizer import organize

LOGGER_NAME = "photosort"


class MaxLevelFilter(logging.Filter):
    """Let through only records below a given level."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record):
        return record.levelno < self.level


def set_up_logging(verbose: bool = False, log_file: Path = None):
    """
    Set up console logging and, optionally, a log file.

    Args:
        verbose (bool): Whether to enable verbose (DEBUG) logging
        log_file (Path, optional): File to append a copy of every message to

    Returns:
        logging.Logger: Configured logger instance

    Progress messages go to stdout; warnings and errors go to stderr as soon
    as they happen. Handlers from a previous call are replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Set logging level based on verbose flag
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Define a simple formatter that just prints the message
    formatter = logging.Formatter("%(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.setLevel(level)
    out.addFilter(MaxLevelFilter(logging.WARNING))
    out.setFormatter(formatter)
    logger.addHandler(out)

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(formatter)
    logger.addHandler(err)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def validate_args(source_dir: Path, target_dir: Path):
    """
    Make sure both directories exist before anything is copied.

    Raises:
        InvalidPathError: If either path is missing or not a directory
    """
    if not source_dir.exists() or not source_dir.is_dir():
        raise InvalidPathError("The source path is invalid. Please make sure it exists and is a directory.")
    if not target_dir.exists() or not target_dir.is_dir():
        raise InvalidPathError("The target path is invalid. Please make sure it exists and is a directory.")


def supports_color(disabled: bool = False) -> bool:
    """Check whether the summary may be coloured on stdout."""
    if disabled or os.environ.get("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def parse_arguments(args=None):
    """
    Parse command line arguments using argparse.

    Args:
        args (list, optional): Command line arguments. Defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="photosort",
        description="Copy photos and other files into TARGET/YYYY/Month/D/ folders, "
        "dated by EXIF capture time or, failing that, by file modification time.",
        epilog="Nothing is moved, deleted or overwritten. Re-running is safe: "
        "files already at the target with the same size are skipped.",
    )

    parser.add_argument(
        "-s",
        "--source-dir",
        "--source-path",
        dest="source_dir",
        required=True,
        type=Path,
        metavar="SOURCE",
        help="Directory to scan recursively. Must exist.",
    )

    parser.add_argument(
        "-t",
        "--target-dir",
        "--target-path",
        dest="target_dir",
        required=True,
        type=Path,
        metavar="TARGET",
        help="Root of the dated archive. Must exist.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging, including every folder scanned.",
    )

    parser.add_argument(
        "-l",
        "--log-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Also append all messages to this file.",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Do not colour the final summary. NO_COLOR in the environment has the same effect.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show program version and exit",
    )

    return parser.parse_args(args)


def main(args=None) -> int:
    """
    Main entry point.

    Args:
        args (list, optional): Command line arguments. Defaults to None.

    Returns:
        int: Exit status, 1 for invalid directories and 0 otherwise
    """
    parsed_args = parse_arguments(args)

    source_dir = parsed_args.source_dir.expanduser()
    target_dir = parsed_args.target_dir.expanduser()

    try:
        validate_args(source_dir, target_dir)
    except InvalidPathError as e:
        sys.stderr.write(f"{e}\n")
        return 1

    logger = set_up_logging(parsed_args.verbose, parsed_args.log_file)

    logger.debug("=" * 80)
    logger.debug(f"photosort {__version__}")
    logger.debug(f"Session Started: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.debug("Command-line options: %s", vars(parsed_args))
    logger.debug("=" * 80)

    summary = organize(source_dir.resolve(), target_dir.resolve(), logger)

    sys.stdout.write("\n" + summary.render(color=supports_color(parsed_args.no_color)))
    sys.stdout.flush()

    logger.debug(f"Session Ended: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    # Ensure all log messages are written
    for handler in logger.handlers:
        handler.flush()
    return 0
