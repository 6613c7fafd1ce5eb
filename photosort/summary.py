"""
Run summary: counters and path lists accumulated while organizing, and
their rendering as a plain-text report.
"""

import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

ANSI_COLORS = {
    "red": "\033[91m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "cyan": "\033[96m",
    "reset": "\033[0m",
}

SIZE_UNITS = ("KB", "MB", "GB", "TB", "PB", "EB")


def colorize(text: str, color: str, enabled: bool = True) -> str:
    """Wrap text in an ANSI colour sequence when enabled."""
    if not enabled or color not in ANSI_COLORS:
        return text
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


def format_size(num_bytes: int) -> str:
    """
    Render a byte count in SI units.

    Examples:
        512 -> "512 B"
        181870 -> "181.9 KB"
        999950 -> "1.0 MB"
    """
    if num_bytes < 1000:
        return f"{num_bytes} B"
    value = float(num_bytes)
    for unit in SIZE_UNITS:
        value /= 1000
        # Compare the value as it will be displayed
        if round(value, 1) < 1000 or unit == SIZE_UNITS[-1]:
            return f"{value:.1f} {unit}"


def format_duration(duration: datetime.timedelta) -> str:
    """
    Render a duration as space-separated units, largest first.

    Examples:
        timedelta(seconds=3723) -> "1h 2m 3s"
        timedelta(microseconds=2500) -> "2ms 500us"
        timedelta(days=2, seconds=1) -> "2days 1s"
        timedelta(0) -> "0s"
    """
    total_us = (
        duration.days * 86_400_000_000 + duration.seconds * 1_000_000 + duration.microseconds
    )
    parts = []
    for unit, size in (
        ("day", 86_400_000_000),
        ("h", 3_600_000_000),
        ("m", 60_000_000),
        ("s", 1_000_000),
        ("ms", 1_000),
        ("us", 1),
    ):
        amount, total_us = divmod(total_us, size)
        if amount:
            if unit == "day" and amount > 1:
                unit = "days"
            parts.append(f"{amount}{unit}")
    return " ".join(parts) if parts else "0s"


@dataclass
class Summary:
    """
    Outcome counters for one run.

    Only the mark_* methods mutate it; counters only grow and path lists
    keep discovery order.
    """

    scan_error_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    duplicate_count: int = 0
    exif_error_count: int = 0
    copy_count: int = 0
    copied_bytes: int = 0
    duration: datetime.timedelta = field(default_factory=datetime.timedelta)
    errored_files: List[Path] = field(default_factory=list)
    duplicate_files: List[Path] = field(default_factory=list)
    exif_errored_files: List[Path] = field(default_factory=list)

    def mark_scan_error(self):
        self.scan_error_count += 1

    def mark_error(self, path: Path):
        self.error_count += 1
        self.errored_files.append(path)

    def mark_skipped(self):
        self.skipped_count += 1

    def mark_duplicate(self, path: Path):
        self.duplicate_count += 1
        self.duplicate_files.append(path)

    def mark_exif_error(self, path: Path):
        self.exif_error_count += 1
        self.exif_errored_files.append(path)

    def mark_copied(self, num_bytes: int):
        self.copy_count += 1
        self.copied_bytes += num_bytes

    def set_duration(self, duration: datetime.timedelta):
        self.duration = duration

    @property
    def total_count(self) -> int:
        """Files that reached a terminal classification (scan errors excluded)."""
        return self.copy_count + self.skipped_count + self.duplicate_count + self.error_count

    @property
    def is_clean(self) -> bool:
        return not (self.scan_error_count or self.error_count or self.duplicate_count)

    def render(self, color: bool = False) -> str:
        """
        Render the summary as a multi-line report.

        The first line carries the duration and total bytes copied. Each
        following block belongs to one counter, in a fixed order, and is
        left out entirely when that counter is zero.
        """
        lines = [
            f"{colorize('Completed', 'green', color)} in {format_duration(self.duration)}. "
            f"Copied {format_size(self.copied_bytes)} in total."
        ]

        if self.copy_count > 0:
            lines.append(f"{colorize('Copied', 'green', color)} {self.copy_count} files")

        if self.skipped_count > 0:
            lines.append(
                f"{colorize('Skipped', 'cyan', color)} copying {self.skipped_count} files "
                "since they were already present at the target"
            )

        if self.exif_error_count > 0:
            lines.append(
                f"{colorize('Error', 'yellow', color)} reading the exif data for "
                f"{self.exif_error_count} files. They were copied using the file modified time -"
            )
            lines.extend(str(path) for path in self.exif_errored_files)

        if self.duplicate_count > 0:
            lines.append(
                f"{colorize('Skipped', 'red', color)} copying {self.duplicate_count} files "
                "since they were present at the target but were of a different size -"
            )
            lines.extend(str(path) for path in self.duplicate_files)

        if self.scan_error_count > 0:
            lines.append(f"{colorize('Failed', 'red', color)} to scan {self.scan_error_count} files.")

        if self.error_count > 0:
            lines.append(
                f"{colorize('Failed', 'red', color)} to copy {self.error_count} files. "
                "The following files were not copied -"
            )
            lines.extend(str(path) for path in self.errored_files)

        return "\n".join(lines) + "\n"
