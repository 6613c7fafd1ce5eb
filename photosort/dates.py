"""
Date resolution for discovered files.

A file's date is taken, in order of preference, from:

1. the EXIF ``DateTimeOriginal`` field of JPEG files (read with exifread),
2. the ``creation_date`` of video containers (read with hachoir),
3. the file system modification time, converted to UTC.

Only the calendar date is kept; the time of day plays no part in placement.
"""

import datetime
import logging
from typing import NamedTuple, Optional

import exifread

# Third-party library imports for container metadata extraction
from hachoir.core import config as hachoir_config
from hachoir.metadata import extractMetadata
from hachoir.parser import createParser

from photosort.errors import FileDateError, MetadataDateError

# Suppress hachoir warnings to keep console output clean
hachoir_config.quiet = True
logging.getLogger("exifread").setLevel(logging.ERROR)

EXIF_COMPATIBLE_EXTENSIONS = frozenset({".jpg", ".jpeg"})
CONTAINER_COMPATIBLE_EXTENSIONS = frozenset({".mov", ".mp4", ".m4v", ".3gp"})

EXIF_DATE_TAG = "EXIF DateTimeOriginal"
JPEG_SOI = b"\xff\xd8"
EXIF_APP1_HEADER = b"Exif\x00\x00"
# Bytes searched for the APP1 header; one APP1 segment is at most 64 KiB
EXIF_SEARCH_WINDOW = 0x10000 + 4096
EXIF_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S")

# QuickTime stores "unset" creation times as seconds since this epoch
QUICKTIME_EPOCH = datetime.date(1904, 1, 1)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class ResolvedDate(NamedTuple):
    """A calendar date attributed to a file for placement purposes."""

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: datetime.date) -> "ResolvedDate":
        return cls(value.year, value.month, value.day)

    @classmethod
    def of(cls, year: int, month: int, day: int) -> "ResolvedDate":
        """Build a ResolvedDate, raising ValueError for impossible dates."""
        return cls.from_date(datetime.date(year, month, day))

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    def as_date(self) -> datetime.date:
        return datetime.date(self.year, self.month, self.day)


class DateResolution(NamedTuple):
    """
    Outcome of resolving a file's date.

    Attributes:
        date (ResolvedDate): The date the file will be filed under
        source (str): Where the date came from: "exif", "container" or "modified"
        warning (MetadataDateError or None): Why embedded metadata was not used,
            if it was attempted and failed
    """

    date: ResolvedDate
    source: str
    warning: Optional[MetadataDateError] = None

    @property
    def exif_error(self) -> bool:
        return self.warning is not None and self.warning.counted


def parse_exif_datetime(value: str) -> ResolvedDate:
    """
    Parse an EXIF date-time string and keep only its date.

    Args:
        value (str): e.g. "2008:05:30 15:56:01"

    Returns:
        ResolvedDate: The date portion

    Raises:
        ValueError: If the value matches none of the accepted formats
    """
    value = value.strip().rstrip("\x00")
    for fmt in EXIF_DATE_FORMATS:
        try:
            return ResolvedDate.from_date(datetime.datetime.strptime(value, fmt).date())
        except ValueError:
            continue
    raise ValueError(f"unrecognised EXIF date-time {value!r}")


def get_date_from_exif(path) -> ResolvedDate:
    """
    Read the original capture date from the EXIF block of a JPEG.

    Raises:
        MetadataDateError: If the file is not a JPEG, the block is malformed,
            lacks DateTimeOriginal, or holds an unparsable value. A JPEG with
            no EXIF segment at all raises with ``counted=False``.
    """
    try:
        with open(path, "rb") as f:
            head = f.read(EXIF_SEARCH_WINDOW)
            f.seek(0)
            tags = exifread.process_file(f, details=False)
    except OSError as e:
        raise MetadataDateError(f"Failed to open the file for reading exif: {e}") from e
    except Exception as e:
        raise MetadataDateError(f"Failed to parse the exif data: {e}") from e

    # exifread returns no tags both for a missing and for a malformed block
    if not tags:
        if not head.startswith(JPEG_SOI):
            raise MetadataDateError("The file is not a JPEG container")
        if EXIF_APP1_HEADER in head:
            raise MetadataDateError("Malformed exif data in the file")
        raise MetadataDateError("No exif data in the file", counted=False)

    date_tag = tags.get(EXIF_DATE_TAG)
    if date_tag is None:
        raise MetadataDateError("No datetime in the exif data")

    try:
        return parse_exif_datetime(str(date_tag))
    except ValueError as e:
        raise MetadataDateError(f"Failed to parse the exif datetime: {e}") from e


def get_date_from_container(path) -> ResolvedDate:
    """
    Read the embedded creation date of a video container using hachoir.

    Videos carry no EXIF block, so failures here are reported but never
    tallied as EXIF errors.

    Raises:
        MetadataDateError: With ``counted=False``, if the container cannot be
            parsed or has no usable date
    """
    try:
        parser = createParser(str(path))
    except Exception as e:
        raise MetadataDateError(f"Failed to create parser: {e}", counted=False) from e

    if not parser:
        raise MetadataDateError("Unable to parse the file container", counted=False)

    with parser:
        try:
            metadata = extractMetadata(parser)
        except Exception as err:
            raise MetadataDateError(f"Metadata extraction error: {err}", counted=False) from err

    if not metadata:
        raise MetadataDateError("Unable to extract metadata", counted=False)

    values = metadata.getValues("creation_date")
    if not values:
        raise MetadataDateError("No creation date in the container metadata", counted=False)

    created = values[0]
    if isinstance(created, datetime.datetime):
        created = created.date()
    if created == QUICKTIME_EPOCH:
        raise MetadataDateError("Container creation date is unset", counted=False)
    return ResolvedDate.from_date(created)


def get_date_from_file(record) -> ResolvedDate:
    """
    Take the date of the file's last modification, in UTC.

    Raises:
        FileDateError: If the modification time is missing or out of range
    """
    if record.modified is None:
        raise FileDateError("Failed to read file modified time")
    try:
        modified = datetime.datetime.fromtimestamp(record.modified, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise FileDateError(f"Failed to convert file modified time: {e}") from e
    return ResolvedDate.from_date(modified.date())


def resolve_date(record, logger) -> DateResolution:
    """
    Resolve the date a file is filed under.

    Args:
        record (FileRecord): The discovered file
        logger (logging.Logger): Logger for the metadata warning

    Returns:
        DateResolution: The date and where it came from

    Raises:
        FileDateError: Only when the modification time fallback itself fails
    """
    warning = None

    if record.extension in EXIF_COMPATIBLE_EXTENSIONS:
        reader, source = get_date_from_exif, "exif"
    elif record.extension in CONTAINER_COMPATIBLE_EXTENSIONS:
        reader, source = get_date_from_container, "container"
    else:
        reader = None

    if reader is not None:
        try:
            return DateResolution(reader(record.path), source)
        except MetadataDateError as e:
            logger.warning(
                f"Warning. Could not read the metadata date from the file {record.path} - [{e}]. "
                "Will default to file modified time."
            )
            warning = e

    return DateResolution(get_date_from_file(record), "modified", warning)
