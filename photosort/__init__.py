"""
photosort - Copy media files into a YYYY/Month/D tree by capture date.
"""

__version__ = "1.0.0"

from photosort.dates import DateResolution, ResolvedDate, resolve_date
from photosort.organizer import FileOutcome, FileRecord, Outcome, organize, process_file
from photosort.placement import Placement, copy_file, decide_placement, plan_destination
from photosort.summary import Summary

__all__ = [
    "__version__",
    "DateResolution",
    "FileOutcome",
    "FileRecord",
    "Outcome",
    "Placement",
    "ResolvedDate",
    "Summary",
    "copy_file",
    "decide_placement",
    "organize",
    "plan_destination",
    "process_file",
    "resolve_date",
]
