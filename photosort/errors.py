"""Exception hierarchy for photosort."""


class PhotosortError(Exception):
    """Base error for the project."""


class InvalidPathError(PhotosortError):
    pass


class MetadataDateError(PhotosortError):
    """
    The embedded capture date of a file could not be used.

    Always recoverable: the caller falls back to the file system date.
    ``counted`` is False when a JPEG simply carries no EXIF segment, or when
    the date came from a video container; both are reported but not
    tallied as EXIF errors.
    """

    def __init__(self, message: str, counted: bool = True):
        super().__init__(message)
        self.counted = counted


class FileDateError(PhotosortError):
    """The file system modification time could not be read."""
