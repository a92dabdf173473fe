# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for ExifLab

Read-side errors derive from MetadataReadError, write-side errors from
MetadataWriteError, so callers can recover from an unreadable original
while still treating a failed write as fatal.

Copyright 2025 DNAi inc.
"""


class ExifLabError(Exception):
    """
    Base exception for all ExifLab errors.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.

        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class MetadataReadError(ExifLabError):
    """
    Raised when existing metadata cannot be read.

    The edit session recovers from these: the affected metadata is treated
    as absent and editing starts from a blank state.
    """
    pass


class UnsupportedContainerError(MetadataReadError):
    """Raised when the input does not start with a JPEG SOI marker."""
    pass


class CorruptContainerError(MetadataReadError):
    """
    Raised when the JPEG marker structure is invalid.

    This exception is raised when:
    - A marker is expected but another byte is found
    - A segment length is below 2 or runs past the end of the data
    """
    pass


class TruncatedDirectoryError(MetadataReadError):
    """
    Raised when an IFD entry table or a tag value runs past the segment.
    """
    pass


class InvalidCoordinateError(MetadataReadError):
    """
    Raised for degenerate GPS data.

    This exception is raised when:
    - A DMS component has a zero denominator
    - The reference is not N/S (latitude) or E/W (longitude)
    - A coordinate falls outside its valid range
    """
    pass


class MalformedDateTimeError(MetadataReadError):
    """Raised when a timestamp is not in 'YYYY:MM:DD HH:MM:SS' form."""
    pass


class InvalidRationalError(MetadataReadError):
    """Raised when a rational with a zero denominator is displayed."""
    pass


class MetadataWriteError(ExifLabError):
    """
    Raised when new metadata cannot be written.

    No partial output is ever produced alongside this error.
    """
    pass


class EncodeError(MetadataWriteError):
    """
    Raised when a metadata block cannot be serialized.

    This exception is raised when:
    - A value does not fit its declared type
    - A rational has a zero denominator
    - The produced layout fails its self-consistency check
    """
    pass


class SegmentTooLargeError(MetadataWriteError):
    """Raised when an EXIF payload does not fit in a single APP1 segment."""
    pass


class UnknownProfileError(ExifLabError):
    """Raised when a device profile name is not in the profile table."""
    pass


class SessionStateError(ExifLabError):
    """Raised when an edit session operation is not valid in its current state."""
    pass


class ConversionError(ExifLabError):
    """Raised when a PNG/AVIF source cannot be re-encoded as JPEG."""
    pass
