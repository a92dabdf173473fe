# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Date formatting module

EXIF stores timestamps as 'YYYY:MM:DD HH:MM:SS'. Only that form is
accepted here; anything else is rejected rather than guessed at.

Copyright 2025 DNAi inc.
"""

import re
from datetime import datetime

from exiflab.exceptions import MalformedDateTimeError

EXIF_DATETIME_FORMAT = '%Y:%m:%d %H:%M:%S'

EXIF_DATETIME_PATTERN = re.compile(r'(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})')


def format_datetime(dt: datetime) -> str:
    """
    Format a datetime in EXIF form.

    Sub-second precision and time zone information are discarded.
    """
    # strftime does not zero-pad years below 1000 on every platform
    return (
        f"{dt.year:04d}:{dt.month:02d}:{dt.day:02d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )


def parse_datetime(text: str) -> datetime:
    """
    Parse an EXIF datetime string.

    Raises:
        MalformedDateTimeError: If text is not exactly 'YYYY:MM:DD HH:MM:SS'
            or names a date or time that does not exist
    """
    if isinstance(text, bytes):
        text = text.decode('ascii', errors='replace')
    if not isinstance(text, str):
        raise MalformedDateTimeError(f"Expected a datetime string, got {type(text).__name__}")

    match = EXIF_DATETIME_PATTERN.fullmatch(text)
    if not match:
        raise MalformedDateTimeError(f"Malformed EXIF datetime: {text!r}")

    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError as e:
        raise MalformedDateTimeError(f"Invalid EXIF datetime {text!r}: {e}")
