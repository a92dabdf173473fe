# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
JPEG file modifier

This module locates, removes and inserts the EXIF APP1 segment of a JPEG
byte stream. Everything from the start-of-scan marker on (entropy-coded
image data) is copied verbatim.

Copyright 2025 DNAi inc.
"""

import logging
import struct
from typing import List, NamedTuple, Optional, Tuple

from exiflab.exceptions import (
    CorruptContainerError,
    MetadataWriteError,
    SegmentTooLargeError,
    UnsupportedContainerError,
)

logger = logging.getLogger(__name__)

EXIF_HEADER = b'Exif\x00\x00'

# Largest payload a 2-byte segment length can describe
MAX_SEGMENT_PAYLOAD = 0xFFFF - 2


class SegmentLocation(NamedTuple):
    """Offset and length of a segment payload (after the length field)."""
    offset: int
    length: int


class JPEGModifier:
    """
    Parses the marker structure of a JPEG file.

    Segments are recorded as (marker, offset, length) where offset points at
    the 0xFF of the marker and length is the value of the length field
    (payload plus the two length bytes).
    """

    # JPEG markers
    SOI = 0xFFD8  # Start of Image
    EOI = 0xFFD9  # End of Image
    SOS = 0xFFDA  # Start of Scan
    APP1 = 0xFFE1  # APP1 (EXIF)
    TEM = 0xFF01

    def __init__(self, file_data: bytes):
        """
        Initialize JPEG modifier.

        Args:
            file_data: Original JPEG file data

        Raises:
            UnsupportedContainerError: If the data does not start with SOI
            CorruptContainerError: If the marker structure is invalid
        """
        self.file_data = bytes(file_data)
        self.segments: List[Tuple[int, int, int]] = []
        # Start of the part copied verbatim (SOS onwards, or EOI)
        self.tail_offset = len(self.file_data)
        self._parse_segments()

    def _parse_segments(self) -> None:
        """
        Parse JPEG file to find all segments up to the first scan.
        """
        data = self.file_data
        if len(data) < 2 or struct.unpack('>H', data[0:2])[0] != self.SOI:
            raise UnsupportedContainerError("Invalid JPEG file: missing SOI marker")

        i = 2
        while i < len(data):
            if data[i] != 0xFF:
                raise CorruptContainerError(f"Invalid JPEG file: expected marker at offset {i}")

            # Fill bytes before a marker
            while i + 1 < len(data) and data[i + 1] == 0xFF:
                i += 1
            if i + 1 >= len(data):
                raise CorruptContainerError("Invalid JPEG file: truncated marker")

            marker = 0xFF00 | data[i + 1]
            if marker == 0xFF00:
                raise CorruptContainerError(f"Invalid JPEG file: stuffed byte outside scan data at offset {i}")

            if marker == self.EOI:
                self.tail_offset = i
                return

            # Standalone markers carry no length
            if marker == self.TEM or 0xFFD0 <= marker <= 0xFFD7:
                self.segments.append((marker, i, 0))
                i += 2
                continue

            if i + 4 > len(data):
                raise CorruptContainerError(f"Invalid JPEG file: truncated segment header at offset {i}")
            length = struct.unpack('>H', data[i + 2:i + 4])[0]
            if length < 2:
                raise CorruptContainerError(f"Invalid JPEG file: bad segment length {length} at offset {i}")
            if i + 2 + length > len(data):
                raise CorruptContainerError(
                    f"Invalid JPEG file: segment at offset {i} runs past end of data"
                )

            if marker == self.SOS:
                self.tail_offset = i
                return

            self.segments.append((marker, i, length))
            i += 2 + length

        self.tail_offset = len(data)

    def _segment_bytes(self, offset: int, length: int) -> bytes:
        return self.file_data[offset:offset + 2 + length]

    def _is_exif_segment(self, marker: int, offset: int, length: int) -> bool:
        return (
            marker == self.APP1
            and length >= 2 + len(EXIF_HEADER)
            and self.file_data[offset + 4:offset + 10] == EXIF_HEADER
        )

    def find_exif_segment(self) -> Optional[SegmentLocation]:
        """Location of the first EXIF APP1 payload, or None."""
        for marker, offset, length in self.segments:
            if self._is_exif_segment(marker, offset, length):
                return SegmentLocation(offset + 4, length - 2)
        return None

    def remove_app1_segment(self) -> bytes:
        """
        Remove every EXIF APP1 segment.

        Returns:
            Modified JPEG file data without EXIF
        """
        new_data = bytearray(self.file_data[0:2])
        removed = 0
        for marker, offset, length in self.segments:
            if self._is_exif_segment(marker, offset, length):
                removed += 1
                continue
            new_data.extend(self._segment_bytes(offset, length))
        new_data.extend(self.file_data[self.tail_offset:])
        if removed:
            logger.debug("Removed %d EXIF segment(s)", removed)
        return bytes(new_data)

    def add_app1_segment(self, payload: bytes) -> bytes:
        """
        Insert an EXIF APP1 segment right after SOI.

        Args:
            payload: Segment payload starting with the 'Exif\\0\\0' preamble

        Returns:
            Modified JPEG file data

        Raises:
            MetadataWriteError: If the file already carries an EXIF segment
            SegmentTooLargeError: If the payload does not fit in one segment
        """
        if self.find_exif_segment() is not None:
            raise MetadataWriteError("JPEG already carries an EXIF segment; strip it first")
        if not payload.startswith(EXIF_HEADER):
            raise MetadataWriteError("EXIF payload must start with the 'Exif\\0\\0' preamble")
        if len(payload) > MAX_SEGMENT_PAYLOAD:
            raise SegmentTooLargeError(
                f"EXIF payload of {len(payload)} bytes exceeds the {MAX_SEGMENT_PAYLOAD} byte segment limit"
            )

        new_data = bytearray(self.file_data[0:2])
        new_data.extend(b'\xFF\xE1')
        new_data.extend(struct.pack('>H', len(payload) + 2))
        new_data.extend(payload)
        new_data.extend(self.file_data[2:])
        return bytes(new_data)


def is_jpeg(data: bytes) -> bool:
    return data[:2] == b'\xFF\xD8'


def locate_segment(data: bytes) -> Optional[SegmentLocation]:
    """
    Find the EXIF payload of a JPEG.

    Returns:
        SegmentLocation of the payload, or None if the JPEG has no EXIF segment

    Raises:
        UnsupportedContainerError: If data is not a JPEG
        CorruptContainerError: If the marker structure is invalid
    """
    return JPEGModifier(data).find_exif_segment()


def extract_segment(data: bytes) -> Optional[bytes]:
    """EXIF payload bytes of a JPEG, or None."""
    location = locate_segment(data)
    if location is None:
        return None
    return bytes(data[location.offset:location.offset + location.length])


def strip(data: bytes) -> bytes:
    """Return the JPEG without its EXIF segment(s)."""
    return JPEGModifier(data).remove_app1_segment()


def splice(segment: bytes, data: bytes) -> bytes:
    """Insert an EXIF payload into a JPEG that has none."""
    return JPEGModifier(data).add_app1_segment(segment)


def replace_segment(segment: bytes, data: bytes) -> bytes:
    """Replace whatever EXIF the JPEG carries with segment."""
    return splice(segment, strip(data))
