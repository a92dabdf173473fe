# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
ExifLab - EXIF editing for JPEG images

Reads the EXIF APP1 segment of a JPEG into typed tag directories, lets the
device footprint, capture time and GPS location be rewritten, and writes
the result back into a new JPEG. The rest of the image is copied byte for
byte.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.0"
__author__ = "DNAi inc."

from exiflab.core import EditSession, EditableFields, SessionState, read_metadata, write_metadata
from exiflab.date_formatter import format_datetime, parse_datetime
from exiflab.device_profiles import (
    DEVICE_PROFILES,
    CaptureDefaults,
    DeviceProfile,
    apply_device_profile,
    get_device_profile,
    load_device_profiles,
)
from exiflab.exceptions import (
    ConversionError,
    CorruptContainerError,
    EncodeError,
    ExifLabError,
    InvalidCoordinateError,
    InvalidRationalError,
    MalformedDateTimeError,
    MetadataReadError,
    MetadataWriteError,
    SegmentTooLargeError,
    SessionStateError,
    TruncatedDirectoryError,
    UnknownProfileError,
    UnsupportedContainerError,
)
from exiflab.exif_parser import ExifParser, decode
from exiflab.exif_tags import CaptureTag, DirectoryKind, ExifTagType, GpsTag, ImageTag, InteropTag
from exiflab.exif_writer import EXIFWriter, encode
from exiflab.geotagging import GeoCoordinate, decimal_to_dms, dms_to_decimal
from exiflab.jpeg_modifier import locate_segment, splice, strip
from exiflab.metadata_block import KnownTag, MetadataBlock, Rational, TagDirectory, UnknownTag
from exiflab.metadata_diff import DiffResult, DiffType, MetadataDiff, diff_blocks, format_diff_result
from exiflab.value_formatter import format_exif_value, format_rational_display

__all__ = [
    "EditSession",
    "EditableFields",
    "SessionState",
    "read_metadata",
    "write_metadata",
    "format_datetime",
    "parse_datetime",
    "DEVICE_PROFILES",
    "CaptureDefaults",
    "DeviceProfile",
    "apply_device_profile",
    "get_device_profile",
    "load_device_profiles",
    "ConversionError",
    "CorruptContainerError",
    "EncodeError",
    "ExifLabError",
    "InvalidCoordinateError",
    "InvalidRationalError",
    "MalformedDateTimeError",
    "MetadataReadError",
    "MetadataWriteError",
    "SegmentTooLargeError",
    "SessionStateError",
    "TruncatedDirectoryError",
    "UnknownProfileError",
    "UnsupportedContainerError",
    "ExifParser",
    "decode",
    "CaptureTag",
    "DirectoryKind",
    "ExifTagType",
    "GpsTag",
    "ImageTag",
    "InteropTag",
    "EXIFWriter",
    "encode",
    "GeoCoordinate",
    "decimal_to_dms",
    "dms_to_decimal",
    "locate_segment",
    "splice",
    "strip",
    "KnownTag",
    "MetadataBlock",
    "Rational",
    "TagDirectory",
    "UnknownTag",
    "DiffResult",
    "DiffType",
    "MetadataDiff",
    "diff_blocks",
    "format_diff_result",
    "format_exif_value",
    "format_rational_display",
]
