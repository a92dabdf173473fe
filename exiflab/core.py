# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Core ExifLab API

This module ties the container scanner, the tag codec and the field
mappers together. read_metadata/write_metadata work on raw JPEG bytes;
EditSession drives one image through load, edit and apply.

Copyright 2025 DNAi inc.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, List, Mapping, Optional

from exiflab.date_formatter import format_datetime, parse_datetime
from exiflab.device_profiles import DEVICE_PROFILES, DeviceProfile, apply_device_profile, find_profile_for
from exiflab.exceptions import (
    InvalidCoordinateError,
    MalformedDateTimeError,
    MetadataReadError,
    SessionStateError,
    UnsupportedContainerError,
)
from exiflab.exif_parser import ExifParser
from exiflab.exif_tags import CaptureTag, ImageTag
from exiflab.exif_writer import EXIFWriter
from exiflab.geotagging import LATITUDE, LONGITUDE, decimal_to_dms, read_coordinates, write_coordinates
from exiflab.jpeg_modifier import JPEGModifier, is_jpeg, replace_segment
from exiflab.metadata_block import MetadataBlock
from exiflab.metadata_diff import ChangeRow, DiffResult, diff_blocks, summarize_changes
from exiflab.raster_converter import convert_to_jpeg, is_convertible

logger = logging.getLogger(__name__)

DEFAULT_SOFTWARE = 'ExifLab'


def read_metadata(jpeg_data: bytes) -> Optional[MetadataBlock]:
    """
    Read the EXIF block of a JPEG.

    Directories that cannot be decoded are logged and left empty. If IFD0
    itself is unreadable the image is treated as carrying no metadata.

    Returns:
        Decoded MetadataBlock, or None if the JPEG has no (readable) EXIF

    Raises:
        UnsupportedContainerError: If the data is not a JPEG
        CorruptContainerError: If the JPEG marker structure is invalid
    """
    modifier = JPEGModifier(jpeg_data)
    location = modifier.find_exif_segment()
    if location is None:
        return None

    payload = jpeg_data[location.offset:location.offset + location.length]
    try:
        return ExifParser(payload).parse(strict=False)
    except MetadataReadError as e:
        logger.warning("Ignoring unreadable EXIF metadata: %s", e)
        return None


def write_metadata(block: MetadataBlock, jpeg_data: bytes, endian: Optional[str] = None) -> bytes:
    """
    Replace the EXIF segment of a JPEG with block.

    Raises:
        EncodeError: If the block cannot be serialized
        SegmentTooLargeError: If the block does not fit in one APP1 segment
    """
    payload = EXIFWriter(endian=endian).build_exif_segment(block)
    return replace_segment(payload, jpeg_data)


class SessionState(Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    EDITED = "edited"
    APPLIED = "applied"


@dataclass
class EditableFields:
    """
    The values a user edits.

    device is a profile name (or, when no profile matches the image, its
    raw model string); None means the device footprint is removed.
    Coordinates are written only when both are set.
    """
    device: Optional[str] = None
    capture_time: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def fields_from_block(
    block: Optional[MetadataBlock],
    profiles: Mapping[str, DeviceProfile] = DEVICE_PROFILES,
) -> EditableFields:
    """Populate editable fields from a decoded block."""
    fields = EditableFields()
    if block is None:
        return fields

    make = block.image.get(ImageTag.Make)
    model = block.image.get(ImageTag.Model)
    profile = find_profile_for(make, model, profiles)
    fields.device = profile.name if profile else (model or None)

    original_time = block.capture.get(CaptureTag.DateTimeOriginal)
    if original_time:
        try:
            fields.capture_time = parse_datetime(original_time)
        except MalformedDateTimeError as e:
            logger.warning("Ignoring capture time: %s", e)

    try:
        coordinate = read_coordinates(block.gps)
    except InvalidCoordinateError as e:
        logger.warning("Ignoring GPS coordinates: %s", e)
        coordinate = None
    if coordinate is not None:
        fields.latitude = coordinate.latitude
        fields.longitude = coordinate.longitude
    return fields


_UNSET = object()


class EditSession:
    """
    One image moving through load, edit and apply.

    States: EMPTY -> LOADED -> EDITED -> APPLIED, APPLIED -> EDITED through
    back_to_edit(), and any state -> EMPTY through reset(). The decoded
    original block is never modified; apply() works on a copy.

    Example:
        >>> session = EditSession()
        >>> session.load(jpeg_bytes)
        >>> session.update_fields(device="Apple iPhone 15 Pro")
        >>> output = session.apply()
    """

    def __init__(
        self,
        profiles: Mapping[str, DeviceProfile] = DEVICE_PROFILES,
        software: str = DEFAULT_SOFTWARE,
        converter: Callable[[bytes], bytes] = convert_to_jpeg,
        endian: Optional[str] = None,
    ):
        """
        Initialize an edit session.

        Args:
            profiles: Device profile table used to resolve the device field
            software: Software string stamped on every output (a profile's
                own software string takes precedence)
            converter: Callable turning PNG/AVIF bytes into JPEG bytes
            endian: Byte order of the written EXIF; defaults to the
                original's ('>' for new metadata)
        """
        self.profiles = profiles
        self.software = software
        self.converter = converter
        self.endian = endian
        self._clear()

    def _clear(self) -> None:
        self.state = SessionState.EMPTY
        self.fields = EditableFields()
        self.output: Optional[bytes] = None
        self._source: Optional[bytes] = None
        self._jpeg: Optional[bytes] = None
        self._original: Optional[MetadataBlock] = None

    def _transition(self, state: SessionState) -> None:
        if state != self.state:
            logger.debug("Edit session %s -> %s", self.state.value, state.value)
        self.state = state

    @property
    def original(self) -> Optional[MetadataBlock]:
        """A copy of the decoded original block (None if the image had none)."""
        return self._original.copy() if self._original is not None else None

    @property
    def needs_conversion(self) -> bool:
        return self._source is not None and self._jpeg is None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, data: bytes) -> None:
        """
        Load an image, replacing whatever the session held.

        Raises:
            UnsupportedContainerError: If data is not a JPEG, PNG or AVIF
            CorruptContainerError: If a JPEG's marker structure is invalid
        """
        data = bytes(data)
        if is_jpeg(data):
            original = read_metadata(data)
            jpeg = data
        elif is_convertible(data):
            original = None
            jpeg = None
        else:
            raise UnsupportedContainerError("Unsupported image: expected JPEG, PNG or AVIF data")

        self._clear()
        self._source = data
        self._jpeg = jpeg
        self._original = original
        self.fields = fields_from_block(original, self.profiles)
        self._transition(SessionState.LOADED)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _begin_edit(self) -> None:
        if self.state == SessionState.EMPTY:
            raise SessionStateError("No image loaded")
        self.output = None
        self._transition(SessionState.EDITED)

    def update_fields(
        self,
        device=_UNSET,
        capture_time=_UNSET,
        latitude=_UNSET,
        longitude=_UNSET,
    ) -> None:
        """
        Change editable fields. Arguments left out keep their value; None
        clears a field.

        Args:
            device: Profile name, raw model string or None
            capture_time: datetime, 'YYYY:MM:DD HH:MM:SS' string or None
            latitude: Decimal degrees in [-90, 90] or None
            longitude: Decimal degrees in [-180, 180] or None

        Raises:
            SessionStateError: If no image is loaded
            MalformedDateTimeError: If capture_time is a malformed string
            InvalidCoordinateError: If a coordinate is out of range
        """
        changes = {}
        if device is not _UNSET:
            changes['device'] = device or None
        if capture_time is not _UNSET:
            if isinstance(capture_time, str):
                capture_time = parse_datetime(capture_time)
            changes['capture_time'] = capture_time
        if latitude is not _UNSET:
            if latitude is not None:
                decimal_to_dms(latitude, LATITUDE)
            changes['latitude'] = latitude
        if longitude is not _UNSET:
            if longitude is not None:
                decimal_to_dms(longitude, LONGITUDE)
            changes['longitude'] = longitude

        self._begin_edit()
        self.fields = replace(self.fields, **changes)

    def clear_location(self) -> None:
        self.update_fields(latitude=None, longitude=None)

    def clear_timestamp(self) -> None:
        self.update_fields(capture_time=None)

    def clear_privacy(self) -> None:
        """Clear the fields that reveal where and when the picture was taken."""
        self.update_fields(capture_time=None, latitude=None, longitude=None)

    def clear_device(self) -> None:
        """Clear the device footprint (Make and Model)."""
        self.update_fields(device=None)

    def clear_all(self) -> None:
        self.update_fields(device=None, capture_time=None, latitude=None, longitude=None)

    def reload_original(self) -> None:
        """Reset the fields to what the original metadata says."""
        self._begin_edit()
        self.fields = fields_from_block(self._original, self.profiles)

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def build_block(self) -> MetadataBlock:
        """
        The block apply() writes: a copy of the original with the fields
        stamped on it.
        """
        if self.state == SessionState.EMPTY:
            raise SessionStateError("No image loaded")

        if self._original is not None:
            block = self._original.copy()
        else:
            block = MetadataBlock()
        fields = self.fields

        block.image.set(ImageTag.Software, self.software)

        if fields.device is None:
            block.image.remove(ImageTag.Make)
            block.image.remove(ImageTag.Model)
        else:
            profile = self.profiles.get(fields.device)
            if profile is not None:
                apply_device_profile(block, profile)
            else:
                logger.debug("Device %r is not a known profile; leaving Make/Model untouched", fields.device)

        if fields.capture_time is not None:
            stamp = format_datetime(fields.capture_time)
            block.capture.set(CaptureTag.DateTimeOriginal, stamp)
            block.capture.set(CaptureTag.DateTimeDigitized, stamp)
        else:
            block.capture.remove(CaptureTag.DateTimeOriginal)
            block.capture.remove(CaptureTag.DateTimeDigitized)

        # GPS is rebuilt from the fields alone
        block.gps.clear()
        if fields.has_location:
            write_coordinates(block.gps, fields.latitude, fields.longitude)

        return block

    def _jpeg_source(self) -> bytes:
        if self._jpeg is None:
            logger.debug("Converting %d byte source image to JPEG", len(self._source))
            self._jpeg = self.converter(self._source)
        return self._jpeg

    def apply(self) -> bytes:
        """
        Write the edited metadata into a new JPEG.

        In the APPLIED state the already generated output is returned.
        On failure the session stays in its current state.

        Raises:
            SessionStateError: If no image is loaded
            ConversionError: If a PNG/AVIF source cannot be converted
            EncodeError: If the metadata cannot be serialized
            SegmentTooLargeError: If the metadata does not fit in one APP1 segment
        """
        if self.state == SessionState.APPLIED:
            return self.output
        block = self.build_block()
        output = write_metadata(block, self._jpeg_source(), self.endian)
        self.output = output
        self._transition(SessionState.APPLIED)
        return output

    def back_to_edit(self) -> None:
        """Discard the generated output and return to editing."""
        if self.state != SessionState.APPLIED:
            raise SessionStateError(f"Cannot go back to editing from {self.state.value}")
        self.output = None
        self._transition(SessionState.EDITED)

    def reset(self) -> None:
        self._clear()
        logger.debug("Edit session reset")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def changes(self) -> DiffResult:
        """Tag-level difference between the original and what apply() writes."""
        return diff_blocks(self._original, self.build_block())

    def summary(self) -> List[ChangeRow]:
        """Changed user-facing fields (device, date, location, exposure)."""
        return summarize_changes(self._original, self.build_block())
