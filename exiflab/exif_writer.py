# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF metadata writer

This module serializes a MetadataBlock into an EXIF APP1 payload.

Layout is computed before anything is written: the first pass measures
every directory (entry table plus out-of-line value area), the second
assigns offsets in the fixed order header, IFD0, Exif IFD, GPS IFD,
Interop IFD, IFD1, thumbnail, and only then are bytes produced. The
result is checked for dangling or overlapping regions before it is
returned.

Copyright 2025 DNAi inc.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from exiflab.exceptions import EncodeError, SegmentTooLargeError
from exiflab.exif_tags import (
    BINARY_TYPES,
    INLINE_VALUE_SIZE,
    INTEGER_TYPES,
    RATIONAL_TYPES,
    STRUCT_FORMATS,
    TEXT_TYPES,
    DirectoryKind,
    ExifTagType,
    PointerTag,
    element_size,
)
from exiflab.jpeg_modifier import EXIF_HEADER, MAX_SEGMENT_PAYLOAD
from exiflab.metadata_block import KnownTag, MetadataBlock, Rational, TagDirectory, UnknownTag

logger = logging.getLogger(__name__)

TIFF_HEADER_SIZE = 8
ENTRY_SIZE = 12

# Region name a pointer entry resolves to
THUMBNAIL_DATA = 'thumbnail_data'

POINTER_TAG_IDS = frozenset(int(tag) for tag in PointerTag)


@dataclass
class _EntryPlan:
    """One 12-byte directory entry and the value bytes it refers to."""
    tag_id: int
    value_type: int
    count: int
    data: bytes
    # Region whose final offset fills the value field
    pointer: Optional[str] = None
    # Offset inside the directory's value area for out-of-line values
    area_offset: int = 0

    @property
    def inline(self) -> bool:
        return self.pointer is not None or len(self.data) <= INLINE_VALUE_SIZE


@dataclass
class _DirectoryPlan:
    kind: DirectoryKind
    entries: List[_EntryPlan]
    value_area_size: int = 0
    offset: int = 0
    next_region: Optional[str] = None

    @property
    def table_size(self) -> int:
        return 2 + len(self.entries) * ENTRY_SIZE + 4

    @property
    def size(self) -> int:
        return self.table_size + self.value_area_size


def _word_align(size: int) -> int:
    return size + (size & 1)


class EXIFWriter:
    """
    Writes a MetadataBlock as an EXIF APP1 payload.
    """

    def __init__(self, endian: Optional[str] = None):
        """
        Initialize EXIF writer.

        Args:
            endian: Byte order ('<' for little-endian, '>' for big-endian).
                Defaults to the byte order of the block being written.
        """
        if endian not in (None, '<', '>'):
            raise ValueError(f"Invalid byte order: {endian!r}")
        self.endian = endian

    def build_exif_segment(self, block: MetadataBlock) -> bytes:
        """
        Build the APP1 payload ('Exif\\0\\0' + TIFF structure) for a block.

        Raises:
            EncodeError: If a value cannot be encoded or the layout is inconsistent
            SegmentTooLargeError: If the payload does not fit in one APP1 segment
        """
        endian = self.endian or block.byte_order
        plans = self._plan_directories(block, endian)
        regions = self._assign_offsets(plans, block.thumbnail_data)
        tiff_data = self._serialize(plans, regions, block.thumbnail_data, endian)
        self._verify(plans, regions, block.thumbnail_data, len(tiff_data))

        payload = EXIF_HEADER + tiff_data
        if len(payload) > MAX_SEGMENT_PAYLOAD:
            raise SegmentTooLargeError(
                f"EXIF payload of {len(payload)} bytes exceeds the {MAX_SEGMENT_PAYLOAD} byte segment limit"
            )
        logger.debug("Built EXIF payload of %d bytes with %d directories", len(payload), len(plans))
        return payload

    # ------------------------------------------------------------------
    # Pass one: measure
    # ------------------------------------------------------------------

    def _plan_directories(self, block: MetadataBlock, endian: str) -> List[_DirectoryPlan]:
        has_thumbnail = len(block.thumbnail) > 0 or block.thumbnail_data is not None
        has_interop = len(block.interop) > 0
        has_capture = len(block.capture) > 0 or has_interop
        has_gps = len(block.gps) > 0

        image = self._plan_directory(block.image, block.byte_order, endian)
        if has_capture:
            image.entries.append(self._pointer_entry(PointerTag.ExifIFD, DirectoryKind.CAPTURE.value))
        if has_gps:
            image.entries.append(self._pointer_entry(PointerTag.GPSIFD, DirectoryKind.GPS.value))
        if has_thumbnail:
            image.next_region = DirectoryKind.THUMBNAIL.value
        plans = [image]

        if has_capture:
            capture = self._plan_directory(block.capture, block.byte_order, endian)
            if has_interop:
                capture.entries.append(
                    self._pointer_entry(PointerTag.InteroperabilityIFD, DirectoryKind.INTEROP.value)
                )
            plans.append(capture)
        if has_gps:
            plans.append(self._plan_directory(block.gps, block.byte_order, endian))
        if has_interop:
            plans.append(self._plan_directory(block.interop, block.byte_order, endian))
        if has_thumbnail:
            thumbnail = self._plan_directory(block.thumbnail, block.byte_order, endian)
            if block.thumbnail_data is not None:
                thumbnail.entries.append(self._pointer_entry(PointerTag.JPEGInterchangeFormat, THUMBNAIL_DATA))
                thumbnail.entries.append(_EntryPlan(
                    tag_id=PointerTag.JPEGInterchangeFormatLength,
                    value_type=ExifTagType.LONG,
                    count=1,
                    data=struct.pack(f'{endian}I', len(block.thumbnail_data)),
                ))
            plans.append(thumbnail)

        for plan in plans:
            plan.entries.sort(key=lambda e: e.tag_id)
            area = 0
            for entry in plan.entries:
                if not entry.inline:
                    entry.area_offset = area
                    area += _word_align(len(entry.data))
            plan.value_area_size = area
        return plans

    def _pointer_entry(self, tag: PointerTag, region: str) -> _EntryPlan:
        return _EntryPlan(tag_id=int(tag), value_type=ExifTagType.LONG, count=1, data=b'', pointer=region)

    def _plan_directory(self, directory: TagDirectory, source_endian: str, endian: str) -> _DirectoryPlan:
        entries = []
        for entry in directory.entries():
            if entry.tag_id in POINTER_TAG_IDS:
                raise EncodeError(
                    f"Pointer tag 0x{entry.tag_id:04X} is written by the layout, not stored in {directory.kind.value}"
                )
            if isinstance(entry, KnownTag):
                value_type, data, count = self._encode_tag_value(entry, endian)
            else:
                value_type, data, count = self._encode_unknown(entry, source_endian, endian)
            entries.append(_EntryPlan(tag_id=entry.tag_id, value_type=value_type, count=count, data=data))
        return _DirectoryPlan(kind=directory.kind, entries=entries)

    def _encode_tag_value(self, entry: KnownTag, endian: str) -> Tuple[int, bytes, int]:
        """
        Encode a known tag value to binary format.

        Returns:
            Tuple of (tag_type, encoded_bytes, count)
        """
        value_type = entry.value_type
        value = entry.value

        if value_type in TEXT_TYPES:
            if '\x00' in value:
                raise EncodeError(f"{entry.name} text contains a NUL character")
            encoded = value.encode('utf-8') + b'\x00'
            return value_type, encoded, len(encoded)

        if value_type in BINARY_TYPES:
            return value_type, bytes(value), len(value)

        values = value if isinstance(value, tuple) and not isinstance(value, Rational) else (value,)

        try:
            if value_type in INTEGER_TYPES:
                encoded = struct.pack(f'{endian}{len(values)}{STRUCT_FORMATS[value_type]}', *values)
                return value_type, encoded, len(values)

            if value_type in RATIONAL_TYPES:
                for rational in values:
                    if rational.denominator == 0:
                        raise EncodeError(f"{entry.name} has a rational with a zero denominator")
                flat = [part for rational in values for part in rational]
                encoded = struct.pack(f'{endian}{STRUCT_FORMATS[value_type] * len(values)}', *flat)
                return value_type, encoded, len(values)
        except struct.error as e:
            raise EncodeError(f"{entry.name} value {value!r} does not fit {value_type.name}: {e}")

        raise EncodeError(f"{entry.name} has unsupported type {value_type!r}")

    def _encode_unknown(self, entry: UnknownTag, source_endian: str, endian: str) -> Tuple[int, bytes, int]:
        size = element_size(entry.value_type)
        if size is None:
            if source_endian != endian:
                raise EncodeError(
                    f"Cannot change byte order of opaque tag 0x{entry.tag_id:04X} with unknown type {entry.value_type}"
                )
            if len(entry.raw) != INLINE_VALUE_SIZE:
                raise EncodeError(f"Opaque tag 0x{entry.tag_id:04X} must carry its 4-byte value field")
            # Re-emitted verbatim in the value field
            return entry.value_type, entry.raw, entry.count

        if len(entry.raw) != size * entry.count:
            raise EncodeError(
                f"Opaque tag 0x{entry.tag_id:04X} carries {len(entry.raw)} bytes, expected {size * entry.count}"
            )
        raw = entry.raw
        fmt = STRUCT_FORMATS.get(ExifTagType(entry.value_type))
        if source_endian != endian and fmt is not None:
            values = struct.unpack(f'{source_endian}{fmt * entry.count}', raw)
            raw = struct.pack(f'{endian}{fmt * entry.count}', *values)
        return entry.value_type, raw, entry.count

    # ------------------------------------------------------------------
    # Pass two: assign offsets
    # ------------------------------------------------------------------

    def _assign_offsets(self, plans: List[_DirectoryPlan], thumbnail_data: Optional[bytes]) -> Dict[str, Tuple[int, int]]:
        """
        Place every region after the TIFF header.

        Returns:
            Region name to (offset, size)
        """
        regions: Dict[str, Tuple[int, int]] = {}
        cursor = TIFF_HEADER_SIZE
        for plan in plans:
            plan.offset = cursor
            regions[plan.kind.value] = (cursor, plan.size)
            cursor = _word_align(cursor + plan.size)
        if thumbnail_data is not None and DirectoryKind.THUMBNAIL.value in regions:
            regions[THUMBNAIL_DATA] = (cursor, len(thumbnail_data))
        return regions

    def _serialize(
        self,
        plans: List[_DirectoryPlan],
        regions: Dict[str, Tuple[int, int]],
        thumbnail_data: Optional[bytes],
        endian: str,
    ) -> bytes:
        end = max(offset + size for offset, size in regions.values())
        buffer = bytearray(end)

        buffer[0:2] = b'II' if endian == '<' else b'MM'
        buffer[2:8] = struct.pack(f'{endian}HI', 42, plans[0].offset)

        for plan in plans:
            buffer[plan.offset:plan.offset + plan.table_size] = self._write_ifd(plan, regions, endian)
            area_start = plan.offset + plan.table_size
            for entry in plan.entries:
                if not entry.inline:
                    start = area_start + entry.area_offset
                    buffer[start:start + len(entry.data)] = entry.data

        if THUMBNAIL_DATA in regions:
            start, size = regions[THUMBNAIL_DATA]
            buffer[start:start + size] = thumbnail_data

        return bytes(buffer)

    def _write_ifd(self, plan: _DirectoryPlan, regions: Dict[str, Tuple[int, int]], endian: str) -> bytes:
        """
        Write an IFD entry table including the next-IFD field.
        """
        ifd = bytearray(struct.pack(f'{endian}H', len(plan.entries)))
        area_start = plan.offset + plan.table_size

        for entry in plan.entries:
            ifd.extend(struct.pack(f'{endian}HHI', entry.tag_id, entry.value_type, entry.count))
            if entry.pointer is not None:
                ifd.extend(struct.pack(f'{endian}I', regions[entry.pointer][0]))
            elif entry.inline:
                ifd.extend(entry.data.ljust(INLINE_VALUE_SIZE, b'\x00'))
            else:
                ifd.extend(struct.pack(f'{endian}I', area_start + entry.area_offset))

        next_offset = regions[plan.next_region][0] if plan.next_region else 0
        ifd.extend(struct.pack(f'{endian}I', next_offset))
        return bytes(ifd)

    def _verify(
        self,
        plans: List[_DirectoryPlan],
        regions: Dict[str, Tuple[int, int]],
        thumbnail_data: Optional[bytes],
        total_size: int,
    ) -> None:
        """
        Check that every region lies inside the buffer and none overlap.

        Raises:
            EncodeError: On any violation
        """
        spans = [(0, TIFF_HEADER_SIZE, 'header')]
        for plan in plans:
            spans.append((plan.offset, plan.table_size, f'{plan.kind.value} IFD'))
            area_start = plan.offset + plan.table_size
            for entry in plan.entries:
                if entry.pointer is not None and entry.pointer not in regions:
                    raise EncodeError(f"Pointer tag 0x{entry.tag_id:04X} refers to missing region {entry.pointer}")
                if not entry.inline:
                    spans.append((area_start + entry.area_offset, len(entry.data), f'tag 0x{entry.tag_id:04X}'))
        if THUMBNAIL_DATA in regions:
            start, size = regions[THUMBNAIL_DATA]
            if size != len(thumbnail_data):
                raise EncodeError("Thumbnail region size does not match thumbnail data")
            spans.append((start, size, 'thumbnail'))

        previous_end, previous_name = 0, None
        for start, size, name in sorted(spans):
            if start < previous_end:
                raise EncodeError(f"EXIF layout overlap between {previous_name} and {name}")
            if start + size > total_size:
                raise EncodeError(f"EXIF layout places {name} past end of segment")
            previous_end, previous_name = start + size, name


def encode(block: MetadataBlock) -> bytes:
    """Serialize a block in its own byte order."""
    return EXIFWriter().build_exif_segment(block)
