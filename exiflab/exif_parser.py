# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF metadata parser

This module decodes the TIFF structure inside an EXIF APP1 payload into a
MetadataBlock. IFD0 links to the Exif and GPS IFDs through pointer tags,
the Exif IFD links to the Interoperability IFD, and IFD0's next-IFD field
links to IFD1 (the thumbnail directory).

Copyright 2025 DNAi inc.
"""

import logging
import struct
from typing import Dict, Optional, Set, Tuple

from exiflab.exceptions import MetadataReadError, TruncatedDirectoryError
from exiflab.exif_tags import (
    BINARY_TYPES,
    INTEGER_TYPES,
    INLINE_VALUE_SIZE,
    RATIONAL_TYPES,
    STRUCT_FORMATS,
    TAG_TYPES,
    TEXT_TYPES,
    UNRELOCATABLE_TAGS,
    DirectoryKind,
    ExifTagType,
    PointerTag,
    element_size,
    lookup_tag,
    value_family,
)
from exiflab.metadata_block import KnownTag, MetadataBlock, Rational, TagDirectory, TagEntry, UnknownTag

logger = logging.getLogger(__name__)

EXIF_HEADER = b'Exif\x00\x00'
TIFF_MAGIC = 42
ENTRY_SIZE = 12

# Pointer tags that are structural in each directory
STRUCTURAL_TAGS = {
    DirectoryKind.IMAGE: {PointerTag.ExifIFD, PointerTag.GPSIFD},
    DirectoryKind.CAPTURE: {PointerTag.InteroperabilityIFD},
    DirectoryKind.GPS: set(),
    DirectoryKind.INTEROP: set(),
    DirectoryKind.THUMBNAIL: {PointerTag.JPEGInterchangeFormat, PointerTag.JPEGInterchangeFormatLength},
}

POINTER_TAG_IDS = frozenset(int(tag) for tag in PointerTag)


class ExifParser:
    """
    Parser for the TIFF structure of an EXIF segment.

    Offsets inside the structure are relative to the TIFF header, which
    follows the 'Exif\\0\\0' preamble.
    """

    def __init__(self, segment_data: bytes):
        """
        Initialize the EXIF parser.

        Args:
            segment_data: APP1 payload starting with 'Exif\\0\\0', or a bare
                TIFF structure starting with 'II'/'MM'
        """
        if segment_data[:6] == EXIF_HEADER:
            self.tiff_data = bytes(segment_data[6:])
        else:
            self.tiff_data = bytes(segment_data)
        self.endian = '>'
        self._visited: Set[int] = set()
        self._capture_pointers: Dict[int, int] = {}

    def parse(self, strict: bool = True) -> MetadataBlock:
        """
        Decode the segment.

        Args:
            strict: If False, a failure inside the Exif, GPS, Interop or
                thumbnail directory is logged and that directory is left
                empty. IFD0 failures are always raised.

        Returns:
            Decoded MetadataBlock

        Raises:
            TruncatedDirectoryError: If a directory or value runs past the segment
            MetadataReadError: If the TIFF header is invalid
        """
        ifd0_offset = self._parse_tiff_header()
        self._visited = set()
        self._capture_pointers = {}
        block = MetadataBlock(byte_order=self.endian)

        pointers, next_ifd = self._parse_ifd(ifd0_offset, block.image, require_next=True)

        exif_offset = pointers.get(PointerTag.ExifIFD)
        if exif_offset:
            self._parse_sub_ifd(block, block.capture, exif_offset, strict)
            interop_offset = self._capture_pointers.get(PointerTag.InteroperabilityIFD)
            if interop_offset:
                self._parse_sub_ifd(block, block.interop, interop_offset, strict)

        gps_offset = pointers.get(PointerTag.GPSIFD)
        if gps_offset:
            self._parse_sub_ifd(block, block.gps, gps_offset, strict)

        if next_ifd:
            self._parse_sub_ifd(block, block.thumbnail, next_ifd, strict)

        return block

    def _parse_tiff_header(self) -> int:
        """
        Read byte order, magic number and IFD0 offset.

        Returns:
            Offset of IFD0
        """
        if len(self.tiff_data) < 8:
            raise TruncatedDirectoryError("Invalid EXIF data: TIFF header truncated")

        if self.tiff_data[:2] == b'II':
            self.endian = '<'
        elif self.tiff_data[:2] == b'MM':
            self.endian = '>'
        else:
            raise MetadataReadError("Invalid EXIF data: bad byte order marker")

        magic = struct.unpack(f'{self.endian}H', self.tiff_data[2:4])[0]
        if magic != TIFF_MAGIC:
            raise MetadataReadError(f"Invalid EXIF data: bad TIFF magic number {magic}")

        return struct.unpack(f'{self.endian}I', self.tiff_data[4:8])[0]

    def _parse_sub_ifd(self, block: MetadataBlock, directory: TagDirectory, offset: int, strict: bool) -> None:
        try:
            pointers, _ = self._parse_ifd(offset, directory)
        except MetadataReadError as e:
            if strict:
                raise
            logger.warning("Ignoring unreadable %s directory: %s", directory.kind.value, e)
            directory.clear()
            pointers = {}

        if directory.kind == DirectoryKind.CAPTURE:
            self._capture_pointers = pointers
        elif directory.kind == DirectoryKind.THUMBNAIL:
            try:
                block.thumbnail_data = self._read_thumbnail(pointers)
            except MetadataReadError as e:
                if strict:
                    raise
                logger.warning("Ignoring unreadable thumbnail: %s", e)

    def _read_thumbnail(self, pointers: Dict[int, int]) -> Optional[bytes]:
        offset = pointers.get(PointerTag.JPEGInterchangeFormat)
        length = pointers.get(PointerTag.JPEGInterchangeFormatLength)
        if offset is None or length is None:
            return None
        if offset + length > len(self.tiff_data):
            raise TruncatedDirectoryError(
                f"Thumbnail of {length} bytes at offset {offset} runs past end of segment"
            )
        return self.tiff_data[offset:offset + length]

    def _parse_ifd(
        self,
        offset: int,
        directory: TagDirectory,
        require_next: bool = False,
    ) -> Tuple[Dict[int, int], int]:
        """
        Parse an IFD (Image File Directory) into directory.

        Args:
            offset: Offset of the IFD
            directory: Directory receiving the entries
            require_next: Whether the 4-byte next-IFD field must be present

        Returns:
            Tuple of (structural pointer values by tag id, next IFD offset)
        """
        if offset in self._visited:
            raise MetadataReadError(f"IFD at offset {offset} is referenced twice")
        self._visited.add(offset)

        if offset + 2 > len(self.tiff_data):
            raise TruncatedDirectoryError(f"{directory.kind.value} IFD offset {offset} is past end of segment")

        num_entries = struct.unpack(f'{self.endian}H', self.tiff_data[offset:offset + 2])[0]
        table_end = offset + 2 + num_entries * ENTRY_SIZE
        if table_end > len(self.tiff_data):
            raise TruncatedDirectoryError(
                f"{directory.kind.value} IFD declares {num_entries} entries but the segment ends at {len(self.tiff_data)}"
            )

        structural = STRUCTURAL_TAGS[directory.kind]
        pointers: Dict[int, int] = {}

        for entry_offset in range(offset + 2, table_end, ENTRY_SIZE):
            tag_id, tag_type, count = struct.unpack(
                f'{self.endian}HHI', self.tiff_data[entry_offset:entry_offset + 8]
            )
            value_field = self.tiff_data[entry_offset + 8:entry_offset + 12]

            if tag_id in structural:
                pointers[tag_id] = self._read_pointer(tag_id, tag_type, value_field)
                continue
            if tag_id in UNRELOCATABLE_TAGS:
                logger.debug("Dropping unrelocatable tag 0x%04X from %s", tag_id, directory.kind.value)
                continue
            if tag_id in POINTER_TAG_IDS:
                # A link outside its parent directory holds an offset that cannot be followed
                logger.debug("Dropping misplaced pointer tag 0x%04X from %s", tag_id, directory.kind.value)
                continue

            directory.add(self._read_entry(directory.kind, tag_id, tag_type, count, value_field))

        next_ifd = 0
        if table_end + 4 <= len(self.tiff_data):
            next_ifd = struct.unpack(f'{self.endian}I', self.tiff_data[table_end:table_end + 4])[0]
        elif require_next:
            raise TruncatedDirectoryError(f"{directory.kind.value} IFD next-IFD offset is past end of segment")

        return pointers, next_ifd

    def _read_pointer(self, tag_id: int, tag_type: int, value_field: bytes) -> int:
        if tag_type == ExifTagType.SHORT:
            return struct.unpack(f'{self.endian}H', value_field[:2])[0]
        if tag_type in (ExifTagType.LONG, ExifTagType.IFD):
            return struct.unpack(f'{self.endian}I', value_field)[0]
        raise MetadataReadError(f"Pointer tag 0x{tag_id:04X} has invalid type {tag_type}")

    def _read_entry(
        self,
        kind: DirectoryKind,
        tag_id: int,
        tag_type: int,
        count: int,
        value_field: bytes,
    ) -> TagEntry:
        """
        Read the value of one entry and decide between a known and an opaque entry.
        """
        size = element_size(tag_type)
        if size is None:
            # Unknown type: neither size nor inline/offset placement is known
            return UnknownTag(tag_id, tag_type, count, bytes(value_field))

        total_size = size * count
        if total_size <= INLINE_VALUE_SIZE:
            data = value_field[:total_size]
        else:
            value_offset = struct.unpack(f'{self.endian}I', value_field)[0]
            if value_offset + total_size > len(self.tiff_data):
                raise TruncatedDirectoryError(
                    f"Tag 0x{tag_id:04X} value of {total_size} bytes at offset {value_offset} runs past end of segment"
                )
            data = self.tiff_data[value_offset:value_offset + total_size]

        member = lookup_tag(kind, tag_id)
        if member is not None and value_family(tag_type) == value_family(TAG_TYPES[kind][member]):
            value = self._decode_value(ExifTagType(tag_type), count, data)
            if value is not None:
                return KnownTag(member, ExifTagType(tag_type), value)
            logger.debug("Keeping undecodable %s tag %s opaque", kind.value, member.name)

        return UnknownTag(tag_id, tag_type, count, bytes(data))

    def _decode_value(self, tag_type: ExifTagType, count: int, data: bytes):
        """
        Parse value bytes according to type.

        Returns:
            Decoded value, or None when the bytes have no faithful typed form
        """
        if tag_type in TEXT_TYPES:
            null_pos = data.find(b'\x00')
            text = data if null_pos < 0 else data[:null_pos]
            # Content after the terminator would be lost on rewrite
            if null_pos >= 0 and data[null_pos:].strip(b'\x00'):
                return None
            try:
                return text.decode('utf-8')
            except UnicodeDecodeError:
                return None

        if tag_type in BINARY_TYPES:
            return bytes(data)

        if count == 0:
            return None

        if tag_type in INTEGER_TYPES:
            values = struct.unpack(f'{self.endian}{count}{STRUCT_FORMATS[tag_type]}', data)
            return values[0] if count == 1 else tuple(values)

        if tag_type in RATIONAL_TYPES:
            flat = struct.unpack(f'{self.endian}{STRUCT_FORMATS[tag_type] * count}', data)
            values = tuple(Rational(flat[i], flat[i + 1]) for i in range(0, len(flat), 2))
            if not all(value.is_valid for value in values):
                # Zero denominator is a decode-error sentinel
                return None
            return values[0] if count == 1 else values

        return None


def decode(segment_data: bytes) -> MetadataBlock:
    """
    Decode an EXIF payload strictly.

    Raises:
        TruncatedDirectoryError: If any directory or value runs past the segment
        MetadataReadError: If the structure is otherwise invalid
    """
    return ExifParser(segment_data).parse(strict=True)
