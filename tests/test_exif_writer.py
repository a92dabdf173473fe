"""Tests for exiflab/exif_writer.py - serializing metadata blocks."""

import struct

import pytest

from exiflab.exceptions import EncodeError, SegmentTooLargeError
from exiflab.exif_parser import decode
from exiflab.exif_tags import CaptureTag, ExifTagType, ImageTag, InteropTag, element_size
from exiflab.exif_writer import EXIFWriter, encode
from exiflab.jpeg_modifier import EXIF_HEADER
from exiflab.metadata_block import KnownTag, MetadataBlock, UnknownTag
from tests.conftest import MINIMAL_THUMBNAIL, PRIVATE_TAG, PRIVATE_TAG_UNKNOWN_TYPE, build_samsung_block


def read_ifd(tiff, offset, endian='>'):
    """Return [(tag, type, count, field)] and the next-IFD offset of the IFD at offset."""
    count = struct.unpack(f'{endian}H', tiff[offset:offset + 2])[0]
    entries = []
    for i in range(count):
        start = offset + 2 + i * 12
        tag, value_type, value_count = struct.unpack(f'{endian}HHI', tiff[start:start + 8])
        entries.append((tag, value_type, value_count, tiff[start + 8:start + 12]))
    end = offset + 2 + count * 12
    return entries, struct.unpack(f'{endian}I', tiff[end:end + 4])[0]


def with_thumbnail(block):
    block.thumbnail.set(ImageTag.Compression, 6)
    block.thumbnail.set(ImageTag.XResolution, (72, 1))
    block.thumbnail_data = MINIMAL_THUMBNAIL
    return block


class TestRoundTrip:
    """Decoding an encoded block gives the same block back."""

    @pytest.mark.parametrize("byte_order", ['>', '<'])
    def test_full_block(self, byte_order):
        block = with_thumbnail(build_samsung_block(byte_order))
        block.interop.set(InteropTag.InteroperabilityIndex, "R98")
        block.image.add(UnknownTag(PRIVATE_TAG_UNKNOWN_TYPE, 99, 1, b'\x01\x02\x03\x04'))

        assert decode(encode(block)) == block

    def test_empty_block(self):
        payload = encode(MetadataBlock())

        assert payload == EXIF_HEADER + b'MM\x00\x2a\x00\x00\x00\x08' + b'\x00\x00' + b'\x00\x00\x00\x00'
        assert decode(payload).is_empty()

    def test_interop_without_capture_tags(self):
        block = MetadataBlock()
        block.interop.set(InteropTag.InteroperabilityIndex, "R98")

        decoded = decode(encode(block))

        assert decoded.interop.get(InteropTag.InteroperabilityIndex) == "R98"
        assert len(decoded.capture) == 0

    def test_thumbnail_data_without_thumbnail_tags(self):
        block = MetadataBlock()
        block.thumbnail_data = MINIMAL_THUMBNAIL

        assert decode(encode(block)).thumbnail_data == MINIMAL_THUMBNAIL

    def test_unknown_tags_keep_id_type_count_and_bytes(self, samsung_block):
        decoded = decode(encode(samsung_block))

        assert decoded.image.entry(PRIVATE_TAG) == UnknownTag(PRIVATE_TAG, 7, 4, b'PIM\x00')

    def test_encoding_is_deterministic(self, samsung_block):
        reordered = MetadataBlock()
        for entry in reversed(samsung_block.image.entries()):
            reordered.image.add(entry)
        reordered.capture = samsung_block.capture.copy()
        reordered.gps = samsung_block.gps.copy()

        assert encode(reordered) == encode(samsung_block)


class TestLayout:
    """Tests for the arena layout of the TIFF structure."""

    def test_header_in_block_byte_order(self):
        assert encode(MetadataBlock(byte_order='<'))[6:14] == b'II\x2a\x00\x08\x00\x00\x00'
        assert encode(MetadataBlock(byte_order='>'))[6:14] == b'MM\x00\x2a\x00\x00\x00\x08'

    def test_entries_sorted_by_tag_id(self, samsung_block):
        tiff = encode(samsung_block)[6:]

        entries, _ = read_ifd(tiff, 8)

        tags = [tag for tag, _, _, _ in entries]
        assert tags == sorted(tags)

    def test_directories_in_fixed_order(self, samsung_block):
        tiff = encode(with_thumbnail(samsung_block))[6:]

        entries, ifd1_offset = read_ifd(tiff, 8)
        pointers = {tag: struct.unpack('>I', field)[0] for tag, _, _, field in entries}

        assert 8 < pointers[0x8769] < pointers[0x8825] < ifd1_offset

    def test_out_of_line_values_are_word_aligned(self, samsung_block):
        tiff = encode(samsung_block)[6:]

        entries, _ = read_ifd(tiff, 8)

        for tag, value_type, count, field in entries:
            size = element_size(value_type)
            if size is not None and size * count > 4:
                assert struct.unpack('>I', field)[0] % 2 == 0, hex(tag)

    def test_writer_endian_overrides_block(self, samsung_block):
        payload = EXIFWriter(endian='<').build_exif_segment(samsung_block)

        decoded = decode(payload)

        assert decoded.byte_order == '<'
        assert decoded.image.get(ImageTag.Model) == "SM-S928U"

    def test_opaque_values_are_byte_swapped(self):
        block = MetadataBlock(byte_order='>')
        block.image.add(UnknownTag(PRIVATE_TAG, 3, 2, b'\x00\x05\x01\x00'))

        decoded = decode(EXIFWriter(endian='<').build_exif_segment(block))

        assert decoded.image.entry(PRIVATE_TAG).raw == b'\x05\x00\x00\x01'

    def test_unknown_type_cannot_change_byte_order(self):
        block = MetadataBlock(byte_order='>')
        block.image.add(UnknownTag(PRIVATE_TAG_UNKNOWN_TYPE, 99, 1, b'\x01\x02\x03\x04'))

        with pytest.raises(EncodeError):
            EXIFWriter(endian='<').build_exif_segment(block)


class TestEncodeErrors:
    """Values that cannot be written raise instead of producing output."""

    def test_zero_denominator(self):
        block = MetadataBlock()
        block.capture.set(CaptureTag.FNumber, (18, 0))

        with pytest.raises(EncodeError):
            encode(block)

    def test_value_out_of_range(self):
        block = MetadataBlock()
        block.image.set(ImageTag.Orientation, 70000)

        with pytest.raises(EncodeError):
            encode(block)

    def test_opaque_size_mismatch(self):
        block = MetadataBlock()
        block.image.add(UnknownTag(PRIVATE_TAG, 3, 4, b'\x00\x01'))

        with pytest.raises(EncodeError):
            encode(block)

    def test_pointer_tag_stored_as_entry(self):
        block = MetadataBlock()
        block.image.add(UnknownTag(0x0201, 4, 1, b'\x00\x00\x03\xe8'))

        with pytest.raises(EncodeError):
            encode(block)

    def test_text_with_nul_character(self):
        block = MetadataBlock()
        block.image.add(KnownTag(ImageTag.Artist, ExifTagType.ASCII, "a\x00b"))

        with pytest.raises(EncodeError):
            encode(block)

    def test_set_rejects_text_with_nul_character(self):
        block = MetadataBlock()

        with pytest.raises(ValueError):
            block.image.set(ImageTag.Artist, "a\x00b")
        assert ImageTag.Artist not in block.image

    def test_payload_too_large(self):
        block = MetadataBlock()
        block.capture.set(CaptureTag.MakerNote, b'\x00' * 70000)

        with pytest.raises(SegmentTooLargeError):
            encode(block)

    def test_invalid_endian(self):
        with pytest.raises(ValueError):
            EXIFWriter(endian='!')
