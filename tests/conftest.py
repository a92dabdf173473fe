"""Shared fixtures: synthetic JPEG streams and sample metadata blocks."""

import struct

import pytest

from exiflab.exif_tags import CaptureTag, GpsTag, ImageTag
from exiflab.geotagging import write_coordinates
from exiflab.metadata_block import MetadataBlock, UnknownTag

# Tag ids outside every enumeration
PRIVATE_TAG = 0xFDE8
PRIVATE_TAG_UNKNOWN_TYPE = 0xFDE9

# Scan data with a stuffed 0xFF00 and a restart marker, copied verbatim
ENTROPY_DATA = b'\x12\x34\xFF\x00\x56\xFF\xD0\x78\x9A'

MINIMAL_THUMBNAIL = b'\xFF\xD8\xFF\xDB\x00\x04\x00\x00\xFF\xD9'


def segment(marker: int, payload: bytes) -> bytes:
    """One length-prefixed JPEG segment."""
    return b'\xFF' + bytes([marker]) + struct.pack('>H', len(payload) + 2) + payload


def build_jpeg(exif_payload=None) -> bytes:
    """
    A structurally valid JPEG: SOI, optional EXIF APP1, APP0 JFIF, DQT,
    SOF0, SOS, entropy data, EOI.
    """
    parts = [b'\xFF\xD8']
    if exif_payload is not None:
        parts.append(segment(0xE1, exif_payload))
    parts.append(segment(0xE0, b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'))
    parts.append(segment(0xDB, b'\x00' + bytes(range(64))))
    parts.append(segment(0xC0, b'\x08\x00\x10\x00\x10\x01\x01\x11\x00'))
    parts.append(segment(0xDA, b'\x01\x01\x00\x00\x3F\x00'))
    parts.append(ENTROPY_DATA)
    parts.append(b'\xFF\xD9')
    return b''.join(parts)


def build_samsung_block(byte_order: str = '>') -> MetadataBlock:
    """Metadata as a Galaxy S24 Ultra would write it, plus a private tag."""
    block = MetadataBlock(byte_order=byte_order)
    block.image.set(ImageTag.Make, "Samsung")
    block.image.set(ImageTag.Model, "SM-S928U")
    block.image.set(ImageTag.Orientation, 6)
    block.image.set(ImageTag.XResolution, (72, 1))
    block.image.set(ImageTag.YResolution, (72, 1))
    block.image.set(ImageTag.ResolutionUnit, 2)
    block.image.set(ImageTag.Software, "S928U1UEU1AXCB")
    block.image.add(UnknownTag(PRIVATE_TAG, 7, 4, b'PIM\x00'))

    block.capture.set(CaptureTag.ExposureTime, (1, 60))
    block.capture.set(CaptureTag.FNumber, (17, 10))
    block.capture.set(CaptureTag.ISOSpeedRatings, 50)
    block.capture.set(CaptureTag.ExifVersion, b'0231')
    block.capture.set(CaptureTag.DateTimeOriginal, "2024:03:01 10:15:30")
    block.capture.set(CaptureTag.FocalLength, (23, 1))
    block.capture.set(CaptureTag.MakerNote, bytes(range(40)))

    write_coordinates(block.gps, 37.7749, -122.4194)
    block.gps.set(GpsTag.GPSAltitudeRef, b'\x00')
    block.gps.set(GpsTag.GPSAltitude, (1520, 100))
    return block


@pytest.fixture
def plain_jpeg():
    return build_jpeg()


@pytest.fixture
def samsung_block():
    return build_samsung_block()


@pytest.fixture
def samsung_jpeg(samsung_block):
    from exiflab.exif_writer import encode
    return build_jpeg(encode(samsung_block))
