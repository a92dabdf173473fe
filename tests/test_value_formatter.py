"""Tests for exiflab/value_formatter.py - display strings for tag values."""

import pytest

from exiflab.exceptions import InvalidRationalError
from exiflab.exif_tags import CaptureTag
from exiflab.metadata_block import KnownTag, Rational, UnknownTag
from exiflab.exif_tags import ExifTagType
from exiflab.value_formatter import format_exif_value, format_rational_display


class TestFormatRationalDisplay:
    """Tests for camera-style rational rendering."""

    def test_exposure_time_fraction(self):
        assert format_rational_display('ExposureTime', Rational(1, 125)) == "1/125"

    def test_long_exposure_uses_quotient(self):
        assert format_rational_display('ExposureTime', Rational(5, 2)) == "2.5"

    def test_f_number(self):
        assert format_rational_display('FNumber', Rational(18, 10)) == "f/1.8"

    def test_f_number_has_one_decimal(self):
        assert format_rational_display('FNumber', Rational(110, 10)) == "f/11.0"

    def test_focal_length(self):
        assert format_rational_display('FocalLength', Rational(69, 10)) == "7mm"

    def test_focal_length_rounds_half_up(self):
        assert format_rational_display('FocalLength', Rational(245, 10)) == "25mm"

    def test_generic_quotient(self):
        assert format_rational_display('XResolution', Rational(72, 1)) == "72.0"
        assert format_rational_display('XResolution', Rational(1, 3)) == "0.3"

    def test_generic_rounds_half_up(self):
        assert format_rational_display('ExposureBiasValue', Rational(25, 100)) == "0.3"

    def test_accepts_enum_members(self):
        assert format_rational_display(CaptureTag.FNumber, Rational(28, 10)) == "f/2.8"

    def test_zero_denominator(self):
        with pytest.raises(InvalidRationalError):
            format_rational_display('FNumber', Rational(18, 0))


class TestFormatExifValue:
    """Tests for listing values."""

    def test_gps_triple(self):
        value = (Rational(37, 1), Rational(46, 1), Rational(2964, 100))

        assert format_exif_value('GPSLatitude', value) == "37.00, 46.00, 29.64"

    def test_strips_control_characters(self):
        assert format_exif_value('Make', "Canon\x00\x07\x9f") == "Canon"

    def test_known_entry_is_unwrapped(self):
        entry = KnownTag(CaptureTag.ExposureTime, ExifTagType.RATIONAL, Rational(1, 60))

        assert format_exif_value('ExposureTime', entry) == "1/60"

    def test_opaque_entry(self):
        assert format_exif_value('Unknown_0xFDE8', UnknownTag(0xFDE8, 7, 4, b'abcd')) == "<UNDEFINED 4 bytes>"

    def test_opaque_entry_with_unknown_type(self):
        assert format_exif_value('Unknown_0xFDE9', UnknownTag(0xFDE9, 99, 1, b'\x00' * 4)) == "<type 99 4 bytes>"

    def test_missing_value(self):
        assert format_exif_value('Model', None) == "N/A"

    def test_printable_bytes_shown_as_text(self):
        assert format_exif_value('ExifVersion', b'0232') == "0232"

    def test_binary_bytes_shown_as_hex(self):
        assert format_exif_value('GPSAltitudeRef', b'\x00\x01') == "0001"

    def test_integer_arrays(self):
        assert format_exif_value('BitsPerSample', (8, 8, 8)) == "8, 8, 8"

    def test_single_integer(self):
        assert format_exif_value('ISOSpeedRatings', 100) == "100"

    def test_zero_denominator_is_shown_raw(self):
        assert format_exif_value('XResolution', Rational(72, 0)) == "72/0"
