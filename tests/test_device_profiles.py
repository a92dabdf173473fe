"""Tests for exiflab/device_profiles.py - static presets and their application."""

import json

import pytest

from exiflab.device_profiles import (
    DEVICE_PROFILES,
    apply_device_profile,
    find_profile_for,
    get_device_profile,
    load_device_profiles,
)
from exiflab.exceptions import UnknownProfileError
from exiflab.exif_tags import CaptureTag, ImageTag
from exiflab.metadata_block import MetadataBlock, Rational


class TestProfileTable:

    def test_has_fifteen_presets(self):
        assert len(DEVICE_PROFILES) == 15

    def test_iphone_preset(self):
        profile = get_device_profile("Apple iPhone 15 Pro")

        assert profile.make == "Apple"
        assert profile.model == "iPhone 15 Pro"
        assert profile.software == "17.4.1"
        assert profile.capture.f_number == Rational(18, 10)
        assert profile.capture.exposure_time == Rational(1, 125)
        assert profile.capture.iso == 32
        assert profile.capture.focal_length == Rational(24, 1)
        assert profile.capture.lens_model == "iPhone 15 Pro back camera 6.86mm f/1.78"

    def test_presets_without_lens_or_software(self):
        profile = get_device_profile("DJI Mavic 3")

        assert profile.software is None
        assert profile.capture.lens_model is None

    def test_unknown_name(self):
        with pytest.raises(UnknownProfileError):
            get_device_profile("Nokia 3310")

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            DEVICE_PROFILES["Custom"] = get_device_profile("Sony a1")

    def test_find_by_make_and_model(self):
        assert find_profile_for("Samsung", "SM-S928U").name == "Samsung Galaxy S24 Ultra"
        assert find_profile_for("Samsung", "SM-G991B") is None
        assert find_profile_for(None, None) is None


class TestApplyDeviceProfile:

    def test_sets_identity_and_capture_defaults(self):
        block = MetadataBlock()

        apply_device_profile(block, get_device_profile("Canon EOS R5"))

        assert block.image.get(ImageTag.Make) == "Canon"
        assert block.image.get(ImageTag.Model) == "Canon EOS R5"
        assert block.capture.get(CaptureTag.FNumber) == Rational(40, 10)
        assert block.capture.get(CaptureTag.ExposureTime) == Rational(1, 500)
        assert block.capture.get(CaptureTag.ISOSpeedRatings) == 200
        assert block.capture.get(CaptureTag.FocalLength) == Rational(70, 1)
        assert block.capture.get(CaptureTag.LensModel) == "RF24-70mm F2.8 L IS USM"

    def test_leaves_other_tags_alone(self, samsung_block):
        apply_device_profile(samsung_block, get_device_profile("OnePlus 12"))

        assert samsung_block.image.get(ImageTag.Orientation) == 6
        # OnePlus defines neither software nor lens
        assert samsung_block.image.get(ImageTag.Software) == "S928U1UEU1AXCB"
        assert CaptureTag.LensModel not in samsung_block.capture
        assert samsung_block.capture.get(CaptureTag.DateTimeOriginal) == "2024:03:01 10:15:30"


class TestLoadDeviceProfiles:

    def test_adds_profiles_from_json(self, tmp_path):
        path = tmp_path / "profiles.json"
        path.write_text(json.dumps({
            "Leica Q3": {
                "make": "LEICA CAMERA AG",
                "model": "LEICA Q3",
                "exif": {"FNumber": [17, 10], "ISOSpeedRatings": 100, "LensModel": "SUMMILUX 1:1.7/28 ASPH."},
            }
        }))

        profiles = load_device_profiles(path)

        assert len(profiles) == 16
        leica = profiles["Leica Q3"]
        assert leica.capture.f_number == Rational(17, 10)
        assert leica.capture.exposure_time is None
        assert leica.software is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_device_profiles(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", [
        '[]',
        '{"X": {"model": "Y"}}',
        '{"X": {"make": "A", "model": "B", "exif": {"FNumber": [1, 0]}}}',
        '{"X": {"make": "A", "model": "B", "exif": {"FocalLength": "24mm"}}}',
        '{"X": {"make": "A", "model": "B", "exif": {"ISOSpeedRatings": "100"}}}',
    ])
    def test_rejects_malformed_profiles(self, tmp_path, content):
        path = tmp_path / "profiles.json"
        path.write_text(content)

        with pytest.raises(ValueError):
            load_device_profiles(path)
