"""Tests for exiflab/cli.py - the exiflab command."""

import json

import pytest

from exiflab.cli import default_output_path, main
from exiflab.core import read_metadata
from exiflab.exif_tags import ImageTag
from exiflab.raster_converter import PNG_SIGNATURE


@pytest.fixture
def photo(tmp_path, samsung_jpeg):
    path = tmp_path / "photo.jpg"
    path.write_bytes(samsung_jpeg)
    return path


class TestShow:
    """Tests for listing metadata."""

    def test_text_listing(self, photo, capsys):
        assert main(["show", str(photo)]) == 0

        out = capsys.readouterr().out
        assert "[Image IFD]" in out
        assert "  Make: Samsung" in out
        assert "  FNumber: f/1.7" in out
        assert "[GPS IFD]" in out

    def test_json_listing(self, photo, capsys):
        assert main(["show", str(photo), "--json"]) == 0

        listing = json.loads(capsys.readouterr().out)
        assert listing["Image IFD"]["Model"] == "SM-S928U"
        assert listing["Exif IFD"]["ExposureTime"] == "1/60"

    def test_jpeg_without_exif(self, tmp_path, plain_jpeg, capsys):
        path = tmp_path / "plain.jpg"
        path.write_bytes(plain_jpeg)

        assert main(["show", str(path)]) == 0

        assert capsys.readouterr().out.strip() == "No EXIF data found in this image."

    def test_png_is_announced_for_conversion(self, tmp_path, capsys):
        path = tmp_path / "image.png"
        path.write_bytes(PNG_SIGNATURE + b'\x00' * 32)

        assert main(["show", str(path)]) == 0

        assert "JPEG version" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["show", str(tmp_path / "nope.jpg")]) == 1

        assert capsys.readouterr().err.startswith("Error: File not found")


class TestEdit:
    """Tests for writing edited metadata."""

    def test_writes_default_output(self, photo, capsys):
        assert main(["edit", str(photo), "--device", "Apple iPhone 15 Pro", "--clear-gps"]) == 0

        output = default_output_path(photo)
        block = read_metadata(output.read_bytes())
        assert block.image.get(ImageTag.Make) == "Apple"
        assert len(block.gps) == 0
        out = capsys.readouterr().out
        assert "Device Model: " in out
        assert f"Wrote {output}" in out

    def test_explicit_output_and_location(self, photo, tmp_path):
        target = tmp_path / "out.jpg"

        assert main(["edit", str(photo), "-o", str(target), "--lat", "48.8566", "--lon", "2.3522"]) == 0

        block = read_metadata(target.read_bytes())
        assert block.gps.get('GPSLatitudeRef') == 'N'
        assert block.gps.get('GPSLongitudeRef') == 'E'

    def test_little_endian_output(self, photo, tmp_path):
        target = tmp_path / "out.jpg"

        assert main(["edit", str(photo), "-o", str(target), "--byte-order", "little"]) == 0

        assert read_metadata(target.read_bytes()).byte_order == '<'

    def test_dry_run_writes_nothing(self, photo, capsys):
        assert main(["edit", str(photo), "--clear-all", "--dry-run"]) == 0

        assert not default_output_path(photo).exists()
        assert "Device Model: " in capsys.readouterr().out

    def test_no_changes(self, tmp_path, plain_jpeg, capsys):
        path = tmp_path / "plain.jpg"
        path.write_bytes(plain_jpeg)

        assert main(["edit", str(path), "--dry-run"]) == 0

        assert "No field changes" in capsys.readouterr().out

    def test_unknown_device(self, photo, capsys):
        assert main(["edit", str(photo), "--device", "Nokia 3310"]) == 1

        assert capsys.readouterr().err.startswith("Error:")

    def test_bad_datetime(self, photo, capsys):
        assert main(["edit", str(photo), "--datetime", "yesterday"]) == 1

        assert "Error:" in capsys.readouterr().err

    def test_latitude_needs_longitude(self, photo):
        with pytest.raises(SystemExit) as excinfo:
            main(["edit", str(photo), "--lat", "10"])

        assert excinfo.value.code == 2


class TestStrip:

    def test_removes_exif(self, photo, tmp_path):
        target = tmp_path / "clean.jpg"

        assert main(["strip", str(photo), "-o", str(target)]) == 0

        assert read_metadata(target.read_bytes()) is None


class TestDevices:
    """Tests for the profile listing."""

    def test_text_listing(self, capsys):
        assert main(["devices"]) == 0

        assert "Apple iPhone 15 Pro: Apple iPhone 15 Pro" in capsys.readouterr().out.splitlines()

    def test_json_listing(self, capsys):
        assert main(["devices", "--json"]) == 0

        listing = json.loads(capsys.readouterr().out)
        assert listing["Apple iPhone 15 Pro"]["aperture"] == "f/1.8"
        assert listing["Apple iPhone 15 Pro"]["iso"] == 32
        assert "lens" not in listing["DJI Mavic 3"]

    def test_extra_profiles_file(self, tmp_path, capsys):
        profiles = tmp_path / "profiles.json"
        profiles.write_text(json.dumps({"Leica Q3": {"make": "LEICA CAMERA AG", "model": "LEICA Q3"}}))

        assert main(["--profiles", str(profiles), "devices"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert "Leica Q3: LEICA CAMERA AG LEICA Q3" in lines
        assert "Sony a1: Sony ILCE-1" in lines

    def test_missing_profiles_file(self, tmp_path, capsys):
        assert main(["--profiles", str(tmp_path / "none.json"), "devices"]) == 1

        assert "Error:" in capsys.readouterr().err
