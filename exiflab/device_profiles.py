# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Device profiles

Static camera presets. A profile carries the make, model and (optionally)
firmware string of a device together with typical capture settings, and
can be applied to a metadata block to make it look like that device took
the picture.

Extra presets can be loaded from a JSON file of the form

    {"Name": {"make": "...", "model": "...", "software": "...",
              "exif": {"FNumber": [18, 10], "ExposureTime": [1, 125],
                       "ISOSpeedRatings": 32, "FocalLength": [24, 1],
                       "LensModel": "..."}}}

Copyright 2025 DNAi inc.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from exiflab.exceptions import UnknownProfileError
from exiflab.exif_tags import CaptureTag, ImageTag
from exiflab.metadata_block import MetadataBlock, Rational

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureDefaults:
    """Typical capture settings of a device. Unset fields are left alone."""
    f_number: Optional[Rational] = None
    exposure_time: Optional[Rational] = None
    iso: Optional[int] = None
    focal_length: Optional[Rational] = None
    lens_model: Optional[str] = None


@dataclass(frozen=True)
class DeviceProfile:
    name: str
    make: str
    model: str
    software: Optional[str] = None
    capture: CaptureDefaults = field(default_factory=CaptureDefaults)


def _profile(name, make, model, f_number, exposure_time, iso, focal_length, lens_model=None, software=None):
    return DeviceProfile(
        name=name,
        make=make,
        model=model,
        software=software,
        capture=CaptureDefaults(
            f_number=Rational(*f_number),
            exposure_time=Rational(*exposure_time),
            iso=iso,
            focal_length=Rational(*focal_length),
            lens_model=lens_model,
        ),
    )


_BUILTIN_PROFILES = [
    _profile("Apple iPhone 15 Pro", "Apple", "iPhone 15 Pro", (18, 10), (1, 125), 32, (24, 1),
             "iPhone 15 Pro back camera 6.86mm f/1.78", software="17.4.1"),
    _profile("Google Pixel 8 Pro", "Google", "Pixel 8 Pro", (17, 10), (1, 120), 50, (69, 10),
             "Pixel 8 Pro back camera 6.81mm f/1.68", software="hdr_plus_a.240104.018"),
    _profile("Samsung Galaxy S24 Ultra", "Samsung", "SM-S928U", (17, 10), (1, 60), 50, (23, 1),
             "Galaxy S24 Ultra", software="S928U1UEU1AXCB"),
    _profile("OnePlus 12", "OnePlus", "CPH2583", (16, 10), (1, 100), 100, (23, 1)),
    _profile("Xiaomi 14 Ultra", "Xiaomi", "24030PN60G", (16, 10), (1, 50), 50, (23, 1)),
    _profile("Sony Xperia 1 V", "Sony", "XQ-DQ72", (19, 10), (1, 640), 64, (24, 1)),
    _profile("Canon EOS 5D Mark IV", "Canon", "Canon EOS 5D Mark IV", (28, 10), (1, 250), 100, (50, 1),
             "EF50mm f/1.8 STM"),
    _profile("Canon EOS R5", "Canon", "Canon EOS R5", (40, 10), (1, 500), 200, (70, 1),
             "RF24-70mm F2.8 L IS USM"),
    _profile("Nikon Z7 II", "Nikon", "NIKON Z 7II", (80, 10), (1, 125), 64, (24, 1),
             "NIKKOR Z 24-70mm f/2.8 S"),
    _profile("Nikon D850", "Nikon", "NIKON D850", (56, 10), (1, 400), 400, (200, 1), "70-200mm f/2.8"),
    _profile("Sony a7 IV", "Sony", "ILCE-7M4", (20, 10), (1, 1000), 100, (35, 1),
             "FE 35mm F1.4 GM", software="ILCE-7M4 v1.01"),
    _profile("Sony a1", "Sony", "ILCE-1", (14, 10), (1, 2000), 100, (50, 1), "FE 50mm F1.2 GM"),
    _profile("Fujifilm X-T5", "FUJIFILM", "X-T5", (20, 10), (1, 180), 160, (35, 1), "XF35mmF1.4 R"),
    _profile("Fujifilm GFX 100S", "FUJIFILM", "GFX100S", (110, 10), (1, 125), 100, (110, 1),
             "GF110mmF2 R LM WR"),
    _profile("DJI Mavic 3", "DJI", "FC3411", (28, 10), (1, 800), 100, (24, 1)),
]

DEVICE_PROFILES: Mapping[str, DeviceProfile] = MappingProxyType(
    {profile.name: profile for profile in _BUILTIN_PROFILES}
)


def get_device_profile(name: str, profiles: Mapping[str, DeviceProfile] = DEVICE_PROFILES) -> DeviceProfile:
    """
    Look up a profile by name.

    Raises:
        UnknownProfileError: If no profile has that name
    """
    try:
        return profiles[name]
    except KeyError:
        raise UnknownProfileError(f"Unknown device profile: {name}")


def find_profile_for(
    make: Optional[str],
    model: Optional[str],
    profiles: Mapping[str, DeviceProfile] = DEVICE_PROFILES,
) -> Optional[DeviceProfile]:
    """Return the first profile whose make and model match exactly, or None."""
    if not model:
        return None
    for profile in profiles.values():
        if profile.model == model and (make is None or profile.make == make):
            return profile
    return None


def apply_device_profile(block: MetadataBlock, profile: DeviceProfile) -> None:
    """
    Stamp a profile onto a block in place.

    Make and Model (and Software when the profile defines one) go into the
    image directory; the capture settings the profile defines go into the
    capture directory. Every other tag is left untouched.
    """
    block.image.set(ImageTag.Make, profile.make)
    block.image.set(ImageTag.Model, profile.model)
    if profile.software:
        block.image.set(ImageTag.Software, profile.software)

    defaults = profile.capture
    if defaults.f_number is not None:
        block.capture.set(CaptureTag.FNumber, defaults.f_number)
    if defaults.exposure_time is not None:
        block.capture.set(CaptureTag.ExposureTime, defaults.exposure_time)
    if defaults.iso is not None:
        block.capture.set(CaptureTag.ISOSpeedRatings, defaults.iso)
    if defaults.focal_length is not None:
        block.capture.set(CaptureTag.FocalLength, defaults.focal_length)
    if defaults.lens_model:
        block.capture.set(CaptureTag.LensModel, defaults.lens_model)
    logger.debug("Applied device profile %s", profile.name)


def _parse_rational(name: str, key: str, value: Any) -> Optional[Rational]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 2 or not all(isinstance(v, int) for v in value):
        raise ValueError(f"Profile {name!r}: {key} must be a [numerator, denominator] pair")
    if value[1] == 0:
        raise ValueError(f"Profile {name!r}: {key} has a zero denominator")
    return Rational(value[0], value[1])


def profile_from_dict(name: str, data: Dict[str, Any]) -> DeviceProfile:
    """
    Build a profile from its JSON form.

    Raises:
        ValueError: If a required field is missing or malformed
    """
    try:
        make = data['make']
        model = data['model']
    except (KeyError, TypeError):
        raise ValueError(f"Profile {name!r} needs 'make' and 'model'")
    exif = data.get('exif') or {}
    iso = exif.get('ISOSpeedRatings')
    if iso is not None and not isinstance(iso, int):
        raise ValueError(f"Profile {name!r}: ISOSpeedRatings must be an integer")

    return DeviceProfile(
        name=name,
        make=str(make),
        model=str(model),
        software=data.get('software'),
        capture=CaptureDefaults(
            f_number=_parse_rational(name, 'FNumber', exif.get('FNumber')),
            exposure_time=_parse_rational(name, 'ExposureTime', exif.get('ExposureTime')),
            iso=iso,
            focal_length=_parse_rational(name, 'FocalLength', exif.get('FocalLength')),
            lens_model=exif.get('LensModel'),
        ),
    )


def load_device_profiles(
    json_path: Union[str, Path],
    base: Mapping[str, DeviceProfile] = DEVICE_PROFILES,
) -> Mapping[str, DeviceProfile]:
    """
    Load extra profiles from a JSON file.

    Args:
        json_path: Path of the JSON file
        base: Profiles the loaded ones are added to (same names replace)

    Returns:
        Read-only mapping of base plus loaded profiles

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid profile table
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"Profile file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"{json_path}: expected an object mapping profile names to profiles")

    profiles = dict(base)
    for name, data in loaded.items():
        profiles[name] = profile_from_dict(name, data)
    logger.debug("Loaded %d device profile(s) from %s", len(loaded), json_path)
    return MappingProxyType(profiles)
