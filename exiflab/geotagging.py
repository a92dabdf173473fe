# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Geotagging module

Conversion between signed decimal degrees and the EXIF GPS representation
(three rationals for degrees, minutes and seconds plus a reference letter).

Copyright 2025 DNAi inc.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, Tuple

from exiflab.exceptions import InvalidCoordinateError
from exiflab.exif_tags import GpsTag
from exiflab.metadata_block import Rational, TagDirectory

LATITUDE = 'latitude'
LONGITUDE = 'longitude'

# Axis name to (positive ref, negative ref, limit)
AXES = {
    LATITUDE: ('N', 'S', 90),
    LONGITUDE: ('E', 'W', 180),
}

# Seconds are stored in hundredths of an arcsecond
SECONDS_DENOMINATOR = 100
_UNITS_PER_MINUTE = 60 * SECONDS_DENOMINATOR
_UNITS_PER_DEGREE = 60 * _UNITS_PER_MINUTE

DMS = Tuple[Rational, Rational, Rational]


class GeoCoordinate:
    """
    A validated latitude/longitude pair in signed decimal degrees.

    South and west are negative.
    """

    def __init__(self, latitude: float, longitude: float):
        _check_range(latitude, LATITUDE)
        _check_range(longitude, LONGITUDE)
        self.latitude = float(latitude)
        self.longitude = float(longitude)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GeoCoordinate):
            return NotImplemented
        return (self.latitude, self.longitude) == (other.latitude, other.longitude)

    def __repr__(self) -> str:
        return f"GeoCoordinate({self.latitude}, {self.longitude})"

    def __str__(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


def _check_axis(axis: str) -> Tuple[str, str, int]:
    try:
        return AXES[axis]
    except KeyError:
        raise InvalidCoordinateError(f"Unknown coordinate axis: {axis!r}")


def _check_range(value: float, axis: str) -> None:
    _, _, limit = _check_axis(axis)
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        raise InvalidCoordinateError(f"Invalid {axis}: {value!r}")
    if abs(value) > limit:
        raise InvalidCoordinateError(f"{axis.capitalize()} {value} is outside [-{limit}, {limit}]")


def _axis_for_ref(ref: str) -> Optional[str]:
    for axis, (positive, negative, _) in AXES.items():
        if ref in (positive, negative):
            return axis
    return None


def dms_to_decimal(dms: Sequence, ref: str, axis: Optional[str] = None) -> float:
    """
    Convert degrees/minutes/seconds to signed decimal degrees.

    Args:
        dms: Three rationals (or (numerator, denominator) pairs)
        ref: 'N', 'S', 'E' or 'W'
        axis: 'latitude' or 'longitude'; inferred from ref when omitted

    Raises:
        InvalidCoordinateError: On zero denominators, wrong arity, a bad or
            mismatched reference, or an out-of-range result
    """
    if isinstance(dms, Rational) or len(dms) != 3:
        raise InvalidCoordinateError(f"Expected degrees, minutes and seconds, got {dms!r}")

    if isinstance(ref, bytes):
        ref = ref.decode('ascii', errors='replace')
    ref = (ref or '').strip().upper()
    ref_axis = _axis_for_ref(ref)
    if ref_axis is None:
        raise InvalidCoordinateError(f"Invalid coordinate reference: {ref!r}")
    if axis is not None and axis != ref_axis:
        _check_axis(axis)
        raise InvalidCoordinateError(f"Reference {ref!r} is not a {axis} reference")

    parts = []
    for part in dms:
        numerator, denominator = part
        if denominator == 0:
            raise InvalidCoordinateError(f"Zero denominator in coordinate {dms!r}")
        parts.append(numerator / denominator)

    degrees, minutes, seconds = parts
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if ref == AXES[ref_axis][1]:
        value = -value
    _check_range(value, ref_axis)
    return value


def decimal_to_dms(decimal: float, axis: str = LATITUDE) -> Tuple[DMS, str]:
    """
    Convert signed decimal degrees to EXIF degrees/minutes/seconds.

    Degrees and minutes are whole numbers, seconds keep two decimals.

    Returns:
        Tuple of (dms, ref)

    Raises:
        InvalidCoordinateError: If the value is out of range for the axis
    """
    positive, negative, _ = _check_axis(axis)
    _check_range(decimal, axis)

    units = int((Decimal(repr(abs(decimal))) * _UNITS_PER_DEGREE).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    degrees, remainder = divmod(units, _UNITS_PER_DEGREE)
    minutes, seconds = divmod(remainder, _UNITS_PER_MINUTE)

    dms = (Rational(degrees, 1), Rational(minutes, 1), Rational(seconds, SECONDS_DENOMINATOR))
    return dms, (negative if decimal < 0 else positive)


def read_coordinates(gps: TagDirectory, places: int = 4) -> Optional[GeoCoordinate]:
    """
    Read latitude and longitude from a GPS directory.

    Returns:
        GeoCoordinate rounded to places decimals, or None if either axis is missing

    Raises:
        InvalidCoordinateError: If the stored values are invalid
    """
    latitude = gps.get(GpsTag.GPSLatitude)
    latitude_ref = gps.get(GpsTag.GPSLatitudeRef)
    longitude = gps.get(GpsTag.GPSLongitude)
    longitude_ref = gps.get(GpsTag.GPSLongitudeRef)
    if latitude is None or not latitude_ref or longitude is None or not longitude_ref:
        return None

    return GeoCoordinate(
        round(dms_to_decimal(latitude, latitude_ref, LATITUDE), places),
        round(dms_to_decimal(longitude, longitude_ref, LONGITUDE), places),
    )


def write_coordinates(gps: TagDirectory, latitude: float, longitude: float) -> None:
    """
    Store latitude and longitude with their reference tags.

    Both values are validated before anything is written.
    """
    latitude_dms, latitude_ref = decimal_to_dms(latitude, LATITUDE)
    longitude_dms, longitude_ref = decimal_to_dms(longitude, LONGITUDE)
    gps.set(GpsTag.GPSLatitudeRef, latitude_ref)
    gps.set(GpsTag.GPSLatitude, latitude_dms)
    gps.set(GpsTag.GPSLongitudeRef, longitude_ref)
    gps.set(GpsTag.GPSLongitude, longitude_dms)


def clear_coordinates(gps: TagDirectory) -> None:
    for tag in (GpsTag.GPSLatitudeRef, GpsTag.GPSLatitude, GpsTag.GPSLongitudeRef, GpsTag.GPSLongitude):
        gps.remove(tag)
