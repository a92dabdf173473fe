# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Value formatting module

Human readable strings for tag values, as shown in metadata listings and
change summaries.

Copyright 2025 DNAi inc.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from enum import IntEnum
from typing import Any, Union

from exiflab.exceptions import InvalidRationalError
from exiflab.exif_tags import ExifTagType
from exiflab.metadata_block import KnownTag, Rational, UnknownTag

NOT_AVAILABLE = 'N/A'

_CONTROL_CHARACTERS = re.compile(r'[\x00-\x1f\x7f-\x9f]')


def _quotient(rational: Rational) -> Decimal:
    numerator, denominator = rational
    if denominator == 0:
        raise InvalidRationalError(f"Rational {numerator}/{denominator} has a zero denominator")
    return Decimal(numerator) / Decimal(denominator)


def _round_half_up(value: Decimal, places: int) -> str:
    return str(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_rational_display(tag: Union[str, IntEnum], rational: Rational) -> str:
    """
    Format a rational the way camera software shows it.

    ExposureTime with numerator 1 -> '1/125'
    FNumber -> 'f/1.8'
    FocalLength -> '24mm'
    anything else -> one decimal, e.g. '72.0'

    Raises:
        InvalidRationalError: If the denominator is zero
    """
    name = tag.name if isinstance(tag, IntEnum) else tag
    quotient = _quotient(rational)

    if name == 'ExposureTime' and rational[0] == 1:
        return f"1/{rational[1]}"
    if name == 'FNumber':
        return f"f/{_round_half_up(quotient, 1)}"
    if name == 'FocalLength':
        return f"{_round_half_up(quotient, 0)}mm"
    return _round_half_up(quotient, 1)


def _is_rational(value: Any) -> bool:
    return isinstance(value, Rational)


def format_exif_value(tag_name: str, value: Any) -> str:
    """
    Render any tag value (or directory entry) for a listing.

    GPS coordinate triples become 'x.xx, y.yy, z.zz', text loses control
    characters, binary data is shown as hex and opaque entries as
    '<TYPE n bytes>'.
    """
    if isinstance(value, KnownTag):
        value = value.value
    elif isinstance(value, UnknownTag):
        try:
            type_name = ExifTagType(value.value_type).name
        except ValueError:
            type_name = f"type {value.value_type}"
        return f"<{type_name} {len(value.raw)} bytes>"

    if value is None:
        return NOT_AVAILABLE

    if isinstance(value, tuple) and value and all(_is_rational(v) for v in value):
        if tag_name.startswith('GPS'):
            return ", ".join(
                f"{n}/{d}" if d == 0 else _round_half_up(_quotient(Rational(n, d)), 2) for n, d in value
            )
        return ", ".join(format_exif_value(tag_name, v) for v in value)

    if _is_rational(value):
        if value.denominator == 0:
            return f"{value.numerator}/{value.denominator}"
        return format_rational_display(tag_name, value)

    if isinstance(value, str):
        return _CONTROL_CHARACTERS.sub('', value)

    if isinstance(value, bytes):
        if value and all(0x20 <= b < 0x7f for b in value):
            return value.decode('ascii')
        return value.hex()

    if isinstance(value, tuple):
        return ", ".join(str(v) for v in value)

    return str(value)
