# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Raster converter

PNG and AVIF images carry no EXIF APP1 segment, so they are re-encoded as
JPEG before metadata is attached. Decoding and encoding are done by Pillow;
AVIF decoding needs a Pillow build with AVIF support.

Copyright 2025 DNAi inc.
"""

import io
import logging
import struct
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from exiflab.exceptions import ConversionError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'
AVIF_BRANDS = (b'avif', b'avis')

DEFAULT_QUALITY = 92


def is_png(data: bytes) -> bool:
    return data[:8] == PNG_SIGNATURE


def is_avif(data: bytes) -> bool:
    """Check for an ISO-BMFF 'ftyp' box naming an AVIF brand."""
    if len(data) < 16 or data[4:8] != b'ftyp':
        return False
    box_size = struct.unpack('>I', data[0:4])[0]
    if box_size < 16 or box_size > len(data):
        return False
    if data[8:12] in AVIF_BRANDS:
        return True
    # Compatible brands follow the major brand and minor version
    compatible = data[16:box_size]
    return any(compatible[i:i + 4] in AVIF_BRANDS for i in range(0, len(compatible) - 3, 4))


def is_convertible(data: bytes) -> bool:
    return is_png(data) or is_avif(data)


def convert_to_jpeg(
    data: bytes,
    quality: int = DEFAULT_QUALITY,
    background: Tuple[int, int, int] = (0, 0, 0),
) -> bytes:
    """
    Re-encode an image as a baseline JPEG without metadata.

    Transparent pixels are composited onto background.

    Args:
        data: PNG or AVIF file data
        quality: JPEG quality (1-95)
        background: RGB color behind transparent areas

    Returns:
        JPEG file data

    Raises:
        ConversionError: If Pillow cannot decode the input
    """
    if not 1 <= quality <= 95:
        raise ValueError(f"JPEG quality must be between 1 and 95, got {quality}")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                rgba = img.convert('RGBA')
                rgb = Image.new('RGB', rgba.size, background)
                rgb.paste(rgba, mask=rgba.getchannel('A'))
            else:
                rgb = img.convert('RGB')
    except (UnidentifiedImageError, OSError) as e:
        raise ConversionError(f"Could not decode image for JPEG conversion: {e}")

    output = io.BytesIO()
    rgb.save(output, format='JPEG', quality=quality)
    logger.debug("Converted %dx%d image to JPEG (%d bytes)", rgb.width, rgb.height, output.tell())
    return output.getvalue()
