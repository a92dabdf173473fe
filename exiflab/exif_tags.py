# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF tag definitions

Value types, their sizes, and one typed enumeration of known tag ids per
directory (IFD0/IFD1, Exif IFD, GPS IFD, Interoperability IFD), each with
the value type the writer uses for new values.

Based on the EXIF 2.32 specification.

Copyright 2025 DNAi inc.
"""

from enum import Enum, IntEnum
from typing import Dict, Optional, Type


class ExifTagType(IntEnum):
    """EXIF tag data types"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13


# EXIF tag sizes in bytes
TAG_SIZES = {
    ExifTagType.BYTE: 1,
    ExifTagType.ASCII: 1,
    ExifTagType.SHORT: 2,
    ExifTagType.LONG: 4,
    ExifTagType.RATIONAL: 8,
    ExifTagType.SBYTE: 1,
    ExifTagType.UNDEFINED: 1,
    ExifTagType.SSHORT: 2,
    ExifTagType.SLONG: 4,
    ExifTagType.SRATIONAL: 8,
    ExifTagType.FLOAT: 4,
    ExifTagType.DOUBLE: 8,
    ExifTagType.IFD: 4,
}

# struct format character per element, byte swapping follows from these
STRUCT_FORMATS = {
    ExifTagType.SHORT: 'H',
    ExifTagType.LONG: 'I',
    ExifTagType.SSHORT: 'h',
    ExifTagType.SLONG: 'i',
    ExifTagType.RATIONAL: 'II',
    ExifTagType.SRATIONAL: 'ii',
    ExifTagType.FLOAT: 'f',
    ExifTagType.DOUBLE: 'd',
    ExifTagType.IFD: 'I',
}

# Value families decide the Python shape of a decoded value
TEXT_TYPES = frozenset({ExifTagType.ASCII})
BINARY_TYPES = frozenset({ExifTagType.BYTE, ExifTagType.SBYTE, ExifTagType.UNDEFINED})
INTEGER_TYPES = frozenset({ExifTagType.SHORT, ExifTagType.LONG, ExifTagType.SSHORT, ExifTagType.SLONG})
RATIONAL_TYPES = frozenset({ExifTagType.RATIONAL, ExifTagType.SRATIONAL})

# Inline threshold of the 4-byte value/offset field
INLINE_VALUE_SIZE = 4


def value_family(value_type: int) -> Optional[frozenset]:
    """
    Return the family a value type belongs to, or None for types that are
    only ever carried opaquely (FLOAT, DOUBLE, IFD, non-standard codes).
    """
    for family in (TEXT_TYPES, BINARY_TYPES, INTEGER_TYPES, RATIONAL_TYPES):
        if value_type in family:
            return family
    return None


def element_size(value_type: int) -> Optional[int]:
    """Size in bytes of one element, None for an unknown type code."""
    try:
        return TAG_SIZES[ExifTagType(value_type)]
    except ValueError:
        return None


class PointerTag(IntEnum):
    """Structural tags that link directories; never stored in a directory."""
    ExifIFD = 0x8769
    GPSIFD = 0x8825
    InteroperabilityIFD = 0xA005
    JPEGInterchangeFormat = 0x0201
    JPEGInterchangeFormatLength = 0x0202


# Offsets into image data the codec cannot relocate
UNRELOCATABLE_TAGS = frozenset({
    0x0111,  # StripOffsets
    0x0117,  # StripByteCounts
    0x0144,  # TileOffsets
    0x0145,  # TileByteCounts
    0x014A,  # SubIFDs
})


class ImageTag(IntEnum):
    """IFD0 (and IFD1 thumbnail) tags"""
    ImageWidth = 0x0100
    ImageLength = 0x0101
    BitsPerSample = 0x0102
    Compression = 0x0103
    PhotometricInterpretation = 0x0106
    ImageDescription = 0x010E
    Make = 0x010F
    Model = 0x0110
    Orientation = 0x0112
    SamplesPerPixel = 0x0115
    XResolution = 0x011A
    YResolution = 0x011B
    PlanarConfiguration = 0x011C
    ResolutionUnit = 0x0128
    Software = 0x0131
    DateTime = 0x0132
    Artist = 0x013B
    HostComputer = 0x013C
    WhitePoint = 0x013E
    PrimaryChromaticities = 0x013F
    YCbCrCoefficients = 0x0211
    YCbCrSubSampling = 0x0212
    YCbCrPositioning = 0x0213
    ReferenceBlackWhite = 0x0214
    Rating = 0x4746
    Copyright = 0x8298


class CaptureTag(IntEnum):
    """Exif IFD tags"""
    ExposureTime = 0x829A
    FNumber = 0x829D
    ExposureProgram = 0x8822
    SpectralSensitivity = 0x8824
    ISOSpeedRatings = 0x8827
    SensitivityType = 0x8830
    ExifVersion = 0x9000
    DateTimeOriginal = 0x9003
    DateTimeDigitized = 0x9004
    OffsetTime = 0x9010
    OffsetTimeOriginal = 0x9011
    OffsetTimeDigitized = 0x9012
    ComponentsConfiguration = 0x9101
    CompressedBitsPerPixel = 0x9102
    ShutterSpeedValue = 0x9201
    ApertureValue = 0x9202
    BrightnessValue = 0x9203
    ExposureBiasValue = 0x9204
    MaxApertureValue = 0x9205
    SubjectDistance = 0x9206
    MeteringMode = 0x9207
    LightSource = 0x9208
    Flash = 0x9209
    FocalLength = 0x920A
    SubjectArea = 0x9214
    MakerNote = 0x927C
    UserComment = 0x9286
    SubSecTime = 0x9290
    SubSecTimeOriginal = 0x9291
    SubSecTimeDigitized = 0x9292
    FlashpixVersion = 0xA000
    ColorSpace = 0xA001
    PixelXDimension = 0xA002
    PixelYDimension = 0xA003
    RelatedSoundFile = 0xA004
    FocalPlaneXResolution = 0xA20E
    FocalPlaneYResolution = 0xA20F
    FocalPlaneResolutionUnit = 0xA210
    SensingMethod = 0xA217
    FileSource = 0xA300
    SceneType = 0xA301
    CustomRendered = 0xA401
    ExposureMode = 0xA402
    WhiteBalance = 0xA403
    DigitalZoomRatio = 0xA404
    FocalLengthIn35mmFilm = 0xA405
    SceneCaptureType = 0xA406
    GainControl = 0xA407
    Contrast = 0xA408
    Saturation = 0xA409
    Sharpness = 0xA40A
    SubjectDistanceRange = 0xA40C
    ImageUniqueID = 0xA420
    CameraOwnerName = 0xA430
    BodySerialNumber = 0xA431
    LensSpecification = 0xA432
    LensMake = 0xA433
    LensModel = 0xA434
    LensSerialNumber = 0xA435


class GpsTag(IntEnum):
    """GPS IFD tags"""
    GPSVersionID = 0x0000
    GPSLatitudeRef = 0x0001
    GPSLatitude = 0x0002
    GPSLongitudeRef = 0x0003
    GPSLongitude = 0x0004
    GPSAltitudeRef = 0x0005
    GPSAltitude = 0x0006
    GPSTimeStamp = 0x0007
    GPSSatellites = 0x0008
    GPSStatus = 0x0009
    GPSMeasureMode = 0x000A
    GPSDOP = 0x000B
    GPSSpeedRef = 0x000C
    GPSSpeed = 0x000D
    GPSTrackRef = 0x000E
    GPSTrack = 0x000F
    GPSImgDirectionRef = 0x0010
    GPSImgDirection = 0x0011
    GPSMapDatum = 0x0012
    GPSDestLatitudeRef = 0x0013
    GPSDestLatitude = 0x0014
    GPSDestLongitudeRef = 0x0015
    GPSDestLongitude = 0x0016
    GPSDestBearingRef = 0x0017
    GPSDestBearing = 0x0018
    GPSDestDistanceRef = 0x0019
    GPSDestDistance = 0x001A
    GPSProcessingMethod = 0x001B
    GPSAreaInformation = 0x001C
    GPSDateStamp = 0x001D
    GPSDifferential = 0x001E
    GPSHPositioningError = 0x001F


class InteropTag(IntEnum):
    """Interoperability IFD tags"""
    InteroperabilityIndex = 0x0001
    InteroperabilityVersion = 0x0002
    RelatedImageFileFormat = 0x1000
    RelatedImageWidth = 0x1001
    RelatedImageLength = 0x1002


_A = ExifTagType.ASCII
_B = ExifTagType.BYTE
_S = ExifTagType.SHORT
_L = ExifTagType.LONG
_R = ExifTagType.RATIONAL
_SR = ExifTagType.SRATIONAL
_U = ExifTagType.UNDEFINED

IMAGE_TAG_TYPES: Dict[ImageTag, ExifTagType] = {
    ImageTag.ImageWidth: _L,
    ImageTag.ImageLength: _L,
    ImageTag.BitsPerSample: _S,
    ImageTag.Compression: _S,
    ImageTag.PhotometricInterpretation: _S,
    ImageTag.ImageDescription: _A,
    ImageTag.Make: _A,
    ImageTag.Model: _A,
    ImageTag.Orientation: _S,
    ImageTag.SamplesPerPixel: _S,
    ImageTag.XResolution: _R,
    ImageTag.YResolution: _R,
    ImageTag.PlanarConfiguration: _S,
    ImageTag.ResolutionUnit: _S,
    ImageTag.Software: _A,
    ImageTag.DateTime: _A,
    ImageTag.Artist: _A,
    ImageTag.HostComputer: _A,
    ImageTag.WhitePoint: _R,
    ImageTag.PrimaryChromaticities: _R,
    ImageTag.YCbCrCoefficients: _R,
    ImageTag.YCbCrSubSampling: _S,
    ImageTag.YCbCrPositioning: _S,
    ImageTag.ReferenceBlackWhite: _R,
    ImageTag.Rating: _S,
    ImageTag.Copyright: _A,
}

CAPTURE_TAG_TYPES: Dict[CaptureTag, ExifTagType] = {
    CaptureTag.ExposureTime: _R,
    CaptureTag.FNumber: _R,
    CaptureTag.ExposureProgram: _S,
    CaptureTag.SpectralSensitivity: _A,
    CaptureTag.ISOSpeedRatings: _S,
    CaptureTag.SensitivityType: _S,
    CaptureTag.ExifVersion: _U,
    CaptureTag.DateTimeOriginal: _A,
    CaptureTag.DateTimeDigitized: _A,
    CaptureTag.OffsetTime: _A,
    CaptureTag.OffsetTimeOriginal: _A,
    CaptureTag.OffsetTimeDigitized: _A,
    CaptureTag.ComponentsConfiguration: _U,
    CaptureTag.CompressedBitsPerPixel: _R,
    CaptureTag.ShutterSpeedValue: _SR,
    CaptureTag.ApertureValue: _R,
    CaptureTag.BrightnessValue: _SR,
    CaptureTag.ExposureBiasValue: _SR,
    CaptureTag.MaxApertureValue: _R,
    CaptureTag.SubjectDistance: _R,
    CaptureTag.MeteringMode: _S,
    CaptureTag.LightSource: _S,
    CaptureTag.Flash: _S,
    CaptureTag.FocalLength: _R,
    CaptureTag.SubjectArea: _S,
    CaptureTag.MakerNote: _U,
    CaptureTag.UserComment: _U,
    CaptureTag.SubSecTime: _A,
    CaptureTag.SubSecTimeOriginal: _A,
    CaptureTag.SubSecTimeDigitized: _A,
    CaptureTag.FlashpixVersion: _U,
    CaptureTag.ColorSpace: _S,
    CaptureTag.PixelXDimension: _L,
    CaptureTag.PixelYDimension: _L,
    CaptureTag.RelatedSoundFile: _A,
    CaptureTag.FocalPlaneXResolution: _R,
    CaptureTag.FocalPlaneYResolution: _R,
    CaptureTag.FocalPlaneResolutionUnit: _S,
    CaptureTag.SensingMethod: _S,
    CaptureTag.FileSource: _U,
    CaptureTag.SceneType: _U,
    CaptureTag.CustomRendered: _S,
    CaptureTag.ExposureMode: _S,
    CaptureTag.WhiteBalance: _S,
    CaptureTag.DigitalZoomRatio: _R,
    CaptureTag.FocalLengthIn35mmFilm: _S,
    CaptureTag.SceneCaptureType: _S,
    CaptureTag.GainControl: _S,
    CaptureTag.Contrast: _S,
    CaptureTag.Saturation: _S,
    CaptureTag.Sharpness: _S,
    CaptureTag.SubjectDistanceRange: _S,
    CaptureTag.ImageUniqueID: _A,
    CaptureTag.CameraOwnerName: _A,
    CaptureTag.BodySerialNumber: _A,
    CaptureTag.LensSpecification: _R,
    CaptureTag.LensMake: _A,
    CaptureTag.LensModel: _A,
    CaptureTag.LensSerialNumber: _A,
}

GPS_TAG_TYPES: Dict[GpsTag, ExifTagType] = {
    GpsTag.GPSVersionID: _B,
    GpsTag.GPSLatitudeRef: _A,
    GpsTag.GPSLatitude: _R,
    GpsTag.GPSLongitudeRef: _A,
    GpsTag.GPSLongitude: _R,
    GpsTag.GPSAltitudeRef: _B,
    GpsTag.GPSAltitude: _R,
    GpsTag.GPSTimeStamp: _R,
    GpsTag.GPSSatellites: _A,
    GpsTag.GPSStatus: _A,
    GpsTag.GPSMeasureMode: _A,
    GpsTag.GPSDOP: _R,
    GpsTag.GPSSpeedRef: _A,
    GpsTag.GPSSpeed: _R,
    GpsTag.GPSTrackRef: _A,
    GpsTag.GPSTrack: _R,
    GpsTag.GPSImgDirectionRef: _A,
    GpsTag.GPSImgDirection: _R,
    GpsTag.GPSMapDatum: _A,
    GpsTag.GPSDestLatitudeRef: _A,
    GpsTag.GPSDestLatitude: _R,
    GpsTag.GPSDestLongitudeRef: _A,
    GpsTag.GPSDestLongitude: _R,
    GpsTag.GPSDestBearingRef: _A,
    GpsTag.GPSDestBearing: _R,
    GpsTag.GPSDestDistanceRef: _A,
    GpsTag.GPSDestDistance: _R,
    GpsTag.GPSProcessingMethod: _U,
    GpsTag.GPSAreaInformation: _U,
    GpsTag.GPSDateStamp: _A,
    GpsTag.GPSDifferential: _S,
    GpsTag.GPSHPositioningError: _R,
}

INTEROP_TAG_TYPES: Dict[InteropTag, ExifTagType] = {
    InteropTag.InteroperabilityIndex: _A,
    InteropTag.InteroperabilityVersion: _U,
    InteropTag.RelatedImageFileFormat: _A,
    InteropTag.RelatedImageWidth: _L,
    InteropTag.RelatedImageLength: _L,
}


class DirectoryKind(Enum):
    """The directories a metadata block carries, in layout order."""
    IMAGE = "image"
    CAPTURE = "capture"
    GPS = "gps"
    INTEROP = "interop"
    THUMBNAIL = "thumbnail"


TAG_ENUMS: Dict[DirectoryKind, Type[IntEnum]] = {
    DirectoryKind.IMAGE: ImageTag,
    DirectoryKind.CAPTURE: CaptureTag,
    DirectoryKind.GPS: GpsTag,
    DirectoryKind.INTEROP: InteropTag,
    DirectoryKind.THUMBNAIL: ImageTag,
}

TAG_TYPES: Dict[DirectoryKind, Dict] = {
    DirectoryKind.IMAGE: IMAGE_TAG_TYPES,
    DirectoryKind.CAPTURE: CAPTURE_TAG_TYPES,
    DirectoryKind.GPS: GPS_TAG_TYPES,
    DirectoryKind.INTEROP: INTEROP_TAG_TYPES,
    DirectoryKind.THUMBNAIL: IMAGE_TAG_TYPES,
}


def lookup_tag(kind: DirectoryKind, tag_id: int) -> Optional[IntEnum]:
    """Return the enumeration member for tag_id in a directory, or None."""
    try:
        return TAG_ENUMS[kind](tag_id)
    except ValueError:
        return None


def tag_name(kind: DirectoryKind, tag_id: int) -> str:
    """Human readable tag name, 'Unknown_0xXXXX' for ids outside the table."""
    tag = lookup_tag(kind, tag_id)
    if tag is None:
        return f"Unknown_0x{tag_id:04X}"
    return tag.name
