# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Command-line interface for ExifLab

    exiflab show photo.jpg [--json]
    exiflab edit photo.jpg --device "Apple iPhone 15 Pro" --clear-gps
    exiflab strip photo.jpg -o clean.jpg
    exiflab devices [--json]

Copyright 2025 DNAi inc.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from exiflab import __version__
from exiflab.core import DEFAULT_SOFTWARE, EditSession
from exiflab.device_profiles import DEVICE_PROFILES, DeviceProfile, get_device_profile, load_device_profiles
from exiflab.exceptions import ExifLabError
from exiflab.exif_tags import DirectoryKind, tag_name
from exiflab.jpeg_modifier import strip
from exiflab.metadata_block import MetadataBlock
from exiflab.value_formatter import format_exif_value, format_rational_display

logger = logging.getLogger(__name__)

BYTE_ORDERS = {'big': '>', 'little': '<'}

# Listing order and headings
DIRECTORY_TITLES = {
    DirectoryKind.IMAGE: "Image IFD",
    DirectoryKind.CAPTURE: "Exif IFD",
    DirectoryKind.GPS: "GPS IFD",
    DirectoryKind.INTEROP: "Interop IFD",
    DirectoryKind.THUMBNAIL: "Thumbnail IFD",
}


def format_output(data: Dict[str, Dict[str, str]], format_type: str = "text") -> str:
    """
    Format a directory -> tag -> value listing.

    Args:
        data: Listing keyed by directory title
        format_type: Output format ('text' or 'json')
    """
    if format_type == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    lines = []
    for title, tags in data.items():
        lines.append(f"[{title}]")
        for tag, value in tags.items():
            lines.append(f"  {tag}: {value}")
    return "\n".join(lines)


def block_listing(block: MetadataBlock) -> Dict[str, Dict[str, str]]:
    listing = {}
    for kind, directory in block.directories():
        if len(directory) == 0:
            continue
        listing[DIRECTORY_TITLES[kind]] = {
            tag_name(kind, entry.tag_id): format_exif_value(tag_name(kind, entry.tag_id), entry)
            for entry in directory
        }
    if block.thumbnail_data is not None:
        listing.setdefault(DIRECTORY_TITLES[DirectoryKind.THUMBNAIL], {})['ThumbnailImage'] = (
            f"<{len(block.thumbnail_data)} bytes>"
        )
    return listing


def profile_listing(profiles: Mapping[str, DeviceProfile]) -> Dict[str, Dict[str, Any]]:
    listing = {}
    for name, profile in profiles.items():
        capture = profile.capture
        entry = {'make': profile.make, 'model': profile.model}
        if profile.software:
            entry['software'] = profile.software
        if capture.f_number:
            entry['aperture'] = format_rational_display('FNumber', capture.f_number)
        if capture.exposure_time:
            entry['exposure'] = format_rational_display('ExposureTime', capture.exposure_time)
        if capture.iso is not None:
            entry['iso'] = capture.iso
        if capture.focal_length:
            entry['focal_length'] = format_rational_display('FocalLength', capture.focal_length)
        if capture.lens_model:
            entry['lens'] = capture.lens_model
        listing[name] = entry
    return listing


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}_exiflab.jpeg")


def _read_file(path: Path) -> bytes:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_bytes()


def cmd_show(args: argparse.Namespace, profiles: Mapping[str, DeviceProfile]) -> int:
    session = EditSession(profiles=profiles)
    session.load(_read_file(args.file))
    block = session.original

    if block is None or block.is_empty():
        if session.needs_conversion:
            print("No EXIF data found. New data will be added on a JPEG version of the image.")
        else:
            print("No EXIF data found in this image.")
        return 0

    print(format_output(block_listing(block), "json" if args.json else "text"))
    return 0


def cmd_edit(args: argparse.Namespace, profiles: Mapping[str, DeviceProfile]) -> int:
    session = EditSession(
        profiles=profiles,
        software=args.software or DEFAULT_SOFTWARE,
        endian=BYTE_ORDERS.get(args.byte_order),
    )
    session.load(_read_file(args.file))

    changes: Dict[str, Any] = {}
    if args.device:
        changes['device'] = get_device_profile(args.device, profiles).name
    if args.datetime:
        changes['capture_time'] = args.datetime
    if args.lat is not None:
        changes['latitude'] = args.lat
        changes['longitude'] = args.lon
    if changes:
        session.update_fields(**changes)

    if args.clear_all:
        session.clear_all()
    if args.clear_privacy:
        session.clear_privacy()
    if args.clear_device:
        session.clear_device()
    if args.clear_datetime:
        session.clear_timestamp()
    if args.clear_gps:
        session.clear_location()

    rows = session.summary()
    for row in rows:
        print(f"{row.label}: {row.old_value} -> {row.new_value}")
    if not rows:
        print("No field changes")

    if args.dry_run:
        return 0

    output = session.apply()
    output_path = args.output or default_output_path(args.file)
    output_path.write_bytes(output)
    print(f"Wrote {output_path}")
    return 0


def cmd_strip(args: argparse.Namespace, profiles: Mapping[str, DeviceProfile]) -> int:
    output_path = args.output or default_output_path(args.file)
    output_path.write_bytes(strip(_read_file(args.file)))
    print(f"Wrote {output_path}")
    return 0


def cmd_devices(args: argparse.Namespace, profiles: Mapping[str, DeviceProfile]) -> int:
    listing = profile_listing(profiles)
    if args.json:
        print(json.dumps(listing, indent=2, ensure_ascii=False))
        return 0
    for name, entry in listing.items():
        print(f"{name}: {entry['make']} {entry['model']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exiflab",
        description="Inspect, edit and strip EXIF metadata of JPEG images",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--profiles", type=Path, help="JSON file with extra device profiles")

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="List the EXIF metadata of an image")
    show.add_argument("file", type=Path)
    show.add_argument("--json", action="store_true", help="Output JSON")
    show.set_defaults(handler=cmd_show)

    edit = subparsers.add_parser("edit", help="Write edited metadata into a new JPEG")
    edit.add_argument("file", type=Path)
    edit.add_argument("-o", "--output", type=Path, help="Output file (default: <name>_exiflab.jpeg)")
    device = edit.add_mutually_exclusive_group()
    device.add_argument("--device", help="Device profile name (see 'exiflab devices')")
    device.add_argument("--clear-device", action="store_true", help="Remove Make and Model")
    date = edit.add_mutually_exclusive_group()
    date.add_argument("--datetime", help="Capture time as 'YYYY:MM:DD HH:MM:SS'")
    date.add_argument("--clear-datetime", action="store_true", help="Remove the capture time")
    location = edit.add_mutually_exclusive_group()
    location.add_argument("--lat", type=float, help="Latitude in decimal degrees")
    location.add_argument("--clear-gps", action="store_true", help="Remove GPS coordinates")
    edit.add_argument("--lon", type=float, help="Longitude in decimal degrees")
    edit.add_argument("--clear-privacy", action="store_true", help="Remove capture time and location")
    edit.add_argument("--clear-all", action="store_true", help="Remove device, capture time and location")
    edit.add_argument("--software", help=f"Software string to stamp (default: {DEFAULT_SOFTWARE})")
    edit.add_argument("--byte-order", choices=sorted(BYTE_ORDERS), help="Byte order of the written EXIF")
    edit.add_argument("--dry-run", action="store_true", help="Show the changes without writing")
    edit.set_defaults(handler=cmd_edit)

    strip_cmd = subparsers.add_parser("strip", help="Remove the EXIF segment")
    strip_cmd.add_argument("file", type=Path)
    strip_cmd.add_argument("-o", "--output", type=Path, help="Output file (default: <name>_exiflab.jpeg)")
    strip_cmd.set_defaults(handler=cmd_strip)

    devices = subparsers.add_parser("devices", help="List device profiles")
    devices.add_argument("--json", action="store_true", help="Output JSON")
    devices.set_defaults(handler=cmd_devices)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "edit" and (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        profiles = load_device_profiles(args.profiles) if args.profiles else DEVICE_PROFILES
        return args.handler(args, profiles)
    except (ExifLabError, OSError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
