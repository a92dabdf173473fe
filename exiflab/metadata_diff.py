# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Metadata Diff Module

This module compares two metadata blocks tag by tag, and condenses the
comparison into the handful of fields a user edits (device, capture time,
location and exposure settings).

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from exiflab.exceptions import InvalidCoordinateError
from exiflab.exif_tags import CaptureTag, DirectoryKind, ImageTag, tag_name
from exiflab.geotagging import read_coordinates
from exiflab.metadata_block import KnownTag, MetadataBlock, TagEntry
from exiflab.value_formatter import NOT_AVAILABLE, format_exif_value

REMOVED = 'REMOVED'


class DiffType(Enum):
    """Type of difference between two metadata values."""
    ADDED = "added"  # Tag exists only in the new block
    REMOVED = "removed"  # Tag exists only in the old block
    CHANGED = "changed"  # Tag exists in both but values differ


@dataclass
class MetadataDiff:
    """Represents a difference between two tag entries."""
    directory: DirectoryKind
    tag_name: str
    diff_type: DiffType
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None

    @property
    def key(self) -> str:
        return f"{self.directory.value}:{self.tag_name}"

    @property
    def old_display(self) -> str:
        return format_exif_value(self.tag_name, self.old_value)

    @property
    def new_display(self) -> str:
        return format_exif_value(self.tag_name, self.new_value)


@dataclass
class DiffResult:
    """Result of comparing two metadata blocks."""
    matched_tags: int = 0
    differences: List[MetadataDiff] = field(default_factory=list)

    @property
    def added(self) -> List[MetadataDiff]:
        return [d for d in self.differences if d.diff_type == DiffType.ADDED]

    @property
    def removed(self) -> List[MetadataDiff]:
        return [d for d in self.differences if d.diff_type == DiffType.REMOVED]

    @property
    def changed(self) -> List[MetadataDiff]:
        return [d for d in self.differences if d.diff_type == DiffType.CHANGED]

    def __bool__(self) -> bool:
        return bool(self.differences)


@dataclass(frozen=True)
class ChangeRow:
    """One line of a change summary."""
    label: str
    old_value: str
    new_value: str


def _entries(block: Optional[MetadataBlock]) -> Dict[Tuple[DirectoryKind, int], TagEntry]:
    if block is None:
        return {}
    return {(kind, entry.tag_id): entry for kind, directory in block.directories() for entry in directory}


def _entry_name(kind: DirectoryKind, entry: TagEntry) -> str:
    if isinstance(entry, KnownTag):
        return entry.name
    return tag_name(kind, entry.tag_id)


def diff_blocks(before: Optional[MetadataBlock], after: Optional[MetadataBlock]) -> DiffResult:
    """
    Compare two blocks tag by tag.

    Either block may be None (no metadata). Differences are ordered by
    directory, then by tag id.

    Example:
        >>> result = diff_blocks(session.original, edited)
        >>> print(format_diff_result(result))
    """
    old_entries = _entries(before)
    new_entries = _entries(after)
    kind_order = {kind: i for i, kind in enumerate(DirectoryKind)}
    keys = sorted(set(old_entries) | set(new_entries), key=lambda k: (kind_order[k[0]], k[1]))

    result = DiffResult()
    for kind, tag_id in keys:
        old = old_entries.get((kind, tag_id))
        new = new_entries.get((kind, tag_id))
        if old == new:
            result.matched_tags += 1
            continue
        if old is None:
            diff_type = DiffType.ADDED
        elif new is None:
            diff_type = DiffType.REMOVED
        else:
            diff_type = DiffType.CHANGED
        result.differences.append(MetadataDiff(
            directory=kind,
            tag_name=_entry_name(kind, new if old is None else old),
            diff_type=diff_type,
            old_value=old,
            new_value=new,
        ))

    old_thumbnail = before.thumbnail_data if before else None
    new_thumbnail = after.thumbnail_data if after else None
    if old_thumbnail != new_thumbnail:
        if old_thumbnail is None:
            diff_type = DiffType.ADDED
        elif new_thumbnail is None:
            diff_type = DiffType.REMOVED
        else:
            diff_type = DiffType.CHANGED
        result.differences.append(MetadataDiff(
            DirectoryKind.THUMBNAIL, 'ThumbnailImage', diff_type, old_thumbnail, new_thumbnail
        ))
    return result


def format_diff_result(result: DiffResult) -> str:
    """
    Format diff result as a human-readable string.
    """
    if not result:
        return "No changes"

    lines = []
    for diff in result.differences:
        if diff.diff_type == DiffType.ADDED:
            lines.append(f"+ {diff.key}: {diff.new_display}")
        elif diff.diff_type == DiffType.REMOVED:
            lines.append(f"- {diff.key}: {diff.old_display}")
        else:
            lines.append(f"~ {diff.key}: {diff.old_display} -> {diff.new_display}")
    lines.append(f"{len(result.differences)} change(s), {result.matched_tags} tag(s) unchanged")
    return "\n".join(lines)


def _location(block: Optional[MetadataBlock]) -> Optional[str]:
    if block is None:
        return None
    try:
        coordinate = read_coordinates(block.gps)
    except InvalidCoordinateError:
        return None
    return str(coordinate) if coordinate else None


# Summary label, directory, tag
_SUMMARY_FIELDS = [
    ("Device Model", DirectoryKind.IMAGE, ImageTag.Model),
    ("Date/Time", DirectoryKind.CAPTURE, CaptureTag.DateTimeOriginal),
    ("Location", DirectoryKind.GPS, None),
    ("Aperture", DirectoryKind.CAPTURE, CaptureTag.FNumber),
    ("Exposure Time", DirectoryKind.CAPTURE, CaptureTag.ExposureTime),
    ("ISO", DirectoryKind.CAPTURE, CaptureTag.ISOSpeedRatings),
    ("Focal Length", DirectoryKind.CAPTURE, CaptureTag.FocalLength),
    ("Lens Model", DirectoryKind.CAPTURE, CaptureTag.LensModel),
]


def summarize_changes(before: Optional[MetadataBlock], after: Optional[MetadataBlock]) -> List[ChangeRow]:
    """
    Condense a comparison into the user-facing fields that changed.

    A field present before and absent after reads 'REMOVED'; a field
    absent on both sides is not listed.
    """
    rows = []
    for label, kind, tag in _SUMMARY_FIELDS:
        if tag is None:
            old, new = _location(before), _location(after)
        else:
            old = _display(before, kind, tag)
            new = _display(after, kind, tag)
        if old == new:
            continue
        rows.append(ChangeRow(
            label=label,
            old_value=old if old is not None else NOT_AVAILABLE,
            new_value=new if new is not None else REMOVED,
        ))
    return rows


def _display(block: Optional[MetadataBlock], kind: DirectoryKind, tag) -> Optional[str]:
    if block is None:
        return None
    entry = block.directory(kind).entry(tag)
    if entry is None:
        return None
    return format_exif_value(tag.name, entry)
