# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
In-memory EXIF data model

A MetadataBlock holds the directories of one EXIF segment. Each directory
maps tag ids to either a KnownTag (a tag from the directory's enumeration
with a typed value) or an UnknownTag (anything else, carried as raw bytes
so it can be written back unchanged).

Copyright 2025 DNAi inc.
"""

import copy
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from exiflab.exif_tags import (
    BINARY_TYPES,
    INTEGER_TYPES,
    RATIONAL_TYPES,
    TAG_ENUMS,
    TAG_TYPES,
    TEXT_TYPES,
    DirectoryKind,
    ExifTagType,
    lookup_tag,
    tag_name,
)


class Rational(NamedTuple):
    """A fraction stored as two 32-bit integers."""
    numerator: int
    denominator: int

    @property
    def is_valid(self) -> bool:
        return self.denominator != 0

    def __float__(self) -> float:
        # ZeroDivisionError on the decode-error sentinel
        return self.numerator / self.denominator


@dataclass(frozen=True)
class KnownTag:
    """A tag from the directory's enumeration with a decoded value."""
    tag: IntEnum
    value_type: ExifTagType
    value: Any

    @property
    def tag_id(self) -> int:
        return int(self.tag)

    @property
    def name(self) -> str:
        return self.tag.name


@dataclass(frozen=True)
class UnknownTag:
    """
    A tag carried opaquely.

    For value types with a known size, raw holds the full value bytes in the
    block's byte order. For unknown type codes raw is the verbatim 4-byte
    value/offset field.
    """
    tag_id: int
    value_type: int
    count: int
    raw: bytes

    @property
    def name(self) -> str:
        return f"Unknown_0x{self.tag_id:04X}"


TagEntry = Union[KnownTag, UnknownTag]


def _normalize_value(value_type: ExifTagType, value: Any) -> Any:
    """Coerce a user supplied value into the shape the decoder produces."""
    if value_type in TEXT_TYPES:
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        if not isinstance(value, str):
            raise ValueError(f"Expected text for {value_type.name}, got {type(value).__name__}")
        # The terminator is added on write
        if '\x00' in value:
            raise ValueError(f"Text value {value!r} contains a NUL character")
        return value

    if value_type in BINARY_TYPES:
        if isinstance(value, int):
            return bytes([value])
        if isinstance(value, str):
            return value.encode('ascii')
        return bytes(value)

    if value_type in INTEGER_TYPES:
        if isinstance(value, bool):
            raise ValueError("Booleans are not valid integer tag values")
        if isinstance(value, int):
            return value
        values = tuple(int(v) for v in value)
        if not values:
            raise ValueError("Empty integer array")
        return values[0] if len(values) == 1 else values

    if value_type in RATIONAL_TYPES:
        if _is_pair(value):
            return Rational(int(value[0]), int(value[1]))
        values = tuple(Rational(int(v[0]), int(v[1])) for v in value)
        if not values:
            raise ValueError("Empty rational array")
        return values[0] if len(values) == 1 else values

    raise ValueError(f"Tag type {value_type!r} cannot hold a typed value")


def _is_pair(value: Any) -> bool:
    return (
        isinstance(value, (tuple, list))
        and len(value) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    )


class TagDirectory:
    """
    Tag id to entry mapping for one IFD.

    Tags may be addressed by enumeration member, by name, or by integer id.
    Equality ignores insertion order.
    """

    def __init__(self, kind: DirectoryKind):
        self.kind = kind
        self._entries: Dict[int, TagEntry] = {}

    def _resolve(self, tag: Union[int, str, IntEnum]) -> int:
        if isinstance(tag, str):
            enum_type = TAG_ENUMS[self.kind]
            try:
                return int(enum_type[tag])
            except KeyError:
                raise KeyError(f"Unknown {self.kind.value} tag name: {tag}")
        return int(tag)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TagEntry]:
        return iter(self.entries())

    def __contains__(self, tag: Union[int, str, IntEnum]) -> bool:
        return self._resolve(tag) in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagDirectory):
            return NotImplemented
        return self.kind == other.kind and self._entries == other._entries

    def __repr__(self) -> str:
        names = ", ".join(entry.name for entry in self.entries())
        return f"TagDirectory({self.kind.value}: {names})"

    def entries(self) -> List[TagEntry]:
        """Entries ordered by ascending tag id, the order they are written in."""
        return [self._entries[tag_id] for tag_id in sorted(self._entries)]

    def entry(self, tag: Union[int, str, IntEnum]) -> Optional[TagEntry]:
        return self._entries.get(self._resolve(tag))

    def get(self, tag: Union[int, str, IntEnum], default: Any = None) -> Any:
        """
        Get the decoded value of a tag.

        Opaque entries have no decoded value and return default.
        """
        entry = self._entries.get(self._resolve(tag))
        if isinstance(entry, KnownTag):
            return entry.value
        return default

    def set(
        self,
        tag: Union[int, str, IntEnum],
        value: Any,
        value_type: Optional[ExifTagType] = None,
    ) -> None:
        """
        Set a known tag.

        Args:
            tag: Enumeration member, name or id of a tag of this directory
            value: str, bytes, int, Rational or a sequence of those
            value_type: Override of the tag's default type

        Raises:
            KeyError: If the tag is not part of this directory's enumeration
            ValueError: If the value does not fit the type
        """
        tag_id = self._resolve(tag)
        member = lookup_tag(self.kind, tag_id)
        if member is None:
            raise KeyError(f"Tag 0x{tag_id:04X} is not a known {self.kind.value} tag")
        if value_type is None:
            value_type = TAG_TYPES[self.kind][member]
        self._entries[tag_id] = KnownTag(member, ExifTagType(value_type), _normalize_value(ExifTagType(value_type), value))

    def add(self, entry: TagEntry) -> None:
        """Store an already built entry, replacing one with the same id."""
        self._entries[entry.tag_id] = entry

    def remove(self, tag: Union[int, str, IntEnum]) -> bool:
        """Remove a tag. Returns True if it was present."""
        return self._entries.pop(self._resolve(tag), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def copy(self) -> 'TagDirectory':
        clone = TagDirectory(self.kind)
        clone._entries = dict(self._entries)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Tag name to value (raw bytes for opaque entries)."""
        result = {}
        for entry in self.entries():
            if isinstance(entry, KnownTag):
                result[entry.name] = entry.value
            else:
                result[tag_name(self.kind, entry.tag_id)] = entry.raw
        return result


@dataclass
class MetadataBlock:
    """
    All directories of one EXIF segment.

    byte_order is '>' (Motorola, 'MM') or '<' (Intel, 'II'); raw bytes of
    opaque entries are always in this order.
    """
    image: TagDirectory = field(default_factory=lambda: TagDirectory(DirectoryKind.IMAGE))
    capture: TagDirectory = field(default_factory=lambda: TagDirectory(DirectoryKind.CAPTURE))
    gps: TagDirectory = field(default_factory=lambda: TagDirectory(DirectoryKind.GPS))
    interop: TagDirectory = field(default_factory=lambda: TagDirectory(DirectoryKind.INTEROP))
    thumbnail: TagDirectory = field(default_factory=lambda: TagDirectory(DirectoryKind.THUMBNAIL))
    thumbnail_data: Optional[bytes] = None
    byte_order: str = '>'

    def __post_init__(self):
        if self.byte_order not in ('<', '>'):
            raise ValueError(f"Invalid byte order: {self.byte_order!r}")

    def directory(self, kind: DirectoryKind) -> TagDirectory:
        return getattr(self, kind.value)

    def directories(self) -> List[Tuple[DirectoryKind, TagDirectory]]:
        return [(kind, self.directory(kind)) for kind in DirectoryKind]

    def is_empty(self) -> bool:
        return self.thumbnail_data is None and all(len(d) == 0 for _, d in self.directories())

    def copy(self) -> 'MetadataBlock':
        return copy.deepcopy(self)
