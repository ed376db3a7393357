"""Type definitions and data models."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..utils import ConfigurationError
from .constants import DEFAULT_LINE_LENGTH, MIN_LINE_LENGTH


class Verification(str, enum.Enum):
    """Outcome of comparing a computed checksum with a declared one."""

    MATCHED = "matched"
    MISMATCHED = "mismatched"
    ABSENT = "absent"


@dataclass(frozen=True)
class EncodeOptions:
    """Options for encoding one block."""

    line_length: int = DEFAULT_LINE_LENGTH
    part: Optional[int] = None
    total_parts: Optional[int] = None
    part_size: Optional[int] = None
    dot_stuff: bool = False

    @property
    def is_multipart(self) -> bool:
        return self.part is not None

    def validate(self) -> None:
        """
        Check that the option combination is usable.

        Raises:
            ConfigurationError: If options are missing or contradictory.
        """
        if self.line_length < MIN_LINE_LENGTH:
            raise ConfigurationError(
                f"line_length must be at least {MIN_LINE_LENGTH}, got {self.line_length}."
            )
        if self.part is None:
            if self.total_parts is not None:
                raise ConfigurationError("total_parts given without a part number.")
            return
        if self.total_parts is None:
            raise ConfigurationError("Part number given without total_parts.")
        if not 1 <= self.part <= self.total_parts:
            raise ConfigurationError(
                f"Part number {self.part} outside 1..{self.total_parts}."
            )
        if self.part_size is None or self.part_size <= 0:
            raise ConfigurationError("Multi-part encoding requires a positive part_size.")


@dataclass(frozen=True)
class Header:
    """Metadata carried by a ``=ybegin`` line."""

    total_size: int
    name: str
    line_length: Optional[int] = None
    part: Optional[int] = None
    total_parts: Optional[int] = None

    @property
    def is_multipart(self) -> bool:
        return self.part is not None


@dataclass(frozen=True)
class PartRange:
    """A planned part: 1-based number and 1-based inclusive byte range."""

    number: int
    begin: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.begin + 1

    @property
    def offset(self) -> int:
        return self.begin - 1

    def to_part_trailer(self) -> "PartTrailer":
        return PartTrailer(begin_offset=self.begin, end_offset=self.end)


@dataclass(frozen=True)
class PartTrailer:
    """Byte range carried by a ``=ypart`` line."""

    begin_offset: int
    end_offset: int

    @property
    def size(self) -> int:
        return self.end_offset - self.begin_offset + 1

    @property
    def offset(self) -> int:
        return self.begin_offset - 1


@dataclass(frozen=True)
class Trailer:
    """Metadata carried by a ``=yend`` line."""

    size: int
    part: Optional[int] = None
    part_crc32: Optional[int] = None
    crc32: Optional[int] = None


@dataclass(frozen=True)
class DecodedMeta:
    """Result of decoding one block."""

    header: Header
    trailer: Trailer
    size: int
    crc32: int
    part_trailer: Optional[PartTrailer] = None
    part_verification: Verification = Verification.ABSENT
    verification: Verification = Verification.ABSENT
    size_matches: bool = True
    unexpected_escapes: int = 0

    @property
    def ok(self) -> bool:
        return self.size_matches and Verification.MISMATCHED not in (
            self.part_verification,
            self.verification,
        )

    @property
    def offset(self) -> int:
        """Zero-based position of this block's bytes in the whole payload."""
        if self.part_trailer is None:
            return 0
        return self.part_trailer.offset

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.header.name,
            "total_size": self.header.total_size,
            "line_length": self.header.line_length,
            "part": self.header.part,
            "total_parts": self.header.total_parts,
            "begin": self.part_trailer.begin_offset if self.part_trailer else None,
            "end": self.part_trailer.end_offset if self.part_trailer else None,
            "size": self.size,
            "crc32": f"{self.crc32:08x}",
            "declared_crc32": _hex_or_none(self.trailer.crc32),
            "declared_pcrc32": _hex_or_none(self.trailer.part_crc32),
            "part_verification": self.part_verification.value,
            "verification": self.verification.value,
            "size_matches": self.size_matches,
            "unexpected_escapes": self.unexpected_escapes,
        }


def _hex_or_none(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:08x}"
