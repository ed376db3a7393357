"""Part numbering and byte ranges for multi-part payloads."""

from __future__ import annotations

from typing import List, Optional

from ..common.types import PartRange, PartTrailer
from ..utils import ConfigurationError, FormatError


def count_parts(total_size: int, part_size: int) -> int:
    """
    Number of parts needed for a payload.

    Args:
        total_size: Payload size in bytes.
        part_size: Maximum bytes per part.

    Returns:
        ceil(total_size / part_size); 0 for an empty payload.
    """
    if part_size <= 0:
        raise ConfigurationError("part_size must be greater than 0.")
    if total_size < 0:
        raise ConfigurationError("total_size must be non-negative.")
    return -(-total_size // part_size)


def part_range(number: int, total_size: int, part_size: int) -> PartRange:
    """
    Byte range of one part.

    Args:
        number: 1-based part number.
        total_size: Payload size in bytes.
        part_size: Maximum bytes per part.

    Returns:
        PartRange with 1-based inclusive begin and end.
    """
    total_parts = count_parts(total_size, part_size)
    if not 1 <= number <= total_parts:
        raise ConfigurationError(f"Part number {number} outside 1..{total_parts}.")
    begin = (number - 1) * part_size + 1
    end = min(number * part_size, total_size)
    return PartRange(number=number, begin=begin, end=end)


def plan_parts(total_size: int, part_size: int) -> List[PartRange]:
    return [
        part_range(number, total_size, part_size)
        for number in range(1, count_parts(total_size, part_size) + 1)
    ]


def validate_part(
    part_trailer: PartTrailer, produced: int, total_size: Optional[int] = None
) -> None:
    """
    Check a decoded part against its declared range.

    Args:
        part_trailer: Range from the ``=ypart`` line.
        produced: Number of bytes decoded from the body.
        total_size: Size of the whole payload from the ``=ybegin`` line.

    Raises:
        FormatError: If the range is inverted, out of bounds, or does not
            match the number of decoded bytes.
    """
    begin, end = part_trailer.begin_offset, part_trailer.end_offset
    if begin < 1 or end < begin:
        raise FormatError(f"Invalid part range begin={begin} end={end}")
    if total_size is not None and end > total_size:
        raise FormatError(f"Part range end={end} exceeds total size {total_size}")
    if part_trailer.size != produced:
        raise FormatError(
            f"Part range begin={begin} end={end} declares {part_trailer.size} bytes, "
            f"decoded {produced}"
        )
