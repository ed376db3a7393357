"""Core codec logic (pure Python, no file handling)."""

from .checksum import Crc32, crc32_bytes
from .headers import (
    classify_line,
    format_begin,
    format_end,
    format_part,
    parse_begin,
    parse_end,
    parse_part,
)
from .parts import count_parts, part_range, plan_parts, validate_part
from .transcoder import decode_byte, decode_escaped, encode_byte
from .wrapper import LineCursor, LineDecoder, encode_chunk, finish_line

__all__ = [
    "Crc32",
    "crc32_bytes",
    "classify_line",
    "format_begin",
    "format_end",
    "format_part",
    "parse_begin",
    "parse_end",
    "parse_part",
    "count_parts",
    "part_range",
    "plan_parts",
    "validate_part",
    "decode_byte",
    "decode_escaped",
    "encode_byte",
    "LineCursor",
    "LineDecoder",
    "encode_chunk",
    "finish_line",
]
