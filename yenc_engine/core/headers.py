"""Formatting and parsing of =ybegin, =ypart and =yend lines."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Tuple, Union

from ..common.constants import BEGIN_KEYWORD, END_KEYWORD, PART_KEYWORD
from ..common.types import Header, PartTrailer, Trailer
from ..utils import FormatError

logger = logging.getLogger(__name__)

LineInput = Union[bytes, bytearray, str]

_NAME_MARKER = " name="
_INT_RE = re.compile(r"[0-9]+")
_HEX_RE = re.compile(r"[0-9a-fA-F]{1,8}")

_LINE_KINDS = (
    ("begin", BEGIN_KEYWORD.encode("ascii")),
    ("part", PART_KEYWORD.encode("ascii")),
    ("end", END_KEYWORD.encode("ascii")),
)


def classify_line(line: bytes) -> Optional[str]:
    """
    Identify a framing line.

    Args:
        line: Raw line, with or without terminator.

    Returns:
        "begin", "part", "end", or None for a body line.
    """
    stripped = line.rstrip(b"\r\n")
    for kind, keyword in _LINE_KINDS:
        if stripped == keyword or stripped.startswith(keyword + b" "):
            return kind
    return None


def format_begin(header: Header) -> bytes:
    fields = []
    if header.line_length is not None:
        fields.append(f"line={header.line_length}")
    fields.append(f"size={header.total_size}")
    if header.part is not None:
        fields.append(f"part={header.part}")
    if header.total_parts is not None:
        fields.append(f"total={header.total_parts}")
    fields.append(f"name={header.name}")
    return _join(BEGIN_KEYWORD, fields)


def format_part(part_trailer: PartTrailer) -> bytes:
    return _join(
        PART_KEYWORD,
        [f"begin={part_trailer.begin_offset}", f"end={part_trailer.end_offset}"],
    )


def format_end(trailer: Trailer) -> bytes:
    fields = [f"size={trailer.size}"]
    if trailer.part is not None:
        fields.append(f"part={trailer.part}")
    if trailer.part_crc32 is not None:
        fields.append(f"pcrc32={trailer.part_crc32:08x}")
    if trailer.crc32 is not None:
        fields.append(f"crc32={trailer.crc32:08x}")
    return _join(END_KEYWORD, fields)


def parse_begin(line: LineInput) -> Header:
    """
    Parse a ``=ybegin`` line.

    Keys may appear in any order; ``name`` is everything after the first
    `` name=`` up to the end of the line, so it may hold spaces and ``=``.

    Args:
        line: The header line.

    Returns:
        Parsed Header.

    Raises:
        FormatError: If the line is not a begin line or lacks size or name.
    """
    text, fields, name = _split_fields(line, BEGIN_KEYWORD, with_name=True)
    if name is None:
        raise FormatError("Missing name in =ybegin line", text)
    total_size = _int_field(fields, "size", text)
    return Header(
        total_size=total_size,
        name=name,
        line_length=_int_field(fields, "line", text, required=False),
        part=_int_field(fields, "part", text, required=False),
        total_parts=_int_field(fields, "total", text, required=False),
    )


def parse_part(line: LineInput) -> PartTrailer:
    text, fields, _ = _split_fields(line, PART_KEYWORD)
    return PartTrailer(
        begin_offset=_int_field(fields, "begin", text),
        end_offset=_int_field(fields, "end", text),
    )


def parse_end(line: LineInput) -> Trailer:
    text, fields, _ = _split_fields(line, END_KEYWORD)
    return Trailer(
        size=_int_field(fields, "size", text),
        part=_int_field(fields, "part", text, required=False),
        part_crc32=_hex_field(fields, "pcrc32", text),
        crc32=_hex_field(fields, "crc32", text),
    )


def _join(keyword: str, fields) -> bytes:
    return " ".join([keyword, *fields]).encode("utf-8") + b"\r\n"


def _text(line: LineInput) -> str:
    if isinstance(line, (bytes, bytearray)):
        line = bytes(line).decode("utf-8", errors="replace")
    return line.rstrip("\r\n")


def _split_fields(
    line: LineInput, keyword: str, with_name: bool = False
) -> Tuple[str, Dict[str, str], Optional[str]]:
    text = _text(line)
    if text != keyword and not text.startswith(keyword + " "):
        raise FormatError(f"Expected {keyword} line", text)
    rest = text[len(keyword):]
    name = None
    if with_name:
        index = rest.find(_NAME_MARKER)
        if index >= 0:
            name = rest[index + len(_NAME_MARKER):]
            rest = rest[:index]
    fields: Dict[str, str] = {}
    for token in rest.split():
        key, sep, value = token.partition("=")
        if not sep or not key:
            logger.debug("Skipping token %r in %s line", token, keyword)
            continue
        fields[key.lower()] = value
    return text, fields, name


def _int_field(
    fields: Dict[str, str], key: str, text: str, required: bool = True
) -> Optional[int]:
    value = fields.get(key)
    if value is None:
        if required:
            raise FormatError(f"Missing {key}", text)
        return None
    if not _INT_RE.fullmatch(value):
        raise FormatError(f"Invalid value for {key}", text)
    return int(value)


def _hex_field(fields: Dict[str, str], key: str, text: str) -> Optional[int]:
    value = fields.get(key)
    if value is None:
        return None
    if not _HEX_RE.fullmatch(value):
        raise FormatError(f"Invalid checksum for {key}", text)
    return int(value, 16)
