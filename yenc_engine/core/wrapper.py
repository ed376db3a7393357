"""Line layout for encoded bodies and line stripping for decoding.

Encoding threads an immutable ``LineCursor`` through every chunk. Space and
tab are only critical at the edges of a line, so a literal space/tab that
could turn out to be the last byte of a line is held back in
``LineCursor.pending`` until the next unit shows whether the line goes on.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional, Tuple

from ..common.constants import CR, DOT, EDGE_BYTES, ESCAPE, LF, LINE_ENDING, NUL
from ..utils import FormatError
from .transcoder import decode_byte, decode_escaped, escape, is_critical, is_expected_escape, shift

logger = logging.getLogger(__name__)


class LineCursor(NamedTuple):
    """Position within the current output line."""

    column: int = 0
    # shifted space/tab already counted in ``column`` but not yet written
    pending: Optional[int] = None


def _end_line(out: bytearray, pending: Optional[int]) -> None:
    if pending is not None:
        out += escape(pending)
    out += LINE_ENDING


def encode_chunk(
    data: bytes, cursor: LineCursor, line_length: int, dot_stuff: bool = False
) -> Tuple[bytes, LineCursor]:
    """
    Encode raw bytes into wrapped body bytes.

    A dot opening a line is written as ``..`` when ``dot_stuff`` is set and
    escaped otherwise, so a line never starts with a lone-looking ``..``.

    Args:
        data: Raw bytes.
        cursor: Line position left by the previous chunk.
        line_length: Maximum number of bytes per body line.
        dot_stuff: Double a leading dot the way NNTP transport expects.

    Returns:
        Tuple of (encoded bytes, cursor for the next chunk).
    """
    out = bytearray()
    column, pending = cursor
    for byte in data:
        value = shift(byte)
        edge = value in EDGE_BYTES
        width = 2 if is_critical(value) else 1
        if column and (
            column + width > line_length or (edge and column + 1 >= line_length)
        ):
            _end_line(out, pending)
            column, pending = 0, None
        if pending is not None:
            out.append(pending)
            pending = None
        if width == 2 or (edge and column == 0):
            out += escape(value)
            column += 2
        elif value == DOT and column == 0:
            out += bytes((DOT, DOT)) if dot_stuff else escape(value)
            column += 2
        elif edge:
            pending = value
            column += 1
        else:
            out.append(value)
            column += 1
        if column >= line_length:
            _end_line(out, pending)
            column, pending = 0, None
    return bytes(out), LineCursor(column, pending)


def finish_line(cursor: LineCursor) -> bytes:
    """Terminate the open line, if any."""
    if not cursor.column:
        return b""
    out = bytearray()
    _end_line(out, cursor.pending)
    return bytes(out)


class LineDecoder:
    """
    Decodes body lines back to raw bytes.

    Line terminators are dropped wherever they appear. An escape marker at the
    end of one line is completed by the first byte of the next line. A line
    opening with ``..`` was dot-stuffed and loses its first dot.
    """

    def __init__(self) -> None:
        self._escape = False
        self.unexpected_escapes = 0

    def decode(self, line: bytes) -> bytes:
        out = bytearray()
        if not self._escape and line[:2] == b"..":
            line = line[1:]
        for value in line:
            if value in (CR, LF):
                continue
            if self._escape:
                if not is_expected_escape(value):
                    self.unexpected_escapes += 1
                    logger.debug("Unexpected escape sequence =%02x", value)
                out.append(decode_escaped(value))
                self._escape = False
            elif value == ESCAPE:
                self._escape = True
            elif value == NUL:
                continue
            else:
                out.append(decode_byte(value))
        return bytes(out)

    def finish(self) -> None:
        """
        Check that the body did not end inside an escape pair.

        Raises:
            FormatError: If the last body byte is a lone escape marker.
        """
        if self._escape:
            raise FormatError("Escape marker at end of body with no following byte")
