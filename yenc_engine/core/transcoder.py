"""Per-byte yEnc transform and escaping."""

from ..common.constants import (
    BYTE_OFFSET,
    CRITICAL_BYTES,
    DOT,
    EDGE_BYTES,
    ESCAPE,
    ESCAPE_OFFSET,
)


def shift(byte: int) -> int:
    """Apply the +42 transform to a raw byte."""
    return (byte + BYTE_OFFSET) & 0xFF


def escape(value: int) -> bytes:
    """Build the two-byte escape pair for an already shifted value."""
    return bytes((ESCAPE, (value + ESCAPE_OFFSET) & 0xFF))


def is_critical(value: int) -> bool:
    """Whether a shifted value must be escaped regardless of position."""
    return value in CRITICAL_BYTES


def encode_byte(byte: int) -> bytes:
    """
    Encode one raw byte, ignoring line position.

    Args:
        byte: Raw byte value.

    Returns:
        One literal byte, or an escape pair for critical output.
    """
    value = shift(byte)
    if is_critical(value):
        return escape(value)
    return bytes((value,))


def decode_byte(value: int) -> int:
    """Decode a literal (non-escaped) body byte."""
    return (value - BYTE_OFFSET) & 0xFF


def decode_escaped(value: int) -> int:
    """Decode the byte following an escape marker."""
    return (value - ESCAPE_OFFSET - BYTE_OFFSET) & 0xFF


def is_expected_escape(value: int) -> bool:
    """
    Whether an escaped byte is one an encoder would have produced.

    Args:
        value: The byte following an escape marker.
    """
    unescaped = (value - ESCAPE_OFFSET) & 0xFF
    return unescaped in CRITICAL_BYTES or unescaped in EDGE_BYTES or unescaped == DOT
