"""Constants used throughout the engine."""

NUL = 0x00
TAB = 0x09
LF = 0x0A
CR = 0x0D
SPACE = 0x20
DOT = 0x2E
ESCAPE = 0x3D

# Offsets applied by the byte transform
BYTE_OFFSET = 42
ESCAPE_OFFSET = 64

# Output bytes that are always escaped
CRITICAL_BYTES = frozenset({NUL, LF, CR, ESCAPE})

# Output bytes escaped only as the first or last byte of a line
EDGE_BYTES = frozenset({TAB, SPACE})

LINE_ENDING = b"\r\n"

DEFAULT_LINE_LENGTH = 128
MIN_LINE_LENGTH = 2

BEGIN_KEYWORD = "=ybegin"
PART_KEYWORD = "=ypart"
END_KEYWORD = "=yend"
