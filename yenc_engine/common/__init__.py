"""Constants and value types shared by the engine."""

from .constants import CRITICAL_BYTES, DEFAULT_LINE_LENGTH, EDGE_BYTES, LINE_ENDING
from .types import (
    DecodedMeta,
    EncodeOptions,
    Header,
    PartRange,
    PartTrailer,
    Trailer,
    Verification,
)

__all__ = [
    "CRITICAL_BYTES",
    "DEFAULT_LINE_LENGTH",
    "EDGE_BYTES",
    "LINE_ENDING",
    "DecodedMeta",
    "EncodeOptions",
    "Header",
    "PartRange",
    "PartTrailer",
    "Trailer",
    "Verification",
]
