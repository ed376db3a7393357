"""yEnc binary-to-text encoding with line wrapping, multi-part framing and CRC32 checks."""

from .common.types import (
    DecodedMeta,
    EncodeOptions,
    Header,
    PartRange,
    PartTrailer,
    Trailer,
    Verification,
)
from .decoder import Decoder, decode, iter_blocks
from .encoder import Encoder, encode, encode_parts
from .utils import ConfigurationError, FormatError, IntegrityError, YencError

__version__ = "0.1.0"

__all__ = [
    "DecodedMeta",
    "EncodeOptions",
    "Header",
    "PartRange",
    "PartTrailer",
    "Trailer",
    "Verification",
    "Decoder",
    "decode",
    "iter_blocks",
    "Encoder",
    "encode",
    "encode_parts",
    "ConfigurationError",
    "FormatError",
    "IntegrityError",
    "YencError",
]
