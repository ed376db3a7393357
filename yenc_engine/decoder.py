"""Decode workflow: framed yEnc blocks back to raw bytes."""

from __future__ import annotations

import enum
import logging
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

from .common.types import DecodedMeta, Header, PartTrailer, Trailer, Verification
from .core.checksum import Crc32
from .core.headers import classify_line, parse_begin, parse_end, parse_part
from .core.parts import validate_part
from .core.wrapper import LineDecoder
from .utils import FormatError, IntegrityError

logger = logging.getLogger(__name__)

SinkFactory = Callable[[Header, Optional[PartTrailer]], BinaryIO]


class DecoderState(enum.Enum):
    EXPECT_HEADER = "expect_header"
    EXPECT_BODY = "expect_body"
    EXPECT_TRAILER = "expect_trailer"
    DONE = "done"


def _compare(declared: Optional[int], actual: int) -> Verification:
    if declared is None:
        return Verification.ABSENT
    if declared == actual:
        return Verification.MATCHED
    return Verification.MISMATCHED


class Decoder:
    """
    Decodes consecutive blocks from one stream.

    Besides the checksum of each block, the decoder keeps a running checksum
    of the whole payload while parts arrive in order from offset 1, so the
    ``crc32`` on the final part of a multi-part payload can be checked.
    """

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self.state = DecoderState.EXPECT_HEADER
        self._whole: Optional[Crc32] = None
        self._next_offset = 0
        self._open_block = False
        self._whole_key: Optional[Tuple[str, int]] = None
        self._pushed_back: Optional[bytes] = None

    def decode_block(self, source: BinaryIO, sink: BinaryIO) -> Optional[DecodedMeta]:
        """
        Decode the next block into a sink.

        Args:
            source: Readable binary stream with ``readline``.
            sink: Writable binary stream for the decoded bytes.

        Returns:
            DecodedMeta, or None when the source holds no further block.

        Raises:
            FormatError: If the block is malformed.
            IntegrityError: In strict mode, on size or checksum mismatch,
                after all decoded bytes were written.
        """
        return self.decode_block_to(source, lambda header, part_trailer: sink)

    def decode_block_to(
        self, source: BinaryIO, sink_for: SinkFactory
    ) -> Optional[DecodedMeta]:
        # a block that failed part-way leaves its remaining lines to be skipped
        resync = self._open_block
        self.state = DecoderState.EXPECT_HEADER
        line = self._read_header_line(source, resync)
        if line is None:
            self.state = DecoderState.DONE
            return None
        self._open_block = True
        header = parse_begin(line)

        part_trailer = None
        pending: Optional[bytes] = source.readline()
        if classify_line(pending) == "part":
            part_trailer = parse_part(pending)
            pending = None
        elif header.is_multipart:
            self._push_back(pending)
            raise FormatError("Multi-part block without =ypart line", line.decode("utf-8", "replace"))
        logger.debug("Decoding %s part=%s", header.name, header.part)

        offset = part_trailer.offset if part_trailer else 0
        key = (header.name, header.total_size)
        if offset == 0:
            self._whole = Crc32()
            self._whole_key = key
            self._next_offset = 0
        track_whole = (
            self._whole is not None
            and key == self._whole_key
            and offset == self._next_offset
        )

        sink = sink_for(header, part_trailer)
        self.state = DecoderState.EXPECT_BODY
        checksum = Crc32()
        line_decoder = LineDecoder()
        while True:
            line = pending if pending is not None else source.readline()
            pending = None
            if not line:
                raise FormatError("Input ended before =yend line")
            kind = classify_line(line)
            if kind == "end":
                break
            if kind is not None:
                self._push_back(line)
                raise FormatError(f"Unexpected {kind} line in body", line.decode("utf-8", "replace"))
            decoded = line_decoder.decode(line)
            if decoded:
                checksum.update(decoded)
                if track_whole:
                    self._whole.update(decoded)
                sink.write(decoded)
        line_decoder.finish()

        self.state = DecoderState.EXPECT_TRAILER
        trailer = parse_end(line)
        if track_whole:
            self._next_offset = offset + checksum.num_bytes
        else:
            self._whole = None

        meta = self._verify(
            header,
            part_trailer,
            trailer,
            checksum,
            track_whole,
            line_decoder.unexpected_escapes,
        )
        self.state = DecoderState.DONE
        self._open_block = False

        if not meta.ok:
            message = describe_failure(meta)
            logger.warning("Integrity check failed for %s: %s", header.name, message)
            if self.strict:
                raise IntegrityError(message, meta)
        return meta

    def _push_back(self, line: bytes) -> None:
        # a header met inside a broken block opens the next block
        if classify_line(line) == "begin":
            self._pushed_back = line

    def _read_header_line(self, source: BinaryIO, resync: bool) -> Optional[bytes]:
        if self._pushed_back is not None:
            line, self._pushed_back = self._pushed_back, None
            return line
        while True:
            line = source.readline()
            if not line:
                return None
            if classify_line(line) == "begin":
                return line
            if not line.strip() or resync:
                continue
            raise FormatError("Expected =ybegin line", line.decode("utf-8", "replace"))

    def _verify(
        self,
        header: Header,
        part_trailer: Optional[PartTrailer],
        trailer: Trailer,
        checksum: Crc32,
        track_whole: bool,
        unexpected_escapes: int,
    ) -> DecodedMeta:
        produced = checksum.num_bytes
        if part_trailer is not None:
            validate_part(part_trailer, produced, header.total_size)
        if (
            trailer.part is not None
            and header.part is not None
            and trailer.part != header.part
        ):
            raise FormatError(
                f"Trailer part {trailer.part} does not match header part {header.part}"
            )

        size_matches = trailer.size == produced
        if part_trailer is None and not header.is_multipart:
            size_matches = size_matches and header.total_size == produced

        part_verification = _compare(trailer.part_crc32, checksum.value)
        if part_trailer is None and not header.is_multipart:
            verification = _compare(trailer.crc32, checksum.value)
        elif (
            trailer.crc32 is not None
            and track_whole
            and self._next_offset == header.total_size
        ):
            verification = _compare(trailer.crc32, self._whole.value)
        else:
            if trailer.crc32 is not None:
                logger.debug(
                    "Cannot verify crc32 of %s: earlier parts not seen in order",
                    header.name,
                )
            verification = Verification.ABSENT

        return DecodedMeta(
            header=header,
            trailer=trailer,
            size=produced,
            crc32=checksum.value,
            part_trailer=part_trailer,
            part_verification=part_verification,
            verification=verification,
            size_matches=size_matches,
            unexpected_escapes=unexpected_escapes,
        )


def describe_failure(meta: DecodedMeta) -> str:
    """Summarize why a block failed its size or checksum checks."""
    problems: List[str] = []
    if not meta.size_matches:
        problems.append(
            f"declared size {meta.trailer.size}, decoded {meta.size} bytes"
        )
    if meta.part_verification is Verification.MISMATCHED:
        problems.append(
            f"pcrc32 declared {meta.trailer.part_crc32:08x}, computed {meta.crc32:08x}"
        )
    if meta.verification is Verification.MISMATCHED:
        problems.append(f"crc32 declared {meta.trailer.crc32:08x} does not match")
    return "; ".join(problems)


def decode(source: BinaryIO, sink: BinaryIO, strict: bool = True) -> DecodedMeta:
    """
    Decode exactly one block.

    Args:
        source: Readable binary stream.
        sink: Writable binary stream.
        strict: Raise IntegrityError on mismatch (bytes are still written).

    Returns:
        DecodedMeta for the block.
    """
    meta = Decoder(strict=strict).decode_block(source, sink)
    if meta is None:
        raise FormatError("No =ybegin line found")
    return meta


def iter_blocks(
    source: BinaryIO, sink_for: SinkFactory, strict: bool = True
) -> Iterator[DecodedMeta]:
    """
    Decode every block of a stream.

    Args:
        source: Readable binary stream.
        sink_for: Called with (header, part_trailer) to get each block's sink.
        strict: Raise IntegrityError on mismatch.

    Yields:
        DecodedMeta per block.
    """
    decoder = Decoder(strict=strict)
    while True:
        meta = decoder.decode_block_to(source, sink_for)
        if meta is None:
            return
        yield meta
