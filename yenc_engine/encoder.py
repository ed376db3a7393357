"""Encode workflow: raw byte stream to framed yEnc blocks."""

from __future__ import annotations

import enum
import logging
from typing import BinaryIO, Callable, List, Optional

from .common.constants import DEFAULT_LINE_LENGTH
from .common.types import EncodeOptions, Header, PartRange, Trailer
from .core.checksum import Crc32
from .core.headers import format_begin, format_end, format_part
from .core.parts import count_parts, part_range, plan_parts
from .core.wrapper import LineCursor, encode_chunk, finish_line
from .utils import ConfigurationError, YencError, get_io_buffer_size

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, Optional[str]], None]


class EncoderState(enum.Enum):
    START = "start"
    HEADER_WRITTEN = "header_written"
    BODY_STREAMING = "body_streaming"
    FINALIZED = "finalized"


class Encoder:
    """
    Writes one block: header, wrapped body and trailer.

    The encoder owns its line cursor and checksum, so separate instances can
    run on separate threads.
    """

    def __init__(
        self,
        sink: BinaryIO,
        name: str,
        total_size: int,
        options: Optional[EncodeOptions] = None,
    ) -> None:
        options = options or EncodeOptions()
        options.validate()
        if total_size < 0:
            raise ConfigurationError("total_size must be non-negative.")
        if "\r" in name or "\n" in name:
            raise ConfigurationError("Name must not contain line breaks.")

        self.part_range: Optional[PartRange] = None
        block_size = total_size
        if options.is_multipart:
            expected = count_parts(total_size, options.part_size)
            if expected != options.total_parts:
                raise ConfigurationError(
                    f"total_parts={options.total_parts} does not match {expected} parts "
                    f"of {options.part_size} bytes for {total_size} bytes."
                )
            self.part_range = part_range(options.part, total_size, options.part_size)
            block_size = self.part_range.size

        self.name = name
        self.total_size = total_size
        self.options = options
        self.block_size = block_size
        self.state = EncoderState.START
        self._sink = sink
        self._cursor = LineCursor()
        self._checksum = Crc32()

    @property
    def remaining(self) -> int:
        return self.block_size - self._checksum.num_bytes

    @property
    def is_final_part(self) -> bool:
        return self.options.part == self.options.total_parts

    def write_header(self) -> None:
        self._require(EncoderState.START)
        header = Header(
            total_size=self.total_size,
            name=self.name,
            line_length=self.options.line_length,
            part=self.options.part,
            total_parts=self.options.total_parts,
        )
        logger.debug(
            "Encoding %s part=%s total=%s (%s bytes)",
            self.name,
            header.part,
            header.total_parts,
            self.block_size,
        )
        self._sink.write(format_begin(header))
        if self.part_range is not None:
            self._sink.write(format_part(self.part_range.to_part_trailer()))
        self.state = EncoderState.HEADER_WRITTEN

    def write(self, data: bytes) -> None:
        """
        Encode raw bytes of this block.

        Args:
            data: Next raw bytes of the block.

        Raises:
            YencError: If called out of order or past the block size.
        """
        if self.state is EncoderState.HEADER_WRITTEN:
            self.state = EncoderState.BODY_STREAMING
        self._require(EncoderState.BODY_STREAMING)
        if len(data) > self.remaining:
            raise YencError(
                f"Block holds {self.block_size} bytes; got {len(data)} more "
                f"with {self.remaining} remaining."
            )
        self._checksum.update(data)
        encoded, self._cursor = encode_chunk(
            data, self._cursor, self.options.line_length, self.options.dot_stuff
        )
        if encoded:
            self._sink.write(encoded)

    def finalize(self, whole_crc32: Optional[int] = None) -> Trailer:
        """
        Close the body and write the trailer.

        Args:
            whole_crc32: Checksum of the whole payload; written only on the
                final part of a multi-part payload.

        Returns:
            The trailer that was written.
        """
        if self.state is EncoderState.HEADER_WRITTEN:
            self.state = EncoderState.BODY_STREAMING
        self._require(EncoderState.BODY_STREAMING)
        if self.remaining:
            raise YencError(
                f"Source ended after {self._checksum.num_bytes} of {self.block_size} bytes."
            )
        self._sink.write(finish_line(self._cursor))
        self._cursor = LineCursor()

        if self.options.is_multipart:
            trailer = Trailer(
                size=self._checksum.num_bytes,
                part=self.options.part,
                part_crc32=self._checksum.value,
                crc32=whole_crc32 if self.is_final_part else None,
            )
        else:
            trailer = Trailer(size=self._checksum.num_bytes, crc32=self._checksum.value)
        self._sink.write(format_end(trailer))
        logger.debug("Finished %s part=%s crc=%s", self.name, trailer.part, self._checksum.hexdigest())
        self.state = EncoderState.FINALIZED
        return trailer

    def _require(self, expected: EncoderState) -> None:
        if self.state is not expected:
            raise YencError(
                f"Encoder is in state {self.state.value}, expected {expected.value}."
            )


def encode(
    source: BinaryIO,
    sink: BinaryIO,
    name: str,
    total_size: Optional[int] = None,
    options: Optional[EncodeOptions] = None,
    buffer_size: Optional[int] = None,
) -> Trailer:
    """
    Encode one block from a byte stream.

    For a part of a multi-part payload the source holds the whole payload,
    starting at its current position; a seekable source is positioned at the
    part's offset from there, and for the final part it is read once more to
    compute the whole-payload checksum.

    Args:
        source: Readable binary stream.
        sink: Writable binary stream.
        name: Logical file name for the header.
        total_size: Size of the whole payload; taken from a seekable source
            when omitted.
        options: Encoding options.
        buffer_size: Read size; defaults to ``IO_BUFFER_SIZE``.

    Returns:
        The trailer written for the block.
    """
    if total_size is None:
        total_size = _stream_size(source)
    encoder = Encoder(sink, name, total_size, options)
    buffer_size = buffer_size or get_io_buffer_size()

    whole_crc32 = None
    if encoder.part_range is not None and _is_seekable(source):
        start = source.tell()
        if encoder.is_final_part:
            whole_crc32 = _checksum_stream(source, start, total_size, buffer_size)
        source.seek(start + encoder.part_range.offset)

    encoder.write_header()
    _pump(source, encoder, buffer_size)
    return encoder.finalize(whole_crc32)


def encode_parts(
    source: BinaryIO,
    sink: BinaryIO,
    name: str,
    part_size: int,
    total_size: Optional[int] = None,
    line_length: int = DEFAULT_LINE_LENGTH,
    progress_callback: Optional[ProgressCallback] = None,
    dot_stuff: bool = False,
    buffer_size: Optional[int] = None,
) -> List[Trailer]:
    """
    Encode a whole payload as consecutive part blocks in one sink.

    The source is read once, front to back. The final block carries the
    checksum of the whole payload.

    Args:
        source: Readable binary stream positioned at the payload start.
        sink: Writable binary stream.
        name: Logical file name for the headers.
        part_size: Maximum raw bytes per part.
        total_size: Size of the whole payload; taken from a seekable source
            when omitted.
        line_length: Maximum bytes per body line.
        progress_callback: Called with (part, total_parts, name) after each part.
        dot_stuff: Double a dot that opens a body line.
        buffer_size: Read size; defaults to ``IO_BUFFER_SIZE``.

    Returns:
        Trailers written, one per part.
    """
    if total_size is None:
        total_size = _stream_size(source)
    buffer_size = buffer_size or get_io_buffer_size()
    ranges = plan_parts(total_size, part_size)
    if not ranges:
        options = EncodeOptions(line_length=line_length, dot_stuff=dot_stuff)
        return [encode(source, sink, name, total_size, options, buffer_size)]

    whole = Crc32()
    trailers: List[Trailer] = []
    for planned in ranges:
        options = EncodeOptions(
            line_length=line_length,
            part=planned.number,
            total_parts=len(ranges),
            part_size=part_size,
            dot_stuff=dot_stuff,
        )
        encoder = Encoder(sink, name, total_size, options)
        encoder.write_header()
        _pump(source, encoder, buffer_size, whole)
        trailers.append(encoder.finalize(whole.value))
        if progress_callback:
            progress_callback(planned.number, len(ranges), name)
    return trailers


def _pump(
    source: BinaryIO, encoder: Encoder, buffer_size: int, whole: Optional[Crc32] = None
) -> None:
    while encoder.remaining:
        chunk = source.read(min(buffer_size, encoder.remaining))
        if not chunk:
            break
        if whole is not None:
            whole.update(chunk)
        encoder.write(chunk)


def _is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())


def _stream_size(stream: BinaryIO) -> int:
    if not _is_seekable(stream):
        raise ConfigurationError("total_size is required for a non-seekable source.")
    position = stream.tell()
    end = stream.seek(0, 2)
    stream.seek(position)
    return end - position


def _checksum_stream(stream: BinaryIO, start: int, total_size: int, buffer_size: int) -> int:
    checksum = Crc32()
    stream.seek(start)
    while checksum.num_bytes < total_size:
        chunk = stream.read(min(buffer_size, total_size - checksum.num_bytes))
        if not chunk:
            break
        checksum.update(chunk)
    return checksum.value
