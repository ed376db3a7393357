"""File helpers: encoding files, decoding into an output directory, reassembly."""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional, Tuple

import aiofiles

from .common.types import (
    DecodedMeta,
    EncodeOptions,
    Header,
    PartTrailer,
    Trailer,
    Verification,
)
from .core.checksum import Crc32
from .decoder import describe_failure, iter_blocks
from .encoder import encode, encode_parts
from .utils import IntegrityError, YencError, sanitize_filename

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, Optional[str]], None]
DecodedPart = Tuple[DecodedMeta, bytes]


def encode_file(
    path: Path,
    sink: BinaryIO,
    options: Optional[EncodeOptions] = None,
    buffer_size: Optional[int] = None,
) -> Trailer:
    """
    Encode a file as one block, using its name and size for the header.

    Args:
        path: File to encode.
        sink: Writable binary stream.
        options: Encoding options; multi-part options select one part.
        buffer_size: Read size; defaults to ``IO_BUFFER_SIZE``.

    Returns:
        The trailer written.
    """
    if not path.is_file():
        raise YencError(f"File not found: {path}")
    with open(path, "rb") as infile:
        return encode(infile, sink, path.name, path.stat().st_size, options, buffer_size)


def encode_file_parts(
    path: Path,
    sink: BinaryIO,
    part_size: int,
    options: Optional[EncodeOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    buffer_size: Optional[int] = None,
) -> List[Trailer]:
    """
    Encode every part of a file as consecutive blocks in one sink.

    Args:
        path: File to encode.
        sink: Writable binary stream.
        part_size: Maximum raw bytes per part.
        options: Line length and dot-stuffing; part fields are ignored.
        progress_callback: Optional progress callback.
        buffer_size: Read size; defaults to ``IO_BUFFER_SIZE``.

    Returns:
        Trailers written, one per part.
    """
    if not path.is_file():
        raise YencError(f"File not found: {path}")
    options = options or EncodeOptions()
    with open(path, "rb") as infile:
        return encode_parts(
            infile,
            sink,
            path.name,
            part_size,
            total_size=path.stat().st_size,
            line_length=options.line_length,
            progress_callback=progress_callback,
            dot_stuff=options.dot_stuff,
            buffer_size=buffer_size,
        )


def _open_presized(target: Path, total_size: int) -> BinaryIO:
    target.parent.mkdir(parents=True, exist_ok=True)
    handle = open(target, "r+b" if target.exists() else "w+b")
    handle.truncate(total_size)
    return handle


def decode_file(path: Path, output_dir: Path, strict: bool = True) -> List[DecodedMeta]:
    """
    Decode every block of a file into ``output_dir``.

    Each block is written to the file named in its header, at the offset of
    its part, so parts decoded from several files land in the same output.

    Args:
        path: File holding one or more yEnc blocks.
        output_dir: Destination directory.
        strict: Raise IntegrityError on mismatch.

    Returns:
        DecodedMeta per block.
    """
    handles: Dict[Path, BinaryIO] = {}

    def sink_for(header: Header, part_trailer: Optional[PartTrailer]) -> BinaryIO:
        target = output_dir / sanitize_filename(header.name)
        handle = handles.get(target)
        if handle is None:
            handle = _open_presized(target, header.total_size)
            handles[target] = handle
        handle.seek(part_trailer.offset if part_trailer else 0)
        return handle

    metas: List[DecodedMeta] = []
    try:
        with open(path, "rb") as source:
            for meta in iter_blocks(source, sink_for, strict=strict):
                logger.info(
                    "Decoded %s (%s bytes at offset %s)",
                    meta.header.name,
                    meta.size,
                    meta.offset,
                )
                metas.append(meta)
    finally:
        for handle in handles.values():
            handle.close()
    return metas


def decode_to_memory(path: Path) -> List[DecodedPart]:
    """
    Decode every block of a file into memory.

    Size and checksum mismatches do not stop decoding; they are recorded in
    each block's meta so the caller can still place the delivered bytes.

    Args:
        path: File holding one or more yEnc blocks.

    Returns:
        List of (meta, decoded bytes) per block.
    """
    buffers: List[io.BytesIO] = []

    def sink_for(header: Header, part_trailer: Optional[PartTrailer]) -> BinaryIO:
        buffers.append(io.BytesIO())
        return buffers[-1]

    with open(path, "rb") as source:
        metas = list(iter_blocks(source, sink_for, strict=False))
    return [(meta, buffer.getvalue()) for meta, buffer in zip(metas, buffers)]


async def assemble_parts(
    parts: Iterable[Tuple[int, bytes]],
    output_path: Path,
    total_size: Optional[int] = None,
) -> None:
    """
    Write decoded parts at their offsets into one file.

    Args:
        parts: (zero-based offset, data) pairs.
        output_path: Destination file path.
        total_size: Size to give the output file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    mode = "r+b" if output_path.exists() else "w+b"
    async with aiofiles.open(output_path, mode) as outfile:
        if total_size is not None:
            await outfile.truncate(total_size)
        for offset, data in sorted(parts, key=lambda item: item[0]):
            await outfile.seek(offset)
            await outfile.write(data)


async def decode_files_concurrent(
    paths: List[Path],
    output_dir: Path,
    strict: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
) -> List[DecodedMeta]:
    """
    Decode several yEnc files in worker threads and reassemble their parts.

    Every part is written to its output file before any integrity failure is
    raised.

    Args:
        paths: Files holding yEnc blocks, in any order.
        output_dir: Destination directory.
        strict: Raise IntegrityError on mismatch, after assembly.
        progress_callback: Called with (done, total, path) per decoded file.

    Returns:
        DecodedMeta for every block.
    """
    tasks = [asyncio.to_thread(decode_to_memory, path) for path in paths]
    decoded: List[DecodedPart] = []
    for done, task in enumerate(asyncio.as_completed(tasks), start=1):
        decoded.extend(await task)
        if progress_callback:
            progress_callback(done, len(tasks), None)

    grouped: Dict[str, List[DecodedPart]] = {}
    for meta, data in decoded:
        grouped.setdefault(sanitize_filename(meta.header.name), []).append((meta, data))

    metas: List[DecodedMeta] = []
    for name, blocks in grouped.items():
        total_size = max(meta.header.total_size for meta, _ in blocks)
        await assemble_parts(
            [(meta.offset, data) for meta, data in blocks],
            output_dir / name,
            total_size,
        )
        logger.info("Assembled %s from %s block(s)", name, len(blocks))
        metas.extend(_verify_assembled(blocks, total_size))

    failed = [meta for meta in metas if not meta.ok]
    for meta in failed:
        logger.warning(
            "Integrity check failed for %s: %s", meta.header.name, describe_failure(meta)
        )
    if strict and failed:
        raise IntegrityError(describe_failure(failed[0]), failed[0])
    return metas


def _verify_assembled(blocks: List[DecodedPart], total_size: int) -> List[DecodedMeta]:
    """Check the whole-payload crc32 once every part is present."""
    ordered = sorted(blocks, key=lambda block: block[0].offset)
    checksum = Crc32()
    for meta, data in ordered:
        if meta.offset != checksum.num_bytes:
            return [meta for meta, _ in blocks]
        checksum.update(data)
    if checksum.num_bytes != total_size:
        return [meta for meta, _ in blocks]

    verified: List[DecodedMeta] = []
    for meta, _ in blocks:
        if meta.trailer.crc32 is not None and meta.verification is Verification.ABSENT:
            outcome = (
                Verification.MATCHED
                if meta.trailer.crc32 == checksum.value
                else Verification.MISMATCHED
            )
            meta = replace(meta, verification=outcome)
        verified.append(meta)
    return verified
