"""Shared utilities for the yEnc engine."""

from __future__ import annotations

import logging
import os
import re
from typing import Optional


class YencError(Exception):
    """Base exception for yEnc engine errors."""


class ConfigurationError(YencError):
    """Raised when encode options or configuration are invalid."""


ConfigError = ConfigurationError


class FormatError(YencError):
    """Raised when a block is malformed and cannot be decoded."""

    def __init__(self, message: str, line: Optional[str] = None) -> None:
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)
        self.line = line


class IntegrityError(YencError):
    """Raised when decoded data does not match the declared size or checksum.

    The decoded bytes have already been written to the sink when this is
    raised; ``meta`` holds the full decoding result.
    """

    def __init__(self, message: str, meta: object = None) -> None:
        super().__init__(message)
        self.meta = meta


DEFAULT_IO_BUFFER_SIZE = 64 * 1024


def setup_logging(log_level: int = logging.INFO) -> None:
    """
    Configure global logging.

    Args:
        log_level: Logging verbosity level.
    """
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def format_bytes(size: int) -> str:
    """
    Convert bytes to a human-readable string.

    Args:
        size: Size in bytes.

    Returns:
        Human-readable size string.
    """
    if size < 0:
        raise ValueError("Size must be non-negative.")

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} PB"


def sanitize_filename(name: str) -> str:
    """
    Reduce a header name to a safe file name.

    Args:
        name: Name taken from a ``=ybegin`` line.

    Returns:
        Sanitized filename.
    """
    name = name.strip().replace(os.sep, "_").replace("/", "_")
    name = re.sub(r"[^A-Za-z0-9._ -]+", "_", name).strip(" .")
    return name or "file"


def get_io_buffer_size() -> int:
    """
    Read the IO buffer size from the environment.

    Returns:
        Buffer size in bytes.
    """
    value = os.getenv("IO_BUFFER_SIZE", "").strip()
    if not value:
        return DEFAULT_IO_BUFFER_SIZE
    try:
        parsed = int(value)
    except ValueError:
        return DEFAULT_IO_BUFFER_SIZE
    if parsed <= 0:
        return DEFAULT_IO_BUFFER_SIZE
    return parsed
