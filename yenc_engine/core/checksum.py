"""Incremental CRC32 over raw payload bytes."""

from __future__ import annotations

import zlib
from typing import Union


class Crc32:
    """
    Running CRC32 (reflected polynomial 0xEDB88320, init and final xor 0xFFFFFFFF).

    Keeps track of the number of bytes seen so the decoder can compare it with
    the declared size.
    """

    def __init__(self) -> None:
        self._crc = 0
        self.num_bytes = 0

    def update(self, data: Union[bytes, bytearray, memoryview, int]) -> "Crc32":
        if isinstance(data, int):
            data = bytes((data,))
        self._crc = zlib.crc32(data, self._crc)
        self.num_bytes += len(data)
        return self

    @property
    def value(self) -> int:
        return self._crc & 0xFFFFFFFF

    def hexdigest(self) -> str:
        return f"{self.value:08x}"


def crc32_bytes(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF
