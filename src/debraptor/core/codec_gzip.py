from __future__ import annotations

import zlib
from typing import Any

from debraptor.core.codec_base import Codec
from debraptor.errors import InvalidLevel

# zlib wbits for a gzip wrapper (header + CRC32/ISIZE trailer) instead of a zlib one.
GZIP_WBITS = 16 + zlib.MAX_WBITS


class CodecGzip(Codec):
    """gzip/DEFLATE member codec (no external deps).

    The header is written by zlib with mtime=0 and no file name, so the same
    tar always compresses to the same bytes.
    """

    codec_id = "gzip"
    suffix = "gz"
    errors = (zlib.error,)

    def __init__(self, level: int = 9):
        if not (0 <= level <= 9):
            raise InvalidLevel(self.codec_id, level, 0, 9)
        self.level = level

    def compressor(self) -> Any:
        return zlib.compressobj(self.level, zlib.DEFLATED, GZIP_WBITS)

    def decompressor(self) -> Any:
        return zlib.decompressobj(GZIP_WBITS)
