from __future__ import annotations

import lzma

from debraptor.core.codec_base import Codec
from debraptor.errors import InvalidLevel


class CodecXz(Codec):
    """LZMA member codec, always in the .xz container format."""

    codec_id = "xz"
    suffix = "xz"
    errors = (lzma.LZMAError,)

    def __init__(self, level: int = 6):
        if not (0 <= level <= 9):
            raise InvalidLevel(self.codec_id, level, 0, 9)
        self.level = level

    def compressor(self) -> lzma.LZMACompressor:
        return lzma.LZMACompressor(format=lzma.FORMAT_XZ, check=lzma.CHECK_CRC64, preset=self.level)

    def decompressor(self) -> lzma.LZMADecompressor:
        return lzma.LZMADecompressor(format=lzma.FORMAT_XZ)
