from __future__ import annotations

import bz2

from debraptor.core.codec_base import Codec
from debraptor.errors import InvalidLevel


class CodecBzip2(Codec):
    """bzip2 member codec.

    Note: BZ2Decompressor reports a corrupt stream as a plain OSError; the
    stream adapter turns it into CompressionError, so it never looks like I/O.
    """

    codec_id = "bzip2"
    suffix = "bz2"
    errors = (OSError, ValueError)

    def __init__(self, level: int = 9):
        if not (1 <= level <= 9):
            raise InvalidLevel(self.codec_id, level, 1, 9)
        self.level = level

    def compressor(self) -> bz2.BZ2Compressor:
        return bz2.BZ2Compressor(self.level)

    def decompressor(self) -> bz2.BZ2Decompressor:
        return bz2.BZ2Decompressor()
