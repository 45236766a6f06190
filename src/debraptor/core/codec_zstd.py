from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import zstandard as zstd

from debraptor.core.codec_base import Codec
from debraptor.errors import InvalidLevel


@dataclass
class CodecZstd(Codec):
    """
    Zstandard member codec.

    Frames are produced by a streaming compressobj, so they carry no content
    size; the decompressor does not need one. A checksum is written so a
    flipped byte inside the payload is caught at decode time.
    """

    level: int = 6
    codec_id: str = "zstd"
    suffix: str = "zst"
    errors: tuple[type[BaseException], ...] = (zstd.ZstdError,)

    def __post_init__(self) -> None:
        if not (1 <= int(self.level) <= 22):
            raise InvalidLevel(self.codec_id, int(self.level), 1, 22)

    def compressor(self) -> Any:
        c = zstd.ZstdCompressor(level=int(self.level), write_checksum=True)
        return c.compressobj()

    def decompressor(self) -> Any:
        return zstd.ZstdDecompressor().decompressobj()
