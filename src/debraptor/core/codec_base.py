from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import Any, BinaryIO

from debraptor.core.stream import (
    CompressingReader,
    DecompressingReader,
    buffered,
    read_all,
)


class Codec(ABC):
    """
    Minimal interface for the member codecs.

    A codec only has to provide incremental compressor/decompressor objects;
    the stream adapters and the bytes helpers are shared.

    NOTE: the bytes helpers exist for small payloads and tests. The archive
    layer always goes through the ``*_stream`` methods.
    """

    codec_id: str
    suffix: str
    errors: tuple[type[BaseException], ...] = ()

    @abstractmethod
    def compressor(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def decompressor(self) -> Any:
        raise NotImplementedError

    def compress_stream(self, source: BinaryIO) -> BinaryIO:
        return buffered(
            CompressingReader(
                source, self.compressor(), codec_id=self.codec_id, errors=self.errors
            )
        )

    def decompress_stream(self, source: BinaryIO) -> BinaryIO:
        return buffered(
            DecompressingReader(
                source, self.decompressor, codec_id=self.codec_id, errors=self.errors
            )
        )

    def compress(self, data: bytes) -> bytes:
        return read_all(self.compress_stream(io.BytesIO(bytes(data))))

    def decompress(self, data: bytes) -> bytes:
        return read_all(self.decompress_stream(io.BytesIO(bytes(data))))
