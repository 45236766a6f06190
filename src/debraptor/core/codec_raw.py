from __future__ import annotations

from typing import BinaryIO

from debraptor.core.codec_base import Codec


class _Passthrough:
    """Incremental object that returns its input unchanged."""

    eof = False
    unused_data = b""

    def compress(self, data: bytes) -> bytes:
        return bytes(data)

    def decompress(self, data: bytes) -> bytes:
        return bytes(data)

    def flush(self) -> bytes:
        return b""


class CodecRaw(Codec):
    """
    Codec identity: bare ``control.tar`` / ``data.tar`` members.

    The stream methods hand the source back as-is; there is no framing to
    check, so an empty member is not an error here.
    """

    codec_id = "raw"
    suffix = ""

    def compressor(self) -> _Passthrough:
        return _Passthrough()

    def decompressor(self) -> _Passthrough:
        return _Passthrough()

    def compress_stream(self, source: BinaryIO) -> BinaryIO:
        return source

    def decompress_stream(self, source: BinaryIO) -> BinaryIO:
        return source
