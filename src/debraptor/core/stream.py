"""Pull-based stream adapters shared by every codec.

Both adapters wrap a readable binary source and an incremental (de)compressor
object, and produce bytes only as the consumer asks for them. Nothing here
ever holds the whole payload.

Compressor objects follow the ``zlib.compressobj`` shape:
  ``compress(chunk) -> bytes`` and ``flush() -> bytes``.

Decompressor objects follow the ``bz2.BZ2Decompressor`` shape:
  ``decompress(chunk) -> bytes`` plus the ``eof`` / ``unused_data`` attributes.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any, BinaryIO

from debraptor.errors import CompressionError, IoFailure

CHUNK_SIZE = 64 * 1024


def _read_source(source: BinaryIO, size: int) -> bytes:
    try:
        return source.read(size)
    except OSError as e:
        raise IoFailure(f"read failed: {e}") from e


class CompressingReader(io.RawIOBase):
    def __init__(
        self,
        source: BinaryIO,
        compressor: Any,
        *,
        codec_id: str,
        errors: tuple[type[BaseException], ...] = (),
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._source = source
        self._compressor = compressor
        self._codec_id = codec_id
        self._errors = errors
        self._chunk_size = int(chunk_size)
        self._pending = bytearray()
        self._done = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> None:
        chunk = _read_source(self._source, self._chunk_size)
        try:
            if chunk:
                self._pending += self._compressor.compress(chunk)
            else:
                self._pending += self._compressor.flush()
                self._done = True
        except self._errors as e:
            raise CompressionError(f"{self._codec_id}: compression failed: {e}") from e

    def readinto(self, b: Any) -> int:
        while not self._pending and not self._done:
            self._fill()
        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        del self._pending[:n]
        return n


class DecompressingReader(io.RawIOBase):
    """Decompress a source lazily.

    Concatenated streams (several gzip members, several zstd frames, ...) are
    decoded back to back. A source that ends in the middle of a stream fails
    with CompressionError instead of returning short data.
    """

    def __init__(
        self,
        source: BinaryIO,
        factory: Callable[[], Any],
        *,
        codec_id: str,
        errors: tuple[type[BaseException], ...] = (),
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._source = source
        self._factory = factory
        self._codec_id = codec_id
        self._errors = errors
        self._chunk_size = int(chunk_size)
        self._decompressor = factory()
        self._fed = False
        self._pending = bytearray()
        self._done = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> None:
        d = self._decompressor
        if self._fed and d.eof:
            data = bytes(d.unused_data)
            if not data:
                data = _read_source(self._source, self._chunk_size)
            if not data:
                self._done = True
                return
            d = self._decompressor = self._factory()
        else:
            data = _read_source(self._source, self._chunk_size)
            if not data:
                if not self._fed:
                    raise CompressionError(f"{self._codec_id}: empty stream")
                raise CompressionError(f"{self._codec_id}: truncated stream")
        try:
            self._pending += d.decompress(data)
        except self._errors as e:
            raise CompressionError(f"{self._codec_id}: invalid stream: {e}") from e
        self._fed = True

    def readinto(self, b: Any) -> int:
        while not self._pending and not self._done:
            self._fill()
        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        del self._pending[:n]
        return n


def buffered(raw: io.RawIOBase) -> BinaryIO:
    return io.BufferedReader(raw, buffer_size=CHUNK_SIZE)  # type: ignore[return-value]


def read_all(stream: BinaryIO, *, chunk_size: int = CHUNK_SIZE) -> bytes:
    out = bytearray()
    while True:
        b = stream.read(chunk_size)
        if not b:
            break
        out += b
    return bytes(out)
