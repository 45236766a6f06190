"""Compression scheme detection and dispatch.

The scheme set is closed: a ``.deb`` member is either a bare tar or one of
gzip / bzip2 / xz / zstd. Detection works on the member (or file) name suffix,
case-insensitively, longest known suffix first.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import BinaryIO

from debraptor.core.codec_base import Codec
from debraptor.core.codec_bzip2 import CodecBzip2
from debraptor.core.codec_gzip import CodecGzip
from debraptor.core.codec_raw import CodecRaw
from debraptor.core.codec_xz import CodecXz
from debraptor.core.codec_zstd import CodecZstd
from debraptor.errors import InvalidCompression

logger = logging.getLogger(__name__)


class CompressionScheme(Enum):
    NONE = ""
    GZIP = "gz"
    BZIP2 = "bz2"
    XZ = "xz"
    ZSTD = "zst"

    @property
    def suffix(self) -> str:
        """Canonical suffix used when naming output members ('' for NONE)."""
        return self.value

    def __str__(self) -> str:
        return self.value or "none"


# Known suffixes, longest first. "tar" covers unsuffixed members ("data.tar").
_SUFFIXES: tuple[tuple[str, CompressionScheme], ...] = tuple(
    sorted(
        (
            ("zstd", CompressionScheme.ZSTD),
            ("zst", CompressionScheme.ZSTD),
            ("bz2", CompressionScheme.BZIP2),
            ("tar", CompressionScheme.NONE),
            ("gz", CompressionScheme.GZIP),
            ("xz", CompressionScheme.XZ),
        ),
        key=lambda kv: -len(kv[0]),
    )
)


def detect(name: str) -> CompressionScheme:
    """Detect the scheme from a name suffix ('data.tar.xz', 'xz', 'control.tar', ...).

    Raises InvalidCompression carrying the offending name when nothing matches.
    """
    s = str(name).strip().lower()
    if s:
        for suffix, scheme in _SUFFIXES:
            if s.endswith(suffix):
                return scheme
    raise InvalidCompression(str(name))


def scheme_from_name(name: str) -> CompressionScheme:
    """Resolve a user-given scheme name: a suffix ('xz', 'zstd', 'data.tar.gz', ...) or 'none'.

    Raises InvalidCompression for anything else.
    """
    if str(name).strip().lower() == "none":
        return CompressionScheme.NONE
    return detect(name)


def member_name(stem: str, scheme: CompressionScheme) -> str:
    """'control.tar' + GZIP -> 'control.tar.gz'; NONE keeps the bare stem."""
    if scheme is CompressionScheme.NONE:
        return stem
    return f"{stem}.{scheme.suffix}"


def codec_for(scheme: CompressionScheme, *, level: int | None = None) -> Codec:
    """Return the codec instance for a scheme. ``level`` None means codec default."""
    if scheme is CompressionScheme.NONE:
        return CodecRaw()
    if scheme is CompressionScheme.GZIP:
        return CodecGzip() if level is None else CodecGzip(level=int(level))
    if scheme is CompressionScheme.BZIP2:
        return CodecBzip2() if level is None else CodecBzip2(level=int(level))
    if scheme is CompressionScheme.XZ:
        return CodecXz() if level is None else CodecXz(level=int(level))
    if scheme is CompressionScheme.ZSTD:
        return CodecZstd() if level is None else CodecZstd(level=int(level))
    raise AssertionError(f"unreachable: {scheme!r}")


def compress(
    scheme: CompressionScheme, source: BinaryIO, *, level: int | None = None
) -> BinaryIO:
    """Wrap ``source`` as a compressing reader."""
    logger.debug("compress: scheme=%s level=%s", scheme, level)
    return codec_for(scheme, level=level).compress_stream(source)


def decompress(scheme: CompressionScheme, source: BinaryIO) -> BinaryIO:
    """Wrap ``source`` as a decompressing reader."""
    return codec_for(scheme).decompress_stream(source)
