from __future__ import annotations

import gzip
import io
import os

import pytest

from debraptor.core.compression import (
    CompressionScheme,
    codec_for,
    compress,
    decompress,
    detect,
    member_name,
    scheme_from_name,
)
from debraptor.core.codec_base import Codec
from debraptor.core.stream import read_all
from debraptor.errors import CompressionError, DebRaptorError, InvalidCompression, InvalidLevel

pytestmark = pytest.mark.p0

ALL_SCHEMES = [
    CompressionScheme.NONE,
    CompressionScheme.GZIP,
    CompressionScheme.BZIP2,
    CompressionScheme.XZ,
    CompressionScheme.ZSTD,
]
COMPRESSED = [s for s in ALL_SCHEMES if s is not CompressionScheme.NONE]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("data.tar.gz", CompressionScheme.GZIP),
        ("control.tar.bz2", CompressionScheme.BZIP2),
        ("data.tar.xz", CompressionScheme.XZ),
        ("data.tar.zst", CompressionScheme.ZSTD),
        ("zstd", CompressionScheme.ZSTD),
        ("  DATA.TAR.XZ \n", CompressionScheme.XZ),
        ("control.tar", CompressionScheme.NONE),
        ("gz", CompressionScheme.GZIP),
    ],
)
def test_detect_by_suffix(name: str, expected: CompressionScheme) -> None:
    assert detect(name) is expected


@pytest.mark.parametrize("name", ["data.tar.lzma", "data.tar.Z", "", "   ", "control.tar.gzip"])
def test_detect_unknown_suffix_is_an_error(name: str) -> None:
    with pytest.raises(InvalidCompression) as ei:
        detect(name)
    assert ei.value.suffix == name


def test_canonical_suffixes_and_member_names() -> None:
    assert [s.suffix for s in COMPRESSED] == ["gz", "bz2", "xz", "zst"]
    assert member_name("control.tar", CompressionScheme.XZ) == "control.tar.xz"
    assert member_name("data.tar", CompressionScheme.ZSTD) == "data.tar.zst"
    assert member_name("data.tar", CompressionScheme.NONE) == "data.tar"
    for s in COMPRESSED:
        assert detect(member_name("data.tar", s)) is s


@pytest.mark.parametrize("scheme", ALL_SCHEMES, ids=str)
def test_codec_roundtrip(scheme: CompressionScheme) -> None:
    payload = b"HELLO deb\n" * 500 + os.urandom(3000) + b""
    codec = codec_for(scheme)
    assert codec.decompress(codec.compress(payload)) == payload

    # stream API, tiny reads on the consumer side
    c = compress(scheme, io.BytesIO(payload))
    blob = bytearray()
    while True:
        b = c.read(7)
        if not b:
            break
        blob += b
    d = decompress(scheme, io.BytesIO(bytes(blob)))
    assert read_all(d, chunk_size=13) == payload


@pytest.mark.parametrize("scheme", COMPRESSED, ids=str)
def test_empty_payload_roundtrips(scheme: CompressionScheme) -> None:
    codec = codec_for(scheme)
    blob = codec.compress(b"")
    assert blob
    assert codec.decompress(blob) == b""


def test_gzip_output_is_readable_by_stdlib_and_deterministic() -> None:
    payload = b"abc" * 1000
    codec = codec_for(CompressionScheme.GZIP)
    blob = codec.compress(payload)
    assert gzip.decompress(blob) == payload
    assert codec.compress(payload) == blob


def test_concatenated_gzip_members_are_decoded_back_to_back() -> None:
    blob = gzip.compress(b"first-") + gzip.compress(b"second")
    assert codec_for(CompressionScheme.GZIP).decompress(blob) == b"first-second"


@pytest.mark.parametrize("scheme", COMPRESSED, ids=str)
def test_truncated_stream_fails_fast(scheme: CompressionScheme) -> None:
    blob = codec_for(scheme).compress(os.urandom(20000))
    with pytest.raises(CompressionError):
        codec_for(scheme).decompress(blob[: len(blob) // 2])


@pytest.mark.parametrize("scheme", COMPRESSED, ids=str)
def test_garbage_is_a_compression_error_not_io(scheme: CompressionScheme) -> None:
    with pytest.raises(CompressionError):
        codec_for(scheme).decompress(b"definitely not a compressed stream" * 10)


@pytest.mark.parametrize("scheme", COMPRESSED, ids=str)
def test_empty_input_is_a_compression_error(scheme: CompressionScheme) -> None:
    with pytest.raises(CompressionError):
        codec_for(scheme).decompress(b"")


@pytest.mark.parametrize(
    "scheme,level",
    [
        (CompressionScheme.GZIP, 10),
        (CompressionScheme.BZIP2, 0),
        (CompressionScheme.XZ, 10),
        (CompressionScheme.ZSTD, 23),
    ],
)
def test_out_of_range_level_is_rejected(scheme: CompressionScheme, level: int) -> None:
    with pytest.raises(InvalidLevel) as ei:
        codec_for(scheme, level=level)
    assert isinstance(ei.value, ValueError)
    assert isinstance(ei.value, DebRaptorError)
    assert ei.value.level == level


def test_levels_change_output_but_not_content() -> None:
    payload = b"0123456789" * 5000
    fast = codec_for(CompressionScheme.ZSTD, level=1).compress(payload)
    slow = codec_for(CompressionScheme.ZSTD, level=19).compress(payload)
    assert codec_for(CompressionScheme.ZSTD).decompress(fast) == payload
    assert codec_for(CompressionScheme.ZSTD).decompress(slow) == payload


@pytest.mark.parametrize("scheme", ALL_SCHEMES, ids=str)
def test_every_codec_implements_the_codec_interface(scheme: CompressionScheme) -> None:
    codec = codec_for(scheme)
    assert isinstance(codec, Codec)
    assert codec.suffix == scheme.suffix


def test_raw_codec_accepts_an_empty_member() -> None:
    raw = codec_for(CompressionScheme.NONE)
    assert raw.decompress(b"") == b""
    assert raw.compress(b"tar bytes") == b"tar bytes"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("none", CompressionScheme.NONE),
        (" NONE ", CompressionScheme.NONE),
        ("zstd", CompressionScheme.ZSTD),
        ("gz", CompressionScheme.GZIP),
    ],
)
def test_scheme_from_name(name: str, expected: CompressionScheme) -> None:
    assert scheme_from_name(name) is expected


def test_scheme_from_name_unknown_is_invalid_compression() -> None:
    with pytest.raises(InvalidCompression) as ei:
        scheme_from_name("rar")
    assert ei.value.suffix == "rar"
