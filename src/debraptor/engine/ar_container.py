"""Outer ``ar`` container of a .deb.

Layout (stable)
---------------
  !<arch>\\n
  debian-binary          "2.0\\n"
  control.tar[.<suffix>] compressed tar: control file + maintainer scripts
  data.tar[.<suffix>]    compressed tar: payload tree

Read: members are identified by name (exact name for the version marker,
prefix for control/data), not by position. Unknown members are ignored;
duplicates keep the first occurrence.

Write: an ar header declares the member size before its bytes, so members are
handed over fully compressed. Order is always marker, control, data.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import BinaryIO, Final

import arpy

from debraptor.core.compression import CompressionScheme, detect
from debraptor.errors import CorruptContainer, IoFailure, MissingPart

logger = logging.getLogger(__name__)

AR_MAGIC: Final[bytes] = b"!<arch>\n"
AR_HEADER_LEN: Final[int] = 60
AR_NAME_MAX: Final[int] = 16

DEBIAN_BINARY: Final[str] = "debian-binary"
CONTROL_STEM: Final[str] = "control.tar"
DATA_STEM: Final[str] = "data.tar"

# Role names reported by MissingPart.
ROLE_VERSION: Final[str] = "debian-binary"
ROLE_CONTROL: Final[str] = "control"
ROLE_DATA: Final[str] = "data"


@dataclass(frozen=True)
class Member:
    """One compressed tar member, still in its on-disk encoding."""

    name: str
    payload: bytes
    scheme: CompressionScheme

    def open(self) -> BinaryIO:
        return io.BytesIO(self.payload)


@dataclass(frozen=True)
class DebMembers:
    version: str
    control: Member
    data: Member


def _classify(name: str) -> str | None:
    if name == DEBIAN_BINARY:
        return ROLE_VERSION
    if name.startswith(CONTROL_STEM):
        return ROLE_CONTROL
    if name.startswith(DATA_STEM):
        return ROLE_DATA
    return None


def iter_ar_members(blob: bytes) -> Iterator[tuple[str, bytes]]:
    """Yield (name, content) for every member, in archive order."""
    try:
        ar = arpy.Archive(fileobj=io.BytesIO(blob))
    except arpy.ArchiveFormatError as e:
        raise CorruptContainer(f"not an ar archive: {e}") from e

    try:
        for f in ar:
            name = f.header.name.decode("utf-8", errors="replace").rstrip().rstrip("/")
            size = int(f.header.size)
            content = f.read()
            if len(content) != size:
                raise CorruptContainer(
                    f"ar member {name!r} truncated: got={len(content)} expected={size}"
                )
            yield name, content
    except (arpy.ArchiveFormatError, arpy.ArchiveAccessError) as e:
        raise CorruptContainer(f"invalid ar archive: {e}") from e
    finally:
        ar.close()


def read_deb_members(blob: bytes) -> DebMembers:
    """Split a .deb into its three roles.

    Raises MissingPart naming the first role (marker, control, data) that was
    never seen after the whole archive has been scanned.
    """
    version: str | None = None
    control: Member | None = None
    data: Member | None = None

    for name, content in iter_ar_members(blob):
        role = _classify(name)
        if role is None:
            logger.warning("ignoring unknown ar member %r", name)
            continue

        if role == ROLE_VERSION:
            if version is not None:
                logger.warning("duplicate %s member ignored", name)
                continue
            version = content.decode("utf-8", errors="replace").rstrip()
        elif role == ROLE_CONTROL:
            if control is not None:
                logger.warning("duplicate control member %r ignored", name)
                continue
            control = Member(name=name, payload=content, scheme=detect(name))
        else:
            if data is not None:
                logger.warning("duplicate data member %r ignored", name)
                continue
            data = Member(name=name, payload=content, scheme=detect(name))
        logger.debug("ar member %r -> %s (%d bytes)", name, role, len(content))

    if version is None:
        raise MissingPart(ROLE_VERSION)
    if control is None:
        raise MissingPart(ROLE_CONTROL)
    if data is None:
        raise MissingPart(ROLE_DATA)
    return DebMembers(version=version, control=control, data=data)


# -------------------
# Writer
# -------------------
def member_header(name: str, size: int, *, mtime: int = 0, mode: int = 0o100644) -> bytes:
    """Common ar header: name/mtime/uid/gid/mode/size, space padded, terminated by '`\\n'."""
    name_b = name.encode("ascii")
    if len(name_b) > AR_NAME_MAX:
        raise ValueError(f"ar member name too long (max {AR_NAME_MAX} bytes): {name!r}")
    if size < 0 or size > 9_999_999_999:
        raise ValueError(f"ar member size out of range: {size}")

    header = (
        name_b.ljust(16)
        + str(int(mtime)).encode("ascii").ljust(12)
        + b"0".ljust(6)
        + b"0".ljust(6)
        + f"{mode:o}".encode("ascii").ljust(8)
        + str(int(size)).encode("ascii").ljust(10)
        + b"`\n"
    )
    if len(header) != AR_HEADER_LEN:
        raise ValueError(f"ar header for {name!r} is {len(header)} bytes, expected {AR_HEADER_LEN}")
    return header


def write_ar_members(
    out: BinaryIO, members: Iterable[tuple[str, bytes]], *, mtime: int = 0
) -> int:
    """Write a complete ar archive to ``out``. Returns the number of bytes written."""
    written = 0
    try:
        out.write(AR_MAGIC)
        written += len(AR_MAGIC)
        for name, content in members:
            out.write(member_header(name, len(content), mtime=mtime))
            out.write(content)
            written += AR_HEADER_LEN + len(content)
            if len(content) % 2 == 1:
                out.write(b"\n")
                written += 1
        out.flush()
    except OSError as e:
        raise IoFailure(f"write failed: {e}") from e
    return written
