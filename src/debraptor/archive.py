"""Archive orchestrator: parse / pack / write.

Ownership
---------
- A parsed ``DebArchive`` owns the *compressed* member bytes. Every read
  (control, file listing, unpack) opens a fresh decompressing stream over
  them, so the data tar is never held decompressed.
- A ``PendingArchive`` (result of ``pack``) owns two *uncompressed* tar
  buffers. Compression is chosen only at ``write`` time.

Asymmetry: streaming on read, buffered then length-prefixed on write (an ar
header must state the member size before the member bytes).
"""

from __future__ import annotations

import io
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Final

from debraptor.control import ControlFile
from debraptor.core.compression import CompressionScheme, compress, decompress, member_name
from debraptor.core.stream import read_all
from debraptor.engine.ar_container import (
    CONTROL_STEM,
    DATA_STEM,
    DEBIAN_BINARY,
    Member,
    read_deb_members,
    write_ar_members,
)
from debraptor.engine.tar_layer import build_tar, extract_all, find_control, list_paths
from debraptor.errors import IoFailure

logger = logging.getLogger(__name__)

VERSION_MARKER: Final[str] = "2.0\n"

# Reproducible builds convention: pin ar member mtimes when set.
ENV_SOURCE_DATE_EPOCH: Final[str] = "SOURCE_DATE_EPOCH"


@dataclass
class DebArchive:
    """A parsed .deb. Not shared: each ``parse`` call returns its own instance."""

    version: str
    control_member: Member
    data_member: Member
    _control: ControlFile | None = field(default=None, init=False, repr=False, compare=False)

    def open_control_tar(self) -> BinaryIO:
        return decompress(self.control_member.scheme, self.control_member.open())

    def open_data_tar(self) -> BinaryIO:
        return decompress(self.data_member.scheme, self.data_member.open())

    def control(self) -> ControlFile:
        """The parsed ``control`` entry (computed once, then cached)."""
        if self._control is None:
            raw = find_control(self.open_control_tar(), where=self.control_member.name)
            self._control = ControlFile.parse(raw)
        return self._control

    def control_member_names(self) -> list[str]:
        """Entries of the control tar (control file, maintainer scripts, md5sums, ...)."""
        return list_paths(self.open_control_tar(), where=self.control_member.name)

    def list_files(self) -> list[str]:
        """Data tar manifest, in archive order."""
        return list_paths(self.open_data_tar(), where=self.data_member.name)

    def unpack(self, destination: str | os.PathLike[str]) -> int:
        """Extract the data tar under ``destination``. Returns the entry count."""
        n = extract_all(self.open_data_tar(), Path(destination), where=self.data_member.name)
        logger.info("unpacked %d entries to %s", n, destination)
        return n


@dataclass(frozen=True)
class PendingArchive:
    """A .deb to be written: version marker plus two uncompressed tars."""

    version_marker: str
    control_tar: bytes
    data_tar: bytes

    def write(
        self,
        destination: str | os.PathLike[str] | BinaryIO,
        scheme: CompressionScheme,
        *,
        level: int | None = None,
        mtime: int | None = None,
    ) -> int:
        return write(self, destination, scheme, level=level, mtime=mtime)


def parse(blob: bytes) -> DebArchive:
    """Parse a .deb held in memory. Pure function of its input."""
    members = read_deb_members(bytes(blob))
    logger.debug(
        "parsed deb: version=%r control=%s data=%s",
        members.version,
        members.control.name,
        members.data.name,
    )
    return DebArchive(
        version=members.version,
        control_member=members.control,
        data_member=members.data,
    )


def parse_file(path: str | os.PathLike[str]) -> DebArchive:
    try:
        blob = Path(path).read_bytes()
    except OSError as e:
        raise IoFailure(f"cannot read {path}: {e}") from e
    return parse(blob)


def _tar_of(root: str | os.PathLike[str]) -> bytes:
    buf = io.BytesIO()
    build_tar(Path(root), buf)
    return buf.getvalue()


def pack(
    control_dir: str | os.PathLike[str], data_dir: str | os.PathLike[str]
) -> PendingArchive:
    """Build both tar trees. No compression is chosen here."""
    control_tar = _tar_of(control_dir)
    data_tar = _tar_of(data_dir)
    logger.debug(
        "packed: control.tar=%d bytes data.tar=%d bytes", len(control_tar), len(data_tar)
    )
    return PendingArchive(version_marker=VERSION_MARKER, control_tar=control_tar, data_tar=data_tar)


def default_mtime() -> int:
    v = os.getenv(ENV_SOURCE_DATE_EPOCH)
    if v is not None:
        try:
            return int(v.strip())
        except ValueError:
            logger.warning("ignoring invalid %s=%r", ENV_SOURCE_DATE_EPOCH, v)
    return int(time.time())


def _compress_fully(scheme: CompressionScheme, raw: bytes, level: int | None) -> bytes:
    return read_all(compress(scheme, io.BytesIO(raw), level=level))


def write(
    archive: PendingArchive,
    destination: str | os.PathLike[str] | BinaryIO,
    scheme: CompressionScheme,
    *,
    level: int | None = None,
    mtime: int | None = None,
) -> int:
    """Compress both tars and emit marker, control, data. Returns bytes written."""
    control_blob = _compress_fully(scheme, archive.control_tar, level)
    data_blob = _compress_fully(scheme, archive.data_tar, level)
    members = [
        (DEBIAN_BINARY, archive.version_marker.encode("utf-8")),
        (member_name(CONTROL_STEM, scheme), control_blob),
        (member_name(DATA_STEM, scheme), data_blob),
    ]
    ts = default_mtime() if mtime is None else int(mtime)
    logger.debug(
        "write: scheme=%s control=%d->%d data=%d->%d",
        scheme,
        len(archive.control_tar),
        len(control_blob),
        len(archive.data_tar),
        len(data_blob),
    )

    if hasattr(destination, "write"):
        return write_ar_members(destination, members, mtime=ts)  # type: ignore[arg-type]

    out_path = Path(destination)  # type: ignore[arg-type]
    try:
        with out_path.open("wb") as fp:
            n = write_ar_members(fp, members, mtime=ts)
    except OSError as e:
        raise IoFailure(f"cannot write {out_path}: {e}") from e
    logger.info("wrote %s (%d bytes, %s)", out_path, n, scheme)
    return n
