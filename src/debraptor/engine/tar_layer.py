"""Tar layer: build a tar from a directory tree, read entries from a tar stream.

Reading always uses tarfile's streaming mode ("r|"): the decompressing reader
underneath is not seekable and the payload is never materialized. A stream is
consumed once; callers that need a second pass open a new stream from the
member bytes.

Entries are stored with an empty root (``usr/bin/tool``, no leading ``/`` or
``./``), directories included, in sorted path order.
"""

from __future__ import annotations

import logging
import tarfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, BinaryIO

from debraptor.errors import CorruptTar, DebRaptorError, IoFailure, MissingPart

logger = logging.getLogger(__name__)

CONTROL_ENTRY = "control"


@dataclass(frozen=True)
class TarEntry:
    path: str
    is_dir: bool
    size: int
    mode: int
    reader: IO[bytes] | None


@contextmanager
def tar_errors(where: str) -> Iterator[None]:
    """Translate tarfile/OS failures into debraptor errors."""
    try:
        yield
    except DebRaptorError:
        raise
    except tarfile.TarError as e:
        raise CorruptTar(f"{where}: {e}") from e
    except OSError as e:
        raise IoFailure(f"{where}: {e}") from e


def iter_tree(root: Path) -> list[Path]:
    """Every file/dir/symlink below root, sorted by relative POSIX path."""
    paths = list(Path(root).rglob("*"))
    paths.sort(key=lambda p: p.relative_to(root).as_posix())
    return paths


def _as_root_owned(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.uid = 0
    info.gid = 0
    info.uname = "root"
    info.gname = "root"
    return info


def build_tar(root: Path, out: BinaryIO) -> int:
    """Write an uncompressed tar of everything below ``root`` to ``out``.

    Returns the number of entries. Any walk/read failure aborts the build.
    """
    src = Path(root)
    if not src.is_dir():
        raise IoFailure(f"not a directory: {src}")

    count = 0
    with tar_errors(f"pack {src}"):
        with tarfile.open(fileobj=out, mode="w", format=tarfile.GNU_FORMAT) as tar:
            for p in iter_tree(src):
                rel = p.relative_to(src).as_posix()
                tar.add(p, arcname=rel, recursive=False, filter=_as_root_owned)
                count += 1
    logger.debug("tar built from %s: %d entries", src, count)
    return count


@contextmanager
def open_tar(stream: BinaryIO, *, where: str = "tar") -> Iterator[tarfile.TarFile]:
    with tar_errors(where):
        tar = tarfile.open(fileobj=stream, mode="r|")
    try:
        yield tar
    finally:
        tar.close()


def iter_entries(stream: BinaryIO, *, where: str = "tar") -> Iterator[TarEntry]:
    """Lazily yield entries. ``reader`` is only valid until the next entry is requested."""
    with open_tar(stream, where=where) as tar:
        with tar_errors(where):
            for info in tar:
                reader = tar.extractfile(info) if info.isfile() else None
                yield TarEntry(
                    path=info.name,
                    is_dir=info.isdir(),
                    size=int(info.size),
                    mode=int(info.mode),
                    reader=reader,
                )


def list_paths(stream: BinaryIO, *, where: str = "tar") -> list[str]:
    return [e.path for e in iter_entries(stream, where=where)]


def extract_all(stream: BinaryIO, destination: Path, *, where: str = "tar") -> int:
    """Materialize the whole tree under ``destination``. Returns the entry count."""
    dest = Path(destination)
    count = 0
    with open_tar(stream, where=where) as tar:
        with tar_errors(where):
            dest.mkdir(parents=True, exist_ok=True)
            # "tar" filter: refuses absolute/escaping paths, drops setuid bits
            tar.extractall(dest, filter="tar")
            count = len(tar.getmembers())
    logger.debug("extracted %d entries to %s", count, dest)
    return count


def find_control(stream: BinaryIO, *, where: str = "control.tar") -> bytes:
    """Return the bytes of the entry whose final path segment is ``control``."""
    for entry in iter_entries(stream, where=where):
        if entry.reader is not None and PurePosixPath(entry.path).name == CONTROL_ENTRY:
            with tar_errors(where):
                return entry.reader.read()
    raise MissingPart("control file")
