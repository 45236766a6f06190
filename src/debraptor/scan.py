"""Package index ("Packages") generation, like dpkg-scanpackages.

For each ``*.deb`` directly inside a directory (sorted by file name):
  - parse it and take its control stanza
  - add Filename (optionally prefixed), Size, MD5sum, SHA1, SHA256
  - render all stanzas in canonical order, separated by an empty line

Parsing can run on a thread pool (``jobs > 1``); the output order does not
depend on it.
"""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from debraptor.archive import parse
from debraptor.control import ControlFile, Text, dumps_multi
from debraptor.errors import IoFailure, UsageError

logger = logging.getLogger(__name__)

DEB_SUFFIX = ".deb"


@dataclass(frozen=True)
class ScannedPackage:
    path: Path
    control: ControlFile


def _filename_field(name: str, prefix: str | None) -> str:
    if not prefix:
        return name
    return f"{prefix.rstrip('/')}/{name}"


def scan_file(path: Path, *, prefix: str | None = None) -> ScannedPackage:
    p = Path(path)
    try:
        blob = p.read_bytes()
    except OSError as e:
        raise IoFailure(f"cannot read {p}: {e}") from e

    control = ControlFile(parse(blob).control().items())
    control["Filename"] = Text(_filename_field(p.name, prefix))
    control["Size"] = Text(str(len(blob)))
    control["MD5sum"] = Text(hashlib.md5(blob, usedforsecurity=False).hexdigest())
    control["SHA1"] = Text(hashlib.sha1(blob, usedforsecurity=False).hexdigest())
    control["SHA256"] = Text(hashlib.sha256(blob).hexdigest())
    logger.debug("scanned %s (%d bytes)", p, len(blob))
    return ScannedPackage(path=p, control=control)


def find_debs(root: Path) -> list[Path]:
    r = Path(root)
    if not r.is_dir():
        raise UsageError(f"not a directory: {r}")
    debs = [p for p in r.iterdir() if p.is_file() and p.name.endswith(DEB_SUFFIX)]
    debs.sort(key=lambda p: p.name)
    return debs


def scan_directory(
    root: Path, *, prefix: str | None = None, jobs: int = 1
) -> list[ScannedPackage]:
    debs = find_debs(root)
    jobs = max(1, int(jobs))
    if jobs > 1 and len(debs) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            # map() keeps input order
            out = list(ex.map(lambda p: scan_file(p, prefix=prefix), debs))
    else:
        out = [scan_file(p, prefix=prefix) for p in debs]
    logger.info("scan: %d packages in %s", len(out), root)
    return out


def render_index(packages: list[ScannedPackage]) -> str:
    return dumps_multi(pkg.control for pkg in packages)
