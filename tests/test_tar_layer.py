from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from debraptor.engine.tar_layer import build_tar, extract_all, find_control, iter_entries, list_paths
from debraptor.errors import CorruptTar, MissingPart

pytestmark = pytest.mark.p0


def _tar_with(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def test_build_tar_is_sorted_root_owned_and_relative(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "z.txt").write_text("z", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")

    buf = io.BytesIO()
    assert build_tar(tmp_path, buf) == 3

    with tarfile.open(fileobj=io.BytesIO(buf.getvalue())) as tar:
        members = tar.getmembers()
    assert [m.name for m in members] == ["a.txt", "b", "b/z.txt"]
    assert all(m.uid == 0 and m.gid == 0 and m.uname == "root" for m in members)


def test_entries_expose_content_readers() -> None:
    blob = _tar_with({"./control": b"Package: x\n", "./md5sums": b"abc  usr/x\n"})
    seen = {e.path: e.reader.read() for e in iter_entries(io.BytesIO(blob)) if e.reader}
    assert seen == {"./control": b"Package: x\n", "./md5sums": b"abc  usr/x\n"}


def test_find_control_matches_last_path_segment() -> None:
    blob = _tar_with({"./md5sums": b"", "./control": b"Package: dotted\n"})
    assert find_control(io.BytesIO(blob)) == b"Package: dotted\n"

    with pytest.raises(MissingPart):
        find_control(io.BytesIO(_tar_with({"./controls": b"nope"})))


def test_not_a_tar_stream() -> None:
    with pytest.raises(CorruptTar):
        list_paths(io.BytesIO(b"\x01" * 1024))


def test_extract_refuses_paths_outside_destination(tmp_path: Path) -> None:
    blob = _tar_with({"../escape.txt": b"evil"})
    with pytest.raises(CorruptTar):
        extract_all(io.BytesIO(blob), tmp_path / "dest")
    assert not (tmp_path / "escape.txt").exists()
