from __future__ import annotations

from pathlib import Path

import pytest

from debraptor import bridge
from debraptor.control import Flag, Number, Text, TextList
from debraptor.core.compression import CompressionScheme
from debraptor.errors import DebRaptorError, EmptyControl, InvalidCompression, InvalidLevel


def test_bridge_pack_write_parse(tmp_path: Path) -> None:
    ctl = tmp_path / "ctl"
    data = tmp_path / "data"
    ctl.mkdir()
    (data / "srv").mkdir(parents=True)
    (ctl / "control").write_text("Package: bridged\nVersion: 0.1\n", encoding="utf-8")
    (data / "srv" / "file").write_bytes(b"payload")

    out = tmp_path / "bridged.deb"
    bridge.write(bridge.pack(str(ctl), str(data)), str(out), "zstd")

    deb = bridge.parse_deb(out.read_bytes())
    assert bridge.debian_binary(deb) == "2.0"
    assert bridge.get_field(bridge.control(deb), "Package") == Text("bridged")
    assert bridge.list_files(deb) == ["srv", "srv/file"]

    dest = tmp_path / "dest"
    bridge.unpack(deb, str(dest))
    assert (dest / "srv" / "file").read_bytes() == b"payload"


def _pending(tmp_path: Path):
    ctl = tmp_path / "ctl"
    ctl.mkdir()
    (ctl / "control").write_text("Package: x\n", encoding="utf-8")
    return bridge.pack(str(ctl), str(ctl))


def test_bridge_write_rejects_unknown_compression_with_typed_error(tmp_path: Path) -> None:
    pending = _pending(tmp_path)
    with pytest.raises(InvalidCompression) as ei:
        bridge.write(pending, str(tmp_path / "x.deb"), "rar")
    assert isinstance(ei.value, DebRaptorError)
    assert ei.value.suffix == "rar"
    assert not (tmp_path / "x.deb").exists()


def test_bridge_write_accepts_none(tmp_path: Path) -> None:
    out = tmp_path / "plain.deb"
    bridge.write(_pending(tmp_path), str(out), "none")
    deb = bridge.parse_deb(out.read_bytes())
    assert deb.data_member.name == "data.tar"


def test_out_of_range_level_is_a_typed_error(tmp_path: Path) -> None:
    pending = _pending(tmp_path)
    with pytest.raises(DebRaptorError) as ei:
        pending.write(tmp_path / "x.deb", CompressionScheme.GZIP, level=42)
    assert isinstance(ei.value, InvalidLevel)
    assert isinstance(ei.value, ValueError)


def test_bridge_controlfile_editing() -> None:
    cf = bridge.parse_controlfile(b"Package: a\nDepends: x, y\n")
    bridge.set_field(cf, "Installed-Size", bridge.entry_from_number("12"))
    bridge.set_field(cf, "Essential", bridge.entry_from_yesno("yes"))
    bridge.set_field(cf, "Version", "1.0")
    bridge.remove_field(cf, "Depends")
    bridge.remove_field(cf, "Not-There")
    assert bridge.get_field(cf, "Depends") is None
    assert bridge.controlfile_to_string(cf) == (
        "Package: a\nVersion: 1.0\nEssential: Yes\nInstalled-Size: 12\n"
    )


def test_bridge_entry_constructors() -> None:
    assert bridge.entry_value("v") == Text("v")
    assert bridge.entry_multivalue(["a", "b"]) == TextList(("a", "b"))
    assert bridge.entry_number(5) == Number(5)
    assert bridge.entry_bool(True) == Flag(True)
    assert bridge.entry_from_yesno("no") == Flag(False)
    assert bridge.entry_from_commalist("a , b") == TextList(("a", "b"))
    assert bridge.entry_from_number("junk") == Number(0)
    assert bridge.entry_to_string(TextList(("a", "b"))) == "a, b"
    assert bridge.entry_to_string(Flag(False)) == "No"


def test_bridge_multi_and_empty() -> None:
    assert len(bridge.parse_controlfile_multi(b"A: 1\n\nB: 2\n")) == 2
    with pytest.raises(EmptyControl):
        bridge.parse_controlfile(b"\n\n")
