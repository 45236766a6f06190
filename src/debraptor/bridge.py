"""Flat binding surface for hosts (CLI wrappers, FFI shims, other runtimes).

Pure adapter: plain values in, handles or plain values out, typed
``DebRaptorError`` subclasses on failure. No state of its own.
"""

from __future__ import annotations

from debraptor import archive
from debraptor.archive import DebArchive, PendingArchive
from debraptor.control import ControlFile, ControlValue, Flag, Number, Text, TextList
from debraptor.core.compression import CompressionScheme, scheme_from_name


# -------------------
# Archives
# -------------------
def parse_deb(deb: bytes) -> DebArchive:
    return archive.parse(deb)


def debian_binary(deb: DebArchive) -> str:
    return deb.version


def control(deb: DebArchive) -> ControlFile:
    return deb.control()


def list_files(deb: DebArchive) -> list[str]:
    return deb.list_files()


def unpack(deb: DebArchive, destination: str) -> None:
    deb.unpack(destination)


def pack(control_dir: str, data_dir: str) -> PendingArchive:
    return archive.pack(control_dir, data_dir)


def write(deb: PendingArchive, destination: str, compression: str | CompressionScheme) -> None:
    scheme = (
        compression
        if isinstance(compression, CompressionScheme)
        else scheme_from_name(compression)
    )
    archive.write(deb, destination, scheme)


# -------------------
# Control files
# -------------------
def parse_controlfile(data: bytes) -> ControlFile:
    return ControlFile.parse(data)


def parse_controlfile_multi(data: bytes) -> list[ControlFile]:
    return ControlFile.parse_multi(data)


def controlfile_to_string(cf: ControlFile) -> str:
    return cf.to_text()


def get_field(cf: ControlFile, key: str) -> ControlValue | None:
    return cf.get(key)


def set_field(cf: ControlFile, key: str, value: ControlValue | str) -> None:
    cf[key] = value


def remove_field(cf: ControlFile, key: str) -> None:
    cf.pop(key, None)


def entry_value(value: str) -> ControlValue:
    return Text(value)


def entry_multivalue(value: list[str]) -> ControlValue:
    return TextList(tuple(value))


def entry_number(value: int) -> ControlValue:
    return Number(value)


def entry_bool(value: bool) -> ControlValue:
    return Flag(bool(value))


def entry_from_yesno(value: str) -> ControlValue:
    return Flag.from_yesno(value)


def entry_from_commalist(value: str) -> ControlValue:
    return TextList.from_commalist(value)


def entry_from_number(value: str) -> ControlValue:
    return Number.from_number(value)


def entry_to_string(value: ControlValue) -> str:
    return value.render()
