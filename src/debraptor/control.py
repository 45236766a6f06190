"""Debian control file model.

A control file is one or more *stanzas* of ``Key: value`` lines. A value may
continue on following lines that start with a space (or tab); stanzas are
separated by empty lines.

Field typing is decided by the lowercased key:
  - ``installed-size``                       -> Number (unparsable text gives 0)
  - ``essential`` / ``build-essential``      -> Flag   (True only for exactly "yes")
  - relationship fields and ``tag``          -> TextList (comma separated, trimmed)
  - everything else                          -> Text

Serialization uses a canonical field order: identity fields first
(Package, Version, Name, Author, Maintainer, MD5sum, SHA1, SHA256), then the
rest sorted by key. Storage order is never touched.

Grammar notes:
  - An empty line ends the current stanza. A line made only of blanks
    continues the current field (as an empty line) and is skipped between
    stanzas, so values with blank lines survive a dump/parse round trip.
  - Lines starting with ``#`` are comments. They are dropped without ending the
    current field, so a value may continue after one.
  - Exactly one leading blank is stripped from continuation lines; the
    serializer adds it back.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, MutableMapping
from dataclasses import dataclass
from typing import Final, Union

from debraptor.errors import ControlSyntaxError, EmptyControl

NUMBER_FIELDS: Final[frozenset[str]] = frozenset({"installed-size"})
FLAG_FIELDS: Final[frozenset[str]] = frozenset({"essential", "build-essential"})
LIST_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "tag",
        "depends",
        "pre-depends",
        "recommends",
        "suggests",
        "enhances",
        "build-depends",
        "breaks",
        "conflicts",
        "provides",
        "replaces",
        "built-using",
    }
)

# Identity fields, emitted first and in this order.
CANONICAL_PRIORITY: Final[tuple[str, ...]] = (
    "Package",
    "Version",
    "Name",
    "Author",
    "Maintainer",
    "MD5sum",
    "SHA1",
    "SHA256",
)
_PRIORITY_RANK: Final[dict[str, int]] = {k: i for i, k in enumerate(CANONICAL_PRIORITY)}

_U64_MAX: Final[int] = 2**64 - 1
_NUMBER_RE = re.compile(r"\+?[0-9]+")


# -------------------
# Values
# -------------------
@dataclass(frozen=True, slots=True)
class Text:
    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TextList:
    items: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(str(x) for x in self.items))

    @classmethod
    def from_commalist(cls, raw: str) -> "TextList":
        # empty elements from stray commas are kept as ""
        return cls(tuple(part.strip() for part in raw.split(",")))

    def render(self) -> str:
        return ", ".join(self.items)


@dataclass(frozen=True, slots=True)
class Number:
    value: int

    def __post_init__(self) -> None:
        if not (0 <= int(self.value) <= _U64_MAX):
            raise ValueError(f"Number out of u64 range: {self.value}")

    @classmethod
    def from_number(cls, raw: str) -> "Number":
        """Parse decimal text. Anything unparsable is 0, never an error."""
        s = raw.strip()
        if not _NUMBER_RE.fullmatch(s):
            return cls(0)
        n = int(s)
        return cls(n if n <= _U64_MAX else 0)

    def render(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Flag:
    value: bool

    @classmethod
    def from_yesno(cls, raw: str) -> "Flag":
        # exactly "yes": "YES", "true", "1" are all False
        return cls(raw == "yes")

    def render(self) -> str:
        return "Yes" if self.value else "No"


ControlValue = Union[Text, TextList, Number, Flag]


def typed_value(key: str, raw: str) -> ControlValue:
    """Build the ControlValue a raw ``key: raw`` pair parses to."""
    k = key.lower()
    if k in NUMBER_FIELDS:
        return Number.from_number(raw)
    if k in FLAG_FIELDS:
        return Flag.from_yesno(raw)
    if k in LIST_FIELDS:
        return TextList.from_commalist(raw)
    return Text(raw)


def coerce_value(key: str, value: object) -> ControlValue:
    """Accept a ControlValue or a plain Python value (str/int/bool/list)."""
    if isinstance(value, (Text, TextList, Number, Flag)):
        return value
    if isinstance(value, str):
        return typed_value(key, value.strip())
    if isinstance(value, bool):
        return Flag(value)
    if isinstance(value, int):
        return Number(value)
    if isinstance(value, (list, tuple)):
        return TextList(value)
    raise TypeError(f"unsupported control value for {key!r}: {type(value).__name__}")


def _field_name(key: object) -> str:
    return str(key).strip()


def canonical_sort_key(key: str) -> tuple[int, str]:
    rank = _PRIORITY_RANK.get(key)
    if rank is None:
        return (len(CANONICAL_PRIORITY), key)
    return (rank, "")


# -------------------
# ControlFile
# -------------------
class ControlFile(MutableMapping[str, ControlValue]):
    """One stanza: field name (case preserved) -> ControlValue."""

    def __init__(self, fields: Iterable[tuple[str, object]] | None = None) -> None:
        self._fields: dict[str, ControlValue] = {}
        for k, v in fields or ():
            self[k] = v

    # MutableMapping; keys are trimmed on every access
    def __getitem__(self, key: str) -> ControlValue:
        return self._fields[_field_name(key)]

    def __setitem__(self, key: str, value: object) -> None:
        k = _field_name(key)
        if not k:
            raise ValueError("control field name must not be empty")
        self._fields[k] = coerce_value(k, value)

    def __delitem__(self, key: str) -> None:
        del self._fields[_field_name(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ControlFile):
            return self._fields == other._fields
        return NotImplemented

    def __repr__(self) -> str:
        return f"ControlFile({self._fields!r})"

    # Serialization
    def sorted_items(self) -> list[tuple[str, ControlValue]]:
        return sorted(self._fields.items(), key=lambda kv: canonical_sort_key(kv[0]))

    def to_text(self) -> str:
        out: list[str] = []
        for key, value in self.sorted_items():
            rendered = value.render().replace("\n", "\n ")
            out.append(f"{key}: {rendered}\n")
        return "".join(out)

    def __str__(self) -> str:
        return self.to_text()

    # Parsing
    @classmethod
    def parse(cls, data: bytes | str) -> "ControlFile":
        """Parse exactly one stanza: the first one. Raises EmptyControl if there is none."""
        stanzas = cls.parse_multi(data)
        if not stanzas:
            raise EmptyControl()
        return stanzas[0]

    @classmethod
    def parse_multi(cls, data: bytes | str) -> list["ControlFile"]:
        """Parse every stanza, in source order."""
        out: list[ControlFile] = []
        for fields in iter_raw_stanzas(_as_text(data)):
            cf = cls()
            for key, raw in fields:
                cf._fields[key] = typed_value(key, raw)
            out.append(cf)
        return out


def _as_text(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ControlSyntaxError(f"not valid UTF-8 (byte offset {e.start})") from e


def iter_raw_stanzas(text: str) -> Iterator[list[tuple[str, str]]]:
    """Line-oriented lexer: yield each stanza as a list of (key, raw value)."""
    fields: list[tuple[str, str]] = []
    key: str | None = None
    parts: list[str] = []

    def close_field() -> None:
        nonlocal key, parts
        if key is not None:
            fields.append((key, "\n".join(parts).strip()))
        key = None
        parts = []

    for lineno, line in enumerate(text.split("\n"), start=1):
        line = line.rstrip("\r")
        if line == "":
            close_field()
            if fields:
                yield fields
                fields = []
            continue

        if line[0] in " \t":
            if key is None:
                if line.strip() == "":
                    continue
                raise ControlSyntaxError("continuation line outside of a field", line=lineno)
            parts.append(line[1:].rstrip())
            continue

        if line[0] == "#":
            continue

        name, sep, rest = line.partition(":")
        name = name.strip()
        if not sep:
            raise ControlSyntaxError(f"expected 'Key: value', got {line!r}", line=lineno)
        if not name:
            raise ControlSyntaxError("empty field name", line=lineno)
        if name[0] == "-" or any(c.isspace() for c in name):
            raise ControlSyntaxError(f"invalid field name {name!r}", line=lineno)

        close_field()
        key = name
        parts = [rest.strip()]

    close_field()
    if fields:
        yield fields


def parse(data: bytes | str) -> ControlFile:
    return ControlFile.parse(data)


def parse_multi(data: bytes | str) -> list[ControlFile]:
    return ControlFile.parse_multi(data)


def dumps_multi(stanzas: Iterable[ControlFile]) -> str:
    """Render a package index: canonical stanzas separated by one empty line."""
    return "\n".join(cf.to_text() for cf in stanzas)
