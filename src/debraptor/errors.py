"""Typed errors for debraptor.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- Library code raises; the CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_IO = 11
EXIT_COMPRESSION = 12
EXIT_CONTROL_SYNTAX = 13
EXIT_MISSING_PART = 14
EXIT_EMPTY = 15
EXIT_INVALID_COMPRESSION = 16


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(
        EXIT_USAGE, "USAGE", "Usage/config error (invalid args, invalid build spec, level out of range)"
    ),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (unexpected error)"),
    ExitCodeInfo(EXIT_IO, "IO", "Read/write failure on the input, the output or the filesystem"),
    ExitCodeInfo(EXIT_COMPRESSION, "COMPRESSION", "Corrupt compressed member or tar stream"),
    ExitCodeInfo(EXIT_CONTROL_SYNTAX, "CONTROL_SYNTAX", "Control file grammar violation"),
    ExitCodeInfo(EXIT_MISSING_PART, "MISSING_PART", "Required .deb member (or control entry) absent"),
    ExitCodeInfo(EXIT_EMPTY, "EMPTY", "Control text holds no stanza where one was expected"),
    ExitCodeInfo(
        EXIT_INVALID_COMPRESSION,
        "INVALID_COMPRESSION",
        "Unrecognized compression suffix (member name on read, explicit name on pack)",
    ),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/debraptor/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every library error extends `DebRaptorError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class DebRaptorError(Exception):
    """Base error for debraptor."""

    exit_code: int = EXIT_GENERIC


class UsageError(DebRaptorError):
    exit_code = EXIT_USAGE


class IoFailure(DebRaptorError):
    """Underlying read/write failure. The original OSError is chained as ``__cause__``."""

    exit_code = EXIT_IO


class CompressionError(DebRaptorError):
    exit_code = EXIT_COMPRESSION


class CorruptTar(CompressionError):
    """A member decompressed fine but its payload is not a readable tar stream."""


class CorruptContainer(CompressionError):
    """The outer file is not an ar archive (bad magic, truncated header)."""


class ControlSyntaxError(DebRaptorError):
    exit_code = EXIT_CONTROL_SYNTAX

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.message = message
        self.line = line
        if line is None:
            super().__init__(f"failed to parse control file: {message}")
        else:
            super().__init__(f"failed to parse control file: line {line}: {message}")


class MissingPart(DebRaptorError):
    exit_code = EXIT_MISSING_PART

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"deb file is missing {name}")


class EmptyControl(DebRaptorError):
    exit_code = EXIT_EMPTY

    def __init__(self, message: str = "control file has no stanza") -> None:
        super().__init__(message)


class InvalidCompression(DebRaptorError):
    exit_code = EXIT_INVALID_COMPRESSION

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix
        super().__init__(f"compression algorithm could not be detected in {suffix!r}")


class InvalidLevel(UsageError, ValueError):
    """Compression level outside the codec's range. Also a ValueError for callers that check levels."""

    def __init__(self, codec_id: str, level: int, lo: int, hi: int) -> None:
        self.codec_id = codec_id
        self.level = level
        super().__init__(f"{codec_id} level must be {lo}..{hi}, got {level}")
