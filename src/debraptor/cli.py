"""debraptor CLI.

This is the stable CLI entrypoint (console-script: ``debraptor``).

Commands:
  pack           build a .deb from a control dir + a data dir (dpkg-deb -b)
  unpack         extract the data tree of a .deb (dpkg-deb -x)
  list           print the data manifest
  info           print the version marker and the canonical control stanza
  control        print the control tar entries
  scan           print a Packages index for a directory of .deb files
  spec-validate  validate a build spec (JSON)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from debraptor.build_spec import BuildSpecError, load_build_spec, resolve_build
from debraptor.errors import DebRaptorError


def _pkg_version() -> str:
    try:
        from importlib.metadata import PackageNotFoundError, version

        try:
            return version("debraptor")
        except PackageNotFoundError:
            return "0+unknown"
    except Exception:
        return "0+unknown"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Debug logging + stack traces on errors")
    p.add_argument("-v", "--verbose", action="store_true", help="Informational logging")


def _setup_logging(ns: argparse.Namespace) -> None:
    if getattr(ns, "debug", False):
        level = logging.DEBUG
    elif getattr(ns, "verbose", False):
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[debraptor] %(levelname)s %(name)s: %(message)s")


def _cmd_pack(
    control_dir: Path,
    input_dir: Path,
    output: Path,
    *,
    compression: str | None,
    level: int | None,
    spec_arg: str | None,
) -> int:
    from debraptor.archive import pack

    spec = load_build_spec(spec_arg) if spec_arg else None
    build = resolve_build(compression=compression, level=level, spec=spec)
    n = pack(control_dir, input_dir).write(
        output, build.compression, level=build.level, mtime=build.mtime
    )
    print(f"pack: {output} ({n} bytes, compression={build.compression})")
    return 0


def _cmd_unpack(input_path: Path, output_dir: Path) -> int:
    from debraptor.archive import parse_file

    n = parse_file(input_path).unpack(output_dir)
    print(f"unpack: entries={n} -> {output_dir}")
    return 0


def _cmd_list(input_path: Path) -> int:
    from debraptor.archive import parse_file

    for name in parse_file(input_path).list_files():
        print(name)
    return 0


def _cmd_info(input_path: Path) -> int:
    from debraptor.archive import parse_file

    deb = parse_file(input_path)
    print(f"debian-binary: {deb.version}")
    print(f"members: {deb.control_member.name}, {deb.data_member.name}")
    print()
    sys.stdout.write(deb.control().to_text())
    return 0


def _cmd_control(input_path: Path) -> int:
    from debraptor.archive import parse_file

    for name in parse_file(input_path).control_member_names():
        print(name)
    return 0


def _cmd_scan(input_dir: Path, *, prefix: str | None, jobs: int) -> int:
    from debraptor.scan import render_index, scan_directory

    sys.stdout.write(render_index(scan_directory(input_dir, prefix=prefix, jobs=jobs)))
    return 0


def _cmd_spec_validate(spec_arg: str) -> int:
    # load is the validation
    load_build_spec(spec_arg)
    print("OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="debraptor", description="Build and inspect Debian package archives (.deb)"
    )
    p.add_argument("--version", action="version", version=f"debraptor {_pkg_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_pack = sub.add_parser("pack", help="Pack a control dir + data dir into a .deb")
    p_pack.add_argument(
        "-c",
        "--control",
        type=Path,
        required=True,
        help="Directory with the control file and maintainer scripts",
    )
    p_pack.add_argument(
        "-i", "--input", type=Path, required=True, help="Payload tree, installed as-is"
    )
    p_pack.add_argument("-o", "--output", type=Path, required=True, help="Output .deb path")
    p_pack.add_argument(
        "-x",
        "--compress",
        default=None,
        help="Member compression: gz, bz2, xz, zst (or zstd), none. Default: build spec, env, then xz",
    )
    p_pack.add_argument("--level", type=int, default=None, help="Compression level/preset")
    p_pack.add_argument(
        "--spec",
        default=None,
        help="Build spec JSON. Use '@file.json' to load from file, or pass JSON inline.",
    )
    _add_common_args(p_pack)

    p_unpack = sub.add_parser("unpack", help="Extract the data tree of a .deb")
    p_unpack.add_argument("-i", "--input", type=Path, required=True)
    p_unpack.add_argument("-o", "--output", type=Path, required=True)
    _add_common_args(p_unpack)

    p_list = sub.add_parser("list", help="List the data tree of a .deb")
    p_list.add_argument("input", type=Path)
    _add_common_args(p_list)

    p_info = sub.add_parser("info", help="Show version marker and control stanza")
    p_info.add_argument("input", type=Path)
    _add_common_args(p_info)

    p_ctl = sub.add_parser("control", help="List the control tar entries")
    p_ctl.add_argument("input", type=Path)
    _add_common_args(p_ctl)

    p_scan = sub.add_parser("scan", help="Print a Packages index for a directory of .deb files")
    p_scan.add_argument("-i", "--input", type=Path, required=True)
    p_scan.add_argument("-p", "--prefix", default=None, help="URL/path prefix for Filename")
    p_scan.add_argument("--jobs", type=int, default=1, help="Parallel parse jobs (default: 1)")
    _add_common_args(p_scan)

    p_sv = sub.add_parser("spec-validate", help="Validate a build spec (v1)")
    p_sv.add_argument("spec", help="Build spec JSON (@file.json or inline JSON)")
    _add_common_args(p_sv)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)
    _setup_logging(ns)

    try:
        if ns.cmd == "pack":
            return _cmd_pack(
                ns.control,
                ns.input,
                ns.output,
                compression=ns.compress,
                level=ns.level,
                spec_arg=ns.spec,
            )
        if ns.cmd == "unpack":
            return _cmd_unpack(ns.input, ns.output)
        if ns.cmd == "list":
            return _cmd_list(ns.input)
        if ns.cmd == "info":
            return _cmd_info(ns.input)
        if ns.cmd == "control":
            return _cmd_control(ns.input)
        if ns.cmd == "scan":
            return _cmd_scan(ns.input, prefix=ns.prefix, jobs=ns.jobs)
        if ns.cmd == "spec-validate":
            return _cmd_spec_validate(str(ns.spec))
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except BuildSpecError as e:
        # Treat as usage/config error.
        if getattr(ns, "debug", False):
            raise
        print(f"[debraptor] {e}", file=sys.stderr)
        return 2
    except DebRaptorError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[debraptor] {e}", file=sys.stderr)
        return int(getattr(e, "exit_code", 10) or 10)
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[debraptor] error: {e}", file=sys.stderr)
        return 10


if __name__ == "__main__":
    raise SystemExit(main())
