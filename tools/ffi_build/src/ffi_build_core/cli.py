from __future__ import annotations

import argparse
import os
import sys
from typing import Mapping

from .config import BuildConfiguration, load_settings
from .core import FfiBuildError, ToolchainError
from .pipeline import run_pipeline
from .toolchain import SubprocessToolRunner, ToolRunner

PROG = "ffi_build"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Build the FFI crate and keep its checked-in C header in sync.",
        epilog="Use CARGO_BUILD_TARGET for cross-compilation (such as for iOS).",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Debug build (default is release).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose build.")

    ffi = parser.add_mutually_exclusive_group()
    ffi.add_argument("--generate-ffi", action="store_true", help="Regenerate the FFI header.")
    ffi.add_argument("--verify-ffi", action="store_true", help="Verify that the FFI header is up to date.")

    parser.add_argument(
        "--repo-root",
        default=".",
        help="Repository root used to resolve relative paths (default: current directory).",
    )
    parser.add_argument("--config", help="Path to a JSON file overriding crate/header settings.")
    return parser


def report_error(exc: FfiBuildError) -> None:
    print(f"{PROG} error: {exc}", file=sys.stderr)
    if isinstance(exc, ToolchainError):
        if exc.remediation:
            print("note: get it by running", file=sys.stderr)
            print(f"\n\t{exc.remediation}\n", file=sys.stderr)
        if exc.hint:
            print(f"note: {exc.hint}", file=sys.stderr)


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    runner: ToolRunner | None = None,
) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    try:
        config = BuildConfiguration.from_args(args, os.environ if environ is None else environ)
        settings = load_settings(args.config)
        return run_pipeline(config, settings, runner or SubprocessToolRunner(), prog=PROG)
    except FfiBuildError as exc:
        report_error(exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
