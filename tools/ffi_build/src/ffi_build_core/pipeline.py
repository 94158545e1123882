from __future__ import annotations

import sys

from .builder import build_native_library
from .config import BuildConfiguration, FfiAction, PipelineSettings
from .core import HeaderMismatchError
from .header import generate_header, verify_header, write_header
from .toolchain import ToolRunner, check_cbindgen, check_rust, extend_search_path, format_command


def regenerate_command(config: BuildConfiguration, prog: str) -> str:
    parts = [prog]
    if not config.profile.is_release:
        parts.append("-d")
    parts.append("--generate-ffi")
    return " ".join(parts)


def run_pipeline(
    config: BuildConfiguration,
    settings: PipelineSettings,
    runner: ToolRunner,
    prog: str = "ffi_build",
) -> int:
    toolchain = check_rust(config, settings, runner)

    cbindgen = None
    if config.ffi_action.generates:
        search_path = extend_search_path(config.environ.get("PATH"), toolchain.extra_path)
        cbindgen = check_cbindgen(settings, runner, search_path)

    build_native_library(config, settings, runner, toolchain)

    if cbindgen is None:
        return 0

    generated = generate_header(
        config,
        settings,
        runner,
        cbindgen=cbindgen,
        extra_path=toolchain.extra_path,
        quiet=config.ffi_action is FfiAction.VERIFY,
    )

    if config.ffi_action is FfiAction.GENERATE:
        status = write_header(config, settings, generated)
        print(f"{settings.header_path}: {status}", file=sys.stderr)
        return 0

    result = verify_header(config, settings, generated)
    if result.matches:
        return 0

    print(f"diff -u {result.header_path} <({format_command(generated.command)})")
    print(result.diff)
    print()
    header_name = settings.header_file(config.repo_root).name
    raise HeaderMismatchError(f"{header_name} not up to date; run {regenerate_command(config, prog)}")
