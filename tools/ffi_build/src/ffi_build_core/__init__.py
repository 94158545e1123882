from .builder import build_environment, build_native_library, cargo_build_command, host_library_path
from .cli import build_parser, main
from .config import BuildConfiguration, FfiAction, PipelineSettings, Profile, load_settings, parse_settings
from .core import (
    BuildError,
    FfiBuildError,
    HeaderGenerationError,
    HeaderMismatchError,
    ToolchainError,
    compute_unified_diff,
)
from .header import (
    DiagnosticFilter,
    GeneratedHeader,
    VerifyResult,
    cbindgen_command,
    generate_header,
    verify_header,
    write_header,
)
from .pipeline import regenerate_command, run_pipeline
from .toolchain import (
    CommandResult,
    RustToolchain,
    SubprocessToolRunner,
    ToolRequirement,
    ToolRunner,
    check_cbindgen,
    check_rust,
    echo_then_run,
)

__all__ = [
    "BuildConfiguration",
    "BuildError",
    "CommandResult",
    "DiagnosticFilter",
    "FfiAction",
    "FfiBuildError",
    "GeneratedHeader",
    "HeaderGenerationError",
    "HeaderMismatchError",
    "PipelineSettings",
    "Profile",
    "RustToolchain",
    "SubprocessToolRunner",
    "ToolRequirement",
    "ToolRunner",
    "ToolchainError",
    "VerifyResult",
    "build_environment",
    "build_native_library",
    "build_parser",
    "cargo_build_command",
    "cbindgen_command",
    "check_cbindgen",
    "check_rust",
    "compute_unified_diff",
    "echo_then_run",
    "generate_header",
    "host_library_path",
    "load_settings",
    "main",
    "parse_settings",
    "regenerate_command",
    "run_pipeline",
    "verify_header",
    "write_header",
]
