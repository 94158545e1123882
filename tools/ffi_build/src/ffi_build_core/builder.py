from __future__ import annotations

import os
from pathlib import Path

from .config import BuildConfiguration, PipelineSettings
from .core import BuildError
from .toolchain import RustToolchain, ToolRunner, child_environment, echo_then_run

LIBRARY_PATH_ENV = "LIBRARY_PATH"


def host_library_path(config: BuildConfiguration) -> str | None:
    """Library search path for build scripts and proc-macros when building under an SDK.

    An SDK directory means an IDE-managed (usually cross-compiling) build; the
    host-side build steps still need the host SDK's libraries to link.
    """
    if not config.sdk_dir:
        return None
    sdk_lib = str(Path(config.sdk_dir) / "MacOSX.sdk" / "usr" / "lib")
    existing = config.environ.get(LIBRARY_PATH_ENV)
    if existing:
        return os.pathsep.join([sdk_lib, existing])
    return sdk_lib


def build_environment(config: BuildConfiguration, extra_path: str | None = None) -> dict[str, str]:
    env = child_environment(config.environ, extra_path)
    # Keep line tables in release artifacts.
    env["CARGO_PROFILE_RELEASE_DEBUG"] = "1"
    library_path = host_library_path(config)
    if library_path is not None:
        env[LIBRARY_PATH_ENV] = library_path
    return env


def cargo_build_command(config: BuildConfiguration, settings: PipelineSettings, cargo: str = "cargo") -> list[str]:
    command = [cargo, "build", "-p", settings.crate]
    if config.profile.is_release:
        command.append("--release")
    if config.verbose:
        command.append("--verbose")
    return command


def build_native_library(
    config: BuildConfiguration,
    settings: PipelineSettings,
    runner: ToolRunner,
    toolchain: RustToolchain,
) -> None:
    command = cargo_build_command(config, settings, cargo=toolchain.cargo)
    result = echo_then_run(
        runner,
        command,
        env=build_environment(config, toolchain.extra_path),
        cwd=config.repo_root,
    )
    if not result.ok:
        raise BuildError(f"cargo build for '{settings.crate}' failed with exit status {result.returncode}")
