from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from .config import BuildConfiguration, PipelineSettings
from .core import FfiBuildError, ToolchainError


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolRunner:
    """Narrow seam over external tools: lookup on a search path and execution."""

    def which(self, name: str, path: str | None = None) -> str | None:
        raise NotImplementedError

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        raise NotImplementedError


class SubprocessToolRunner(ToolRunner):
    def which(self, name: str, path: str | None = None) -> str | None:
        return shutil.which(name, path=path)

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        command = [str(item) for item in argv]
        try:
            proc = subprocess.run(
                command,
                env=dict(env) if env is not None else None,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=capture,
            )
        except OSError as exc:
            raise FfiBuildError(f"Unable to run '{command[0]}': {exc}") from exc
        # Decoded without newline translation so CRLF output survives verbatim.
        return CommandResult(
            returncode=proc.returncode,
            stdout=(proc.stdout or b"").decode("utf-8", errors="replace"),
            stderr=(proc.stderr or b"").decode("utf-8", errors="replace"),
        )


def format_command(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(item)) for item in argv)


def echo_then_run(
    runner: ToolRunner,
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    capture: bool = False,
) -> CommandResult:
    print(format_command(argv), flush=True)
    return runner.run(argv, env=env, cwd=cwd, capture=capture)


def extend_search_path(current: str | None, extra: str | None) -> str:
    parts = [item for item in (current, extra) if item]
    return os.pathsep.join(parts)


def child_environment(environ: Mapping[str, str], extra_path: str | None) -> dict[str, str]:
    env = dict(environ)
    if extra_path:
        env["PATH"] = extend_search_path(env.get("PATH"), extra_path)
    return env


@dataclass(frozen=True)
class ToolRequirement:
    name: str
    installer: str | None = None
    install_command: str | None = None
    hint: str | None = None

    def missing_error(self, runner: ToolRunner, search_path: str | None) -> ToolchainError:
        remediation = None
        if self.installer and self.install_command and runner.which(self.installer, search_path):
            remediation = self.install_command
        return ToolchainError(f"{self.name} not found in PATH", remediation=remediation, hint=self.hint)


@dataclass(frozen=True)
class RustToolchain:
    cargo: str
    rustup: str | None = None
    extra_path: str | None = None


CARGO_REQUIREMENT = ToolRequirement(
    name="cargo",
    hint="we recommend installing Rust via rustup from https://rustup.rs/",
)


def cbindgen_requirement(settings: PipelineSettings) -> ToolRequirement:
    return ToolRequirement(
        name="cbindgen",
        installer="cargo",
        install_command=f"cargo install cbindgen --vers {shlex.quote(settings.cbindgen_version)}",
    )


def _user_cargo_bin(environ: Mapping[str, str]) -> Path:
    home = environ.get("HOME")
    return (Path(home) if home else Path.home()) / ".cargo" / "bin"


def _installed_targets(runner: ToolRunner, rustup: str, env: Mapping[str, str]) -> set[str]:
    result = runner.run([rustup, "target", "list", "--installed"], env=env, capture=True)
    if not result.ok:
        message = result.stderr.strip() or result.stdout.strip() or f"exit status {result.returncode}"
        raise ToolchainError(f"unable to list installed Rust targets: {message}")
    return {line.strip() for line in result.stdout.splitlines() if line.strip()}


def check_rust(config: BuildConfiguration, settings: PipelineSettings, runner: ToolRunner) -> RustToolchain:
    search_path = config.environ.get("PATH", "")
    extra_path: str | None = None

    if runner.which("rustup", search_path) is None:
        # IDE-launched builds don't source the shell profile that puts rustup on PATH.
        cargo_bin = _user_cargo_bin(config.environ)
        if cargo_bin.is_dir():
            extra_path = str(cargo_bin)
            search_path = extend_search_path(search_path, extra_path)

    toolchain = settings.pinned_toolchain(config.repo_root)
    rustup = runner.which("rustup", search_path)
    if rustup is None:
        cargo = runner.which("cargo", search_path)
        if cargo is None:
            raise ToolchainError(
                "cargo not found in PATH; do you have Rust installed?",
                hint=CARGO_REQUIREMENT.hint,
            )
        print(f"warning: rustup not found in PATH; using cargo at {cargo}", file=sys.stderr)
        if toolchain:
            print(f"note: this project uses Rust toolchain '{toolchain}'", file=sys.stderr)
        return RustToolchain(cargo=cargo, rustup=None, extra_path=extra_path)

    if config.target:
        env = child_environment(config.environ, extra_path)
        if config.target not in _installed_targets(runner, rustup, env):
            toolchain_arg = f"+{toolchain} " if toolchain else ""
            raise ToolchainError(
                f"Rust target {config.target} not installed",
                remediation=f"rustup {toolchain_arg}target add {config.target}",
            )

    cargo = runner.which("cargo", search_path)
    if cargo is None:
        raise CARGO_REQUIREMENT.missing_error(runner, search_path)
    return RustToolchain(cargo=cargo, rustup=rustup, extra_path=extra_path)


def check_cbindgen(settings: PipelineSettings, runner: ToolRunner, search_path: str | None) -> str:
    cbindgen = runner.which("cbindgen", search_path)
    if cbindgen is None:
        raise cbindgen_requirement(settings).missing_error(runner, search_path)
    return cbindgen
