from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Iterable

from .config import BuildConfiguration, PipelineSettings
from .core import (
    HeaderGenerationError,
    compute_unified_diff,
    read_text_if_exists,
    to_repo_relative,
    write_text,
)
from .toolchain import ToolRunner, child_environment, echo_then_run, format_command


class DiagnosticFilter:
    """Drops known-noise lines from a tool's diagnostic stream."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(re.compile(pattern) for pattern in patterns)

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "DiagnosticFilter":
        return cls(settings.noise_patterns)

    def suppresses(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in self.patterns)

    def filter(self, text: str) -> str:
        kept = [line for line in text.splitlines(keepends=True) if not self.suppresses(line)]
        return "".join(kept)


@dataclass(frozen=True)
class GeneratedHeader:
    text: str
    command: tuple[str, ...]


@dataclass(frozen=True)
class VerifyResult:
    status: str
    header_path: str
    diff: str = ""

    @property
    def matches(self) -> bool:
        return self.status == "match"


def cbindgen_command(
    config: BuildConfiguration,
    settings: PipelineSettings,
    cbindgen: str = "cbindgen",
    quiet: bool = False,
) -> list[str]:
    command = [cbindgen]
    if quiet:
        command.append("-q")
    command.extend(["--profile", config.profile.value, settings.ffi_crate_dir])
    return command


def generate_header(
    config: BuildConfiguration,
    settings: PipelineSettings,
    runner: ToolRunner,
    *,
    cbindgen: str = "cbindgen",
    extra_path: str | None = None,
    quiet: bool = False,
) -> GeneratedHeader:
    command = cbindgen_command(config, settings, cbindgen=cbindgen, quiet=quiet)
    result = echo_then_run(
        runner,
        command,
        env=child_environment(config.environ, extra_path),
        cwd=config.repo_root,
        capture=True,
    )

    diagnostics = DiagnosticFilter.from_settings(settings).filter(result.stderr)
    if diagnostics:
        sys.stderr.write(diagnostics if diagnostics.endswith("\n") else diagnostics + "\n")

    if not result.ok:
        raise HeaderGenerationError(f"cbindgen failed with exit status {result.returncode}")
    if not result.stdout.strip():
        raise HeaderGenerationError(
            f"cbindgen produced no header for '{settings.ffi_crate_dir}'; check the FFI crate path"
        )
    return GeneratedHeader(text=result.stdout, command=tuple(command))


def write_header(config: BuildConfiguration, settings: PipelineSettings, generated: GeneratedHeader) -> str:
    path = settings.header_file(config.repo_root)
    if read_text_if_exists(path) == generated.text:
        return "unchanged"
    write_text(path, generated.text)
    return "updated"


def verify_header(config: BuildConfiguration, settings: PipelineSettings, generated: GeneratedHeader) -> VerifyResult:
    path = settings.header_file(config.repo_root)
    label = to_repo_relative(path, config.repo_root)
    existing = read_text_if_exists(path)
    if existing == generated.text:
        return VerifyResult(status="match", header_path=label)

    diff = compute_unified_diff(
        existing or "",
        generated.text,
        label if existing is not None else "/dev/null",
        f"<({format_command(generated.command)})",
    )
    if not diff:
        diff = f"{label}: contents differ only in line endings or trailing newlines"
    return VerifyResult(status="mismatch", header_path=label, diff=diff)
