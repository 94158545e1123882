from __future__ import annotations

import argparse
import enum
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .core import FfiBuildError, ensure_relative_path, load_json, require_str, require_str_list

TARGET_ENV = "CARGO_BUILD_TARGET"
SDK_DIR_ENV = "DEVELOPER_SDK_DIR"


class Profile(enum.Enum):
    DEBUG = "debug"
    RELEASE = "release"

    @property
    def is_release(self) -> bool:
        return self is Profile.RELEASE


class FfiAction(enum.Enum):
    NONE = "none"
    GENERATE = "generate"
    VERIFY = "verify"

    @property
    def generates(self) -> bool:
        return self is not FfiAction.NONE


def _env_value(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name)
    return value or None


@dataclass(frozen=True)
class BuildConfiguration:
    """Everything a pipeline run depends on, resolved once at startup.

    Flags and environment variables are folded in here so that the pipeline
    steps never consult ``os.environ`` or ``sys.argv`` themselves.
    """

    profile: Profile = Profile.RELEASE
    verbose: bool = False
    target: str | None = None
    sdk_dir: str | None = None
    ffi_action: FfiAction = FfiAction.NONE
    repo_root: Path = field(default_factory=Path.cwd)
    environ: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "environ", MappingProxyType(dict(self.environ)))

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ: Mapping[str, str]) -> "BuildConfiguration":
        if args.verify_ffi:
            action = FfiAction.VERIFY
        elif args.generate_ffi:
            action = FfiAction.GENERATE
        else:
            action = FfiAction.NONE
        return cls(
            profile=Profile.DEBUG if args.debug else Profile.RELEASE,
            verbose=bool(args.verbose),
            target=_env_value(environ, TARGET_ENV),
            sdk_dir=_env_value(environ, SDK_DIR_ENV),
            ffi_action=action,
            repo_root=Path(args.repo_root).resolve(),
            environ=environ,
        )


DEFAULT_NOISE_PATTERNS = (
    re.escape('WARN: Missing `[defines]` entry for `feature = "ffi"` in cbindgen config.'),
)


@dataclass(frozen=True)
class PipelineSettings:
    crate: str = "libsignal-ffi"
    ffi_crate_dir: str = "rust/bridge/ffi"
    header_path: str = "swift/Sources/SignalFfi/signal_ffi.h"
    cbindgen_version: str = "^0.16"
    toolchain_file: str = "rust-toolchain"
    noise_patterns: tuple[str, ...] = DEFAULT_NOISE_PATTERNS

    def header_file(self, repo_root: Path) -> Path:
        return ensure_relative_path(repo_root, self.header_path)

    def ffi_crate(self, repo_root: Path) -> Path:
        return ensure_relative_path(repo_root, self.ffi_crate_dir)

    def pinned_toolchain(self, repo_root: Path) -> str | None:
        path = ensure_relative_path(repo_root, self.toolchain_file)
        if not path.is_file():
            return None
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise FfiBuildError(f"Unable to read toolchain file '{path}': {exc}") from exc
        return value or None

    def as_dict(self) -> dict[str, Any]:
        return {
            "crate": self.crate,
            "ffi_crate_dir": self.ffi_crate_dir,
            "header_path": self.header_path,
            "cbindgen_version": self.cbindgen_version,
            "toolchain_file": self.toolchain_file,
            "noise_patterns": list(self.noise_patterns),
        }


def parse_settings(payload: Mapping[str, Any]) -> PipelineSettings:
    known = {item.name for item in fields(PipelineSettings)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise FfiBuildError(f"Unknown config keys: {', '.join(unknown)}. Known keys: {', '.join(sorted(known))}")

    values: dict[str, Any] = {}
    for key, value in payload.items():
        if key == "noise_patterns":
            patterns = require_str_list(value, key)
            for pattern in patterns:
                try:
                    re.compile(pattern)
                except re.error as exc:
                    raise FfiBuildError(f"Invalid noise pattern '{pattern}': {exc}") from exc
            values[key] = patterns
        else:
            values[key] = require_str(value, key)
    return PipelineSettings(**values)


def load_settings(config_path: str | None) -> PipelineSettings:
    if not config_path:
        return PipelineSettings()
    return parse_settings(load_json(Path(config_path).resolve()))
