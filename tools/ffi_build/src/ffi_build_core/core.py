from __future__ import annotations

import difflib
import json
from pathlib import Path
from typing import Any


class FfiBuildError(Exception):
    pass


class ToolchainError(FfiBuildError):
    def __init__(self, message: str, remediation: str | None = None, hint: str | None = None) -> None:
        super().__init__(message)
        self.remediation = remediation
        self.hint = hint


class BuildError(FfiBuildError):
    pass


class HeaderGenerationError(FfiBuildError):
    pass


class HeaderMismatchError(FfiBuildError):
    pass


def load_json(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise FfiBuildError(f"Unable to read JSON file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise FfiBuildError(f"Invalid JSON in '{path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise FfiBuildError(f"JSON root in '{path}' must be an object.")
    return payload


def require_str(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value:
        raise FfiBuildError(f"Config field '{key}' must be a non-empty string.")
    return value


def require_str_list(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise FfiBuildError(f"Config field '{key}' must be an array of non-empty strings.")
    return tuple(value)


def ensure_relative_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return root / path


def to_repo_relative(path: Path, repo_root: Path) -> str:
    try:
        return str(path.resolve().relative_to(repo_root.resolve()))
    except ValueError:
        return str(path.resolve())


def read_text_if_exists(path: Path) -> str | None:
    if not path.exists():
        return None
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FfiBuildError(f"File '{path}' is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise FfiBuildError(f"Unable to read file '{path}': {exc}") from exc


def write_text(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
    except OSError as exc:
        raise FfiBuildError(f"Unable to write file '{path}': {exc}") from exc


def normalized_lines(value: str) -> list[str]:
    return value.replace("\r\n", "\n").splitlines()


def compute_unified_diff(old_content: str, new_content: str, old_label: str, new_label: str) -> str:
    diff_lines = difflib.unified_diff(
        normalized_lines(old_content),
        normalized_lines(new_content),
        fromfile=old_label,
        tofile=new_label,
        lineterm="",
    )
    return "\n".join(diff_lines)
