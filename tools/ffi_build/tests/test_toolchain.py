from __future__ import annotations

import contextlib
import io
import subprocess
import unittest
from unittest import mock
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
import ffi_build_core as ffi_build  # noqa: E402
from ffi_build_core import toolchain  # noqa: E402


class SubprocessToolRunnerTests(unittest.TestCase):
    def test_run_captures_output_when_requested(self) -> None:
        completed = subprocess.CompletedProcess(
            args=["cbindgen", "rust/bridge/ffi"],
            returncode=0,
            stdout=b"#ifndef SIGNAL_FFI_H_\n",
            stderr=b"WARN: something\n",
        )
        with mock.patch.object(toolchain.subprocess, "run", return_value=completed) as run_mock:
            result = ffi_build.SubprocessToolRunner().run(
                ["cbindgen", "rust/bridge/ffi"],
                env={"PATH": "/usr/bin"},
                cwd=Path("/repo"),
                capture=True,
            )

        self.assertTrue(result.ok)
        self.assertEqual(result.stdout, "#ifndef SIGNAL_FFI_H_\n")
        self.assertEqual(result.stderr, "WARN: something\n")
        run_mock.assert_called_once_with(
            ["cbindgen", "rust/bridge/ffi"],
            env={"PATH": "/usr/bin"},
            cwd=str(Path("/repo")),
            capture_output=True,
        )

    def test_run_keeps_crlf_output_verbatim(self) -> None:
        completed = subprocess.CompletedProcess(args=["cbindgen"], returncode=0, stdout=b"a\r\nb\r\n", stderr=b"")
        with mock.patch.object(toolchain.subprocess, "run", return_value=completed):
            result = ffi_build.SubprocessToolRunner().run(["cbindgen"], capture=True)
        self.assertEqual(result.stdout, "a\r\nb\r\n")

    def test_run_streams_when_not_capturing(self) -> None:
        completed = subprocess.CompletedProcess(args=["cargo", "build"], returncode=101, stdout=None, stderr=None)
        with mock.patch.object(toolchain.subprocess, "run", return_value=completed) as run_mock:
            result = ffi_build.SubprocessToolRunner().run(["cargo", "build"])

        self.assertFalse(result.ok)
        self.assertEqual(result.returncode, 101)
        self.assertEqual(result.stdout, "")
        self.assertEqual(result.stderr, "")
        self.assertFalse(run_mock.call_args.kwargs["capture_output"])
        self.assertIsNone(run_mock.call_args.kwargs["env"])

    def test_run_converts_os_error(self) -> None:
        with mock.patch.object(toolchain.subprocess, "run", side_effect=FileNotFoundError("no such file")):
            with self.assertRaises(ffi_build.FfiBuildError) as ctx:
                ffi_build.SubprocessToolRunner().run(["cargo", "build"])
        self.assertIn("Unable to run 'cargo'", str(ctx.exception))

    def test_which_uses_given_search_path(self) -> None:
        with mock.patch.object(toolchain.shutil, "which", return_value="/opt/bin/cbindgen") as which_mock:
            resolved = ffi_build.SubprocessToolRunner().which("cbindgen", "/opt/bin")
        self.assertEqual(resolved, "/opt/bin/cbindgen")
        which_mock.assert_called_once_with("cbindgen", path="/opt/bin")

    def test_echo_then_run_prints_quoted_command(self) -> None:
        runner = mock.Mock(spec=ffi_build.ToolRunner)
        runner.run.return_value = ffi_build.CommandResult(returncode=0)
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            result = ffi_build.echo_then_run(runner, ["cbindgen", "-o", "path with space.h"])
        self.assertTrue(result.ok)
        self.assertEqual(stdout.getvalue(), "cbindgen -o 'path with space.h'\n")
        runner.run.assert_called_once_with(
            ["cbindgen", "-o", "path with space.h"], env=None, cwd=None, capture=False
        )


class ToolRequirementTests(unittest.TestCase):
    def test_remediation_requires_installer(self) -> None:
        requirement = toolchain.cbindgen_requirement(ffi_build.PipelineSettings(cbindgen_version="^0.20"))
        runner = mock.Mock(spec=ffi_build.ToolRunner)

        runner.which.return_value = "/usr/bin/cargo"
        error = requirement.missing_error(runner, "/usr/bin")
        self.assertEqual(str(error), "cbindgen not found in PATH")
        self.assertEqual(error.remediation, "cargo install cbindgen --vers '^0.20'")
        runner.which.assert_called_with("cargo", "/usr/bin")

        runner.which.return_value = None
        self.assertIsNone(requirement.missing_error(runner, "/usr/bin").remediation)

    def test_extend_search_path_skips_empty_parts(self) -> None:
        self.assertEqual(toolchain.extend_search_path("", "/home/me/.cargo/bin"), "/home/me/.cargo/bin")
        self.assertEqual(toolchain.extend_search_path("/usr/bin", None), "/usr/bin")


if __name__ == "__main__":
    unittest.main()
