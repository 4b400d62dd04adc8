"""Tests for the build runner."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from tagrel.core.config import TargetConfig
from tagrel.core.result import Err, Ok
from tagrel.output.console import MockConsole
from tagrel.pipeline.build import BuildRunner
from tagrel.pipeline.errors import (
    ArtifactMissingError,
    PlatformMismatch,
    ToolchainError,
    ToolchainMissing,
)
from tagrel.pipeline.model import BuildTarget
from tagrel.pipeline.store import ArtifactStore
from tagrel.platform.detection import Arch, Platform, PlatformInfo
from tagrel.test.pipeline._fakes import FakeCargo

LINUX_HOST = PlatformInfo(platform=Platform.LINUX, arch=Arch.X64)


def _target(**overrides: object) -> BuildTarget:
    cfg = TargetConfig(
        name="linux",
        os="linux",
        binary="mongo-task-generator",
        asset_name="mongo-task-generator",
    )
    return replace(BuildTarget.from_config(cfg), **overrides)  # type: ignore[arg-type]


def _runner(
    tmp_path: Path, console: MockConsole, *, stream_output: bool = True
) -> tuple[BuildRunner, ArtifactStore]:
    store = ArtifactStore(tmp_path / ".tagrel" / "artifacts", "v1.2.3")
    runner = BuildRunner(
        workspace_root=tmp_path,
        platform=LINUX_HOST,
        store=store,
        console=console,
        stream_output=stream_output,
    )
    return runner, store


class TestBuild:
    def test_compile_strip_commit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cargo = FakeCargo(workspace_root=tmp_path)
        cargo.install(monkeypatch)
        console = MockConsole()
        runner, store = _runner(tmp_path, console)

        result = runner.build(_target())

        assert isinstance(result, Ok)
        artifact = result.value
        assert artifact.asset_name == "mongo-task-generator"
        assert artifact.target == "linux"
        assert artifact.path.read_bytes() == cargo.stripped_content
        assert store.names() == ["mongo-task-generator"]

        assert cargo.calls[0] == ["cargo", "build", "--release", "--locked"]
        assert cargo.calls[1][0] == "strip"
        # Only the staged copy is stripped; cargo's output is untouched.
        assert (tmp_path / "target" / "release" / "mongo-task-generator").read_bytes() == (
            cargo.binary_content
        )
        assert console.find("cargo build --release --locked")

    def test_compile_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cargo = FakeCargo(workspace_root=tmp_path, compile_returncode=101)
        cargo.install(monkeypatch)
        runner, store = _runner(tmp_path, MockConsole())

        result = runner.build(_target())

        assert isinstance(result, Err)
        assert isinstance(result.error, ToolchainError)
        assert result.error.step == "compile"
        assert result.error.returncode == 101
        assert store.names() == []
        assert len(cargo.calls) == 1

    def test_captured_output_in_error_detail(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        FakeCargo(workspace_root=tmp_path, compile_returncode=101).install(monkeypatch)
        runner, _ = _runner(tmp_path, MockConsole(), stream_output=False)

        result = runner.build(_target())

        assert isinstance(result, Err)
        assert isinstance(result.error, ToolchainError)
        assert result.error.detail == "error: could not compile"

    def test_binary_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        FakeCargo(workspace_root=tmp_path, write_output=False).install(monkeypatch)
        runner, store = _runner(tmp_path, MockConsole())

        result = runner.build(_target())

        assert isinstance(result, Err)
        assert isinstance(result.error, ArtifactMissingError)
        assert result.error.path == tmp_path / "target" / "release" / "mongo-task-generator"
        assert store.names() == []

    def test_strip_failure_leaves_nothing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        FakeCargo(workspace_root=tmp_path, strip_returncode=1).install(monkeypatch)
        runner, store = _runner(tmp_path, MockConsole())

        result = runner.build(_target())

        assert isinstance(result, Err)
        assert isinstance(result.error, ToolchainError)
        assert result.error.step == "strip"
        assert store.names() == []
        assert list((store.run_dir / ".staging").iterdir()) == []

    def test_strip_disabled(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cargo = FakeCargo(workspace_root=tmp_path)
        cargo.install(monkeypatch)
        runner, _ = _runner(tmp_path, MockConsole())

        result = runner.build(_target(strip=False))

        assert isinstance(result, Ok)
        assert result.value.path.read_bytes() == cargo.binary_content
        assert len(cargo.calls) == 1

    def test_second_build_same_run_rejected(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        FakeCargo(workspace_root=tmp_path).install(monkeypatch)
        runner, _ = _runner(tmp_path, MockConsole())
        assert isinstance(runner.build(_target()), Ok)

        again = runner.build(_target())

        assert isinstance(again, Err)
        assert again.error.kind == "exists"  # type: ignore[union-attr]

    def test_toolchain_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import tagrel.pipeline.build as build_mod

        cargo = FakeCargo(workspace_root=tmp_path)
        cargo.install(monkeypatch)
        monkeypatch.setattr(
            build_mod,
            "ensure_toolchain",
            lambda target: Err(ToolchainMissing(tool="cargo", hint="Install Rust")),
        )
        runner, _ = _runner(tmp_path, MockConsole())

        result = runner.build(_target())

        assert isinstance(result, Err)
        assert isinstance(result.error, ToolchainMissing)
        assert cargo.calls == []


class TestPlatform:
    def test_other_os_rejected(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cargo = FakeCargo(workspace_root=tmp_path)
        cargo.install(monkeypatch)
        runner, _ = _runner(tmp_path, MockConsole())

        result = runner.build(_target(name="macos", os="macos"))

        assert isinstance(result, Err)
        assert result.error == PlatformMismatch(target="macos", required="macos", host="linux")
        assert cargo.calls == []

    def test_cross_target_allowed(self, tmp_path: Path) -> None:
        runner, _ = _runner(tmp_path, MockConsole())
        target = _target(os="windows", rust_target="x86_64-pc-windows-gnu")

        assert runner.check_platform(target) == Ok(None)


class TestDryRun:
    def test_prints_commands_only(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cargo = FakeCargo(workspace_root=tmp_path)
        cargo.install(monkeypatch)
        console = MockConsole()
        runner, store = _runner(tmp_path, console)

        result = runner.build(_target(), dry_run=True)

        assert isinstance(result, Ok)
        assert result.value.sha256 == ""
        assert cargo.calls == []
        assert store.names() == []
        assert console.messages[0] == "cargo build --release --locked"
        assert console.messages[1] == "strip <staged copy of target/release/mongo-task-generator>"

    def test_commands(self, tmp_path: Path) -> None:
        runner, _ = _runner(tmp_path, MockConsole())

        assert runner.commands(_target(strip=False)) == [
            ["cargo", "build", "--release", "--locked"]
        ]

    def test_strip_command_names_staged_copy(self, tmp_path: Path) -> None:
        runner, _ = _runner(tmp_path, MockConsole())

        assert runner.commands(_target())[1] == [
            "strip",
            "<staged copy of target/release/mongo-task-generator>",
        ]
