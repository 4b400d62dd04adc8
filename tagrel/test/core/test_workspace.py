"""Tests for tagrel.core.workspace module."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagrel.core.result import Err, Ok
from tagrel.core.workspace import (
    WORKSPACE_ENV_VAR,
    Workspace,
    detect_workspace,
    detect_workspace_info,
    find_workspace_upward,
    is_workspace_root,
)


def _make_workspace(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    (path / "tagrel.toml").write_text("", encoding="utf-8")
    return path


class TestWorkspace:
    def test_paths(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        assert ws.config_path == tmp_path / "tagrel.toml"
        assert str(ws) == str(tmp_path)

    def test_artifacts_dir_relative(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path)
        assert ws.artifacts_dir(".tagrel/artifacts") == tmp_path / ".tagrel" / "artifacts"

    def test_artifacts_dir_absolute(self, tmp_path: Path) -> None:
        ws = Workspace(root=tmp_path / "ws")
        shared = tmp_path / "shared"
        assert ws.artifacts_dir(str(shared)) == shared


class TestDetection:
    def test_is_workspace_root(self, tmp_path: Path) -> None:
        assert not is_workspace_root(tmp_path)
        _make_workspace(tmp_path)
        assert is_workspace_root(tmp_path)

    def test_find_upward(self, tmp_path: Path) -> None:
        root = _make_workspace(tmp_path / "repo")
        nested = root / "src" / "bin"
        nested.mkdir(parents=True)

        assert find_workspace_upward(nested) == root

    def test_find_upward_none(self, tmp_path: Path) -> None:
        assert find_workspace_upward(tmp_path) is None

    def test_detect_from_start_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(WORKSPACE_ENV_VAR, raising=False)
        root = _make_workspace(tmp_path / "repo")

        result = detect_workspace_info(start_dir=root / "missing-subdir")

        assert isinstance(result, Ok)
        assert result.value.workspace.root == root.resolve()
        assert result.value.source == "cwd"

    def test_detect_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        root = _make_workspace(tmp_path / "repo")
        monkeypatch.setenv(WORKSPACE_ENV_VAR, str(root))

        result = detect_workspace_info(start_dir=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.source == "env"

    def test_invalid_env_is_an_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(WORKSPACE_ENV_VAR, str(tmp_path))

        result = detect_workspace()

        assert isinstance(result, Err)
        assert WORKSPACE_ENV_VAR in result.error.message
