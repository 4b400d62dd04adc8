"""Tests for git/repository.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagrel.core.result import Err, Ok, Result
from tagrel.git.repository import Repository
from tagrel.platform.process import ProcessError


def _fake_git(
    monkeypatch: pytest.MonkeyPatch, outputs: dict[tuple[str, ...], Result[str, ProcessError]]
) -> list[list[str]]:
    import tagrel.git.repository as repo_mod

    calls: list[list[str]] = []

    def fake_run(
        cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        calls.append(cmd)
        return outputs[tuple(cmd[1:])]

    monkeypatch.setattr(repo_mod, "run_process", fake_run)
    return calls


class TestRepository:
    def test_exists(self, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        assert not repo.exists()

        (tmp_path / ".git").mkdir()
        assert repo.exists()

    def test_tags_at_sorted(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = _fake_git(
            monkeypatch,
            {("tag", "--points-at", "HEAD"): Ok("v1.2.3\nlatest\n\n")},
        )

        result = Repository(tmp_path).tags_at()

        assert result == Ok(["latest", "v1.2.3"])
        assert calls == [["git", "tag", "--points-at", "HEAD"]]

    def test_tags_at_untagged(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _fake_git(monkeypatch, {("tag", "--points-at", "HEAD"): Ok("")})

        assert Repository(tmp_path).tags_at() == Ok([])

    def test_error_maps_to_git_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        error = ProcessError(
            command=("git", "rev-parse", "HEAD"),
            returncode=128,
            stdout="",
            stderr="fatal: not a git repository\n",
        )
        _fake_git(monkeypatch, {("rev-parse", "HEAD"): Err(error)})

        result = Repository(tmp_path).head_sha()

        assert isinstance(result, Err)
        assert result.error.command == "rev-parse"
        assert result.error.message == "fatal: not a git repository"
        assert result.error.returncode == 128

    def test_head_sha_stripped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _fake_git(monkeypatch, {("rev-parse", "HEAD"): Ok("abc123\n")})

        assert Repository(tmp_path).head_sha() == Ok("abc123")

    def test_tag_exists(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _fake_git(
            monkeypatch,
            {
                ("tag", "--list", "v1.2.3"): Ok("v1.2.3\n"),
                ("tag", "--list", "v9.9.9"): Ok(""),
            },
        )
        repo = Repository(tmp_path)

        assert repo.tag_exists("v1.2.3") == Ok(True)
        assert repo.tag_exists("v9.9.9") == Ok(False)
