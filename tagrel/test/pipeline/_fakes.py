"""Test doubles for the external tools the pipeline drives."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tagrel.core.result import Err, Ok, Result
from tagrel.pipeline.release.errors import PublishError
from tagrel.pipeline.release.gh import GhRelease, GhTarget
from tagrel.platform.process import ProcessError


@dataclass
class FakeGitHub:
    """In-memory stand-in for the gh release functions used by the publisher."""

    releases: dict[str, GhRelease] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    tokens: list[str | None] = field(default_factory=list)
    gh_installed: bool = True
    drop_assets: tuple[str, ...] = ()
    create_error: PublishError | None = None
    create_leaves_draft: bool = False
    publish_error: PublishError | None = None

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import tagrel.pipeline.release.gh as gh_mod

        monkeypatch.setattr(gh_mod, "ensure_gh_available", self.ensure_gh_available)
        monkeypatch.setattr(gh_mod, "ensure_gh_auth", self.ensure_gh_auth)
        monkeypatch.setattr(gh_mod, "view_release", self.view_release)
        monkeypatch.setattr(gh_mod, "create_draft_release", self.create_draft_release)
        monkeypatch.setattr(gh_mod, "publish_draft", self.publish_draft)
        monkeypatch.setattr(gh_mod, "delete_release", self.delete_release)

    def ensure_gh_available(self) -> Result[None, PublishError]:
        self.calls.append("available")
        if not self.gh_installed:
            return Err(PublishError(kind="gh_missing", message="gh: missing"))
        return Ok(None)

    def ensure_gh_auth(self, *, gh: GhTarget) -> Result[None, PublishError]:
        self.calls.append("auth")
        return Ok(None)

    def view_release(self, *, gh: GhTarget, tag: str) -> Result[GhRelease | None, PublishError]:
        self.calls.append(f"view {tag}")
        return Ok(self.releases.get(tag))

    def create_draft_release(
        self,
        *,
        gh: GhTarget,
        tag: str,
        files: list[Path],
        title: str,
        notes: str,
        generate_notes: bool,
        prerelease: bool,
    ) -> Result[str, PublishError]:
        self.calls.append(f"create {tag}")
        self.tokens.append(gh.token)
        url = f"https://github.com/owner/name/releases/tag/untagged-{tag}"
        if self.create_error is not None:
            if self.create_leaves_draft:
                self.releases[tag] = GhRelease(tag=tag, url=url, is_draft=True, asset_names=())
            return Err(self.create_error)
        names = tuple(f.name for f in files if f.name not in self.drop_assets)
        self.releases[tag] = GhRelease(tag=tag, url=url, is_draft=True, asset_names=names)
        return Ok(url)

    def publish_draft(self, *, gh: GhTarget, tag: str) -> Result[None, PublishError]:
        self.calls.append(f"publish {tag}")
        if self.publish_error is not None:
            return Err(self.publish_error)
        draft = self.releases[tag]
        self.releases[tag] = GhRelease(
            tag=tag,
            url=f"https://github.com/owner/name/releases/tag/{tag}",
            is_draft=False,
            asset_names=draft.asset_names,
        )
        return Ok(None)

    def delete_release(self, *, gh: GhTarget, tag: str) -> Result[None, PublishError]:
        self.calls.append(f"delete {tag}")
        self.releases.pop(tag, None)
        return Ok(None)


@dataclass
class FakeCargo:
    """Pretends to be cargo and strip for the build runner.

    Compiling writes ``binary_content`` where cargo would put ``binary``;
    stripping rewrites the staged file with ``stripped_content``.
    """

    workspace_root: Path
    binary: str = "mongo-task-generator"
    binary_content: bytes = b"\x7fELF unstripped binary with symbols"
    stripped_content: bytes = b"\x7fELF stripped"
    compile_returncode: int = 0
    strip_returncode: int = 0
    write_output: bool = True
    calls: list[list[str]] = field(default_factory=list)

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import tagrel.pipeline.build as build_mod

        monkeypatch.setattr(build_mod, "ensure_toolchain", lambda target: Ok(None))
        monkeypatch.setattr(build_mod, "run_silent", self.run_silent)
        monkeypatch.setattr(build_mod, "run", self.run)

    def output_for(self, cmd: list[str]) -> Path:
        out = self.workspace_root / "target"
        if "--target" in cmd:
            out = out / cmd[cmd.index("--target") + 1]
        return out / "release" / self.binary

    def run_silent(
        self,
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[None, ProcessError]:
        self.calls.append(cmd)
        if cmd[0] == "cargo":
            if self.compile_returncode != 0:
                return Err(ProcessError(tuple(cmd), self.compile_returncode, "", ""))
            if self.write_output:
                out = self.output_for(cmd)
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_bytes(self.binary_content)
            return Ok(None)
        if self.strip_returncode != 0:
            return Err(ProcessError(tuple(cmd), self.strip_returncode, "", ""))
        Path(cmd[-1]).write_bytes(self.stripped_content)
        return Ok(None)

    def run(
        self,
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        result = self.run_silent(cmd, cwd, env, timeout=timeout)
        if isinstance(result, Err):
            error = result.error
            return Err(
                ProcessError(error.command, error.returncode, "", "error: could not compile\n")
            )
        return Ok("")

