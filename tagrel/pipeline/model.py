"""Pipeline data model: build targets, artifacts and releases."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tagrel.core.config import TargetConfig
from tagrel.core.result import Err, Ok, Result
from tagrel.pipeline.release.errors import PublishError
from tagrel.platform.detection import Platform

DEFAULT_BUILD_COMMAND = ("cargo", "build", "--release", "--locked")


@dataclass(frozen=True, slots=True)
class BuildTarget:
    """One platform-specific compile-and-package unit of work.

    ``artifact_path`` is relative to the workspace root.
    """

    name: str
    os: str
    binary: str
    asset_name: str
    artifact_path: str
    build_command: tuple[str, ...]
    rust_target: str | None = None
    strip: bool = True
    strip_command: tuple[str, ...] = ("strip",)

    @property
    def platform(self) -> Platform:
        return Platform.from_name(self.os)

    @property
    def is_cross(self) -> bool:
        return self.rust_target is not None

    @classmethod
    def from_config(cls, cfg: TargetConfig) -> BuildTarget:
        """Resolve defaults: cargo release build and its conventional output path."""
        exe = Platform.from_name(cfg.os).exe_name(cfg.binary)

        command = cfg.command
        if command is None:
            command = DEFAULT_BUILD_COMMAND
            if cfg.rust_target:
                command = (*command, "--target", cfg.rust_target)

        artifact_path = cfg.artifact_path
        if artifact_path is None:
            if cfg.rust_target:
                artifact_path = f"target/{cfg.rust_target}/release/{exe}"
            else:
                artifact_path = f"target/release/{exe}"

        return cls(
            name=cfg.name,
            os=cfg.os,
            binary=cfg.binary,
            asset_name=cfg.asset_name,
            artifact_path=artifact_path,
            build_command=command,
            rust_target=cfg.rust_target,
            strip=cfg.strip,
            strip_command=cfg.strip_command,
        )

    def output_path(self, workspace_root: Path) -> Path:
        p = Path(self.artifact_path)
        return p if p.is_absolute() else workspace_root / p


@dataclass(frozen=True, slots=True)
class Artifact:
    """A stripped binary committed to the artifact store."""

    asset_name: str
    path: Path
    size: int
    sha256: str
    target: str | None = None


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    tag: str
    url: str
    asset_names: tuple[str, ...]


def _empty_artifacts() -> list[Artifact]:
    return []


@dataclass
class Release:
    """Release being assembled for a tag.

    Artifacts are only appended; once ``mark_published`` has run the release
    is frozen and further attachments are refused.
    """

    tag: str
    credential: str | None = field(default=None, repr=False)
    artifacts: list[Artifact] = field(default_factory=_empty_artifacts)
    published: bool = False

    @property
    def asset_names(self) -> tuple[str, ...]:
        return tuple(a.asset_name for a in self.artifacts)

    def attach(self, artifact: Artifact) -> Result[None, PublishError]:
        if self.published:
            return Err(
                PublishError(
                    kind="already_published",
                    message=f"release {self.tag} is already published",
                )
            )
        if artifact.asset_name in self.asset_names:
            return Err(
                PublishError(
                    kind="incomplete_artifacts",
                    message=f"asset attached twice: {artifact.asset_name}",
                )
            )
        self.artifacts.append(artifact)
        return Ok(None)

    def validate(self, expected: tuple[str, ...]) -> Result[None, PublishError]:
        """Check the artifact set is non-empty and covers exactly ``expected``."""
        if not self.artifacts:
            return Err(
                PublishError(
                    kind="incomplete_artifacts",
                    message=f"refusing to publish {self.tag} with no artifacts",
                )
            )
        missing = sorted(set(expected) - set(self.asset_names))
        if missing:
            return Err(
                PublishError(
                    kind="incomplete_artifacts",
                    message=f"missing artifacts for {self.tag}: {', '.join(missing)}",
                    hint="Every configured target must build before publishing",
                )
            )
        unexpected = sorted(set(self.asset_names) - set(expected))
        if unexpected:
            return Err(
                PublishError(
                    kind="incomplete_artifacts",
                    message=f"unexpected artifacts for {self.tag}: {', '.join(unexpected)}",
                )
            )
        return Ok(None)

    def mark_published(self) -> Result[None, PublishError]:
        if self.published:
            return Err(
                PublishError(
                    kind="already_published",
                    message=f"release {self.tag} is already published",
                )
            )
        self.published = True
        return Ok(None)
