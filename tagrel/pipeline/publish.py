"""Release publisher.

Turns a complete artifact set into one published GitHub release:

1. assemble the Release and check it covers every configured asset
2. make sure gh is installed and authenticated with the release token
3. refuse to touch a tag that already has a release
4. create a draft with all assets attached
5. check the draft carries exactly the expected assets
6. flip the draft to published

A failure after step 4 deletes the draft, so the tag never ends up with a
published release missing assets. Atomicity of the upload itself is left to
GitHub.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from tagrel.core.config import ReleaseConfig
from tagrel.core.result import Err, Ok, Result
from tagrel.output.console import ConsoleProtocol, Style
from tagrel.pipeline.model import Artifact, PublishedRelease, Release
from tagrel.pipeline.release import gh as gh_api
from tagrel.pipeline.release.errors import PublishError


class ReleasePublisher:
    def __init__(
        self,
        *,
        workspace_root: Path,
        config: ReleaseConfig,
        console: ConsoleProtocol,
        env: Mapping[str, str],
    ) -> None:
        self._root = workspace_root
        self._config = config
        self._console = console
        self._env = env

    def credential(self) -> str | None:
        """Token from the configured env var, falling back to GH_TOKEN."""
        return self._env.get(self._config.token_env) or self._env.get("GH_TOKEN") or None

    def repo(self) -> str | None:
        return self._config.repo or self._env.get("GITHUB_REPOSITORY") or None

    def title(self, tag: str) -> str:
        return self._config.title.replace("{tag}", tag)

    def assemble(
        self, tag: str, artifacts: Sequence[Artifact], expected: tuple[str, ...]
    ) -> Result[Release, PublishError]:
        release = Release(tag=tag, credential=self.credential())
        for artifact in artifacts:
            attached = release.attach(artifact)
            if isinstance(attached, Err):
                return attached
        valid = release.validate(expected)
        if isinstance(valid, Err):
            return valid
        return Ok(release)

    def publish(
        self,
        tag: str,
        artifacts: Sequence[Artifact],
        *,
        expected: tuple[str, ...],
        dry_run: bool = False,
    ) -> Result[PublishedRelease, PublishError]:
        assembled = self.assemble(tag, artifacts, expected)
        if isinstance(assembled, Err):
            return assembled
        release = assembled.value

        gh = gh_api.GhTarget(workspace_root=self._root, repo=self.repo(), token=release.credential)
        files = [a.path for a in release.artifacts]
        where = f" ({gh.repo})" if gh.repo else ""
        self._console.print(
            f"gh release create {tag} {' '.join(a.asset_name for a in release.artifacts)}{where}",
            Style.DIM,
        )
        if dry_run:
            return Ok(PublishedRelease(tag=tag, url="(dry-run)", asset_names=release.asset_names))

        available = gh_api.ensure_gh_available()
        if isinstance(available, Err):
            return available
        if release.credential is None:
            auth = gh_api.ensure_gh_auth(gh=gh)
            if isinstance(auth, Err):
                return auth

        existing = gh_api.view_release(gh=gh, tag=tag)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            state = "draft" if existing.value.is_draft else "published"
            return Err(
                PublishError(
                    kind="duplicate_tag",
                    message=f"a {state} release already exists for {tag}",
                    hint=existing.value.url,
                )
            )

        created = gh_api.create_draft_release(
            gh=gh,
            tag=tag,
            files=files,
            title=self.title(tag),
            notes=self._config.notes,
            generate_notes=self._config.generate_notes,
            prerelease=self._config.prerelease,
        )
        if isinstance(created, Err):
            if created.error.kind != "duplicate_tag":
                self._discard_draft(gh, tag)
            return created

        draft = gh_api.view_release(gh=gh, tag=tag)
        if isinstance(draft, Err):
            self._discard_draft(gh, tag)
            return draft
        if draft.value is None:
            return Err(
                PublishError(
                    kind="upload_failed",
                    message=f"draft release for {tag} vanished after creation",
                )
            )
        if sorted(draft.value.asset_names) != sorted(release.asset_names):
            self._discard_draft(gh, tag)
            return Err(
                PublishError(
                    kind="upload_failed",
                    message=f"draft release for {tag} is missing assets",
                    hint=(
                        f"expected {', '.join(sorted(release.asset_names))}; "
                        f"got {', '.join(sorted(draft.value.asset_names)) or 'none'}"
                    ),
                )
            )

        published = gh_api.publish_draft(gh=gh, tag=tag)
        if isinstance(published, Err):
            self._discard_draft(gh, tag)
            return published

        finalized = release.mark_published()
        if isinstance(finalized, Err):
            return finalized

        # Draft URLs point at an untagged page; read back the final one.
        url = created.value or draft.value.url
        final = gh_api.view_release(gh=gh, tag=tag)
        if isinstance(final, Ok) and final.value is not None:
            url = final.value.url
        return Ok(PublishedRelease(tag=tag, url=url, asset_names=release.asset_names))

    def _discard_draft(self, gh: gh_api.GhTarget, tag: str) -> None:
        """Delete the release for ``tag`` only if it is still a draft."""
        current = gh_api.view_release(gh=gh, tag=tag)
        if isinstance(current, Err) or current.value is None or not current.value.is_draft:
            return
        deleted = gh_api.delete_release(gh=gh, tag=tag)
        if isinstance(deleted, Err):
            self._console.warning(f"could not delete draft release {tag}: {deleted.error.pretty()}")
        else:
            self._console.print(f"deleted draft release {tag}", Style.DIM)
