from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from tagrel.core.result import Err, Ok, Result
from tagrel.core.structured import as_str_dict, get_bool, get_list, get_str
from tagrel.pipeline.release.errors import PublishError, PublishErrorKind
from tagrel.pipeline.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)
from tagrel.platform.process import ProcessError, merged_env
from tagrel.platform.process import run as run_process

_RELEASE_JSON_FIELDS = "tagName,url,isDraft,assets"


@dataclass(frozen=True, slots=True)
class GhRelease:
    tag: str
    url: str
    is_draft: bool
    asset_names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class GhTarget:
    """Where and as whom gh operates: repo slug (None = infer from checkout) and token."""

    workspace_root: Path
    repo: str | None = None
    token: str | None = None

    def repo_args(self) -> list[str]:
        return ["--repo", self.repo] if self.repo else []

    def env(self) -> dict[str, str] | None:
        return merged_env({"GH_TOKEN": self.token} if self.token else None)


def _error_text(error: ProcessError) -> str:
    return f"{error.stderr}\n{error.stdout}".lower()


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = _error_text(error)
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_auth_error(error: ProcessError) -> bool:
    text = _error_text(error)
    markers = ("http 401", "bad credentials", "authentication", "gh auth login", "http 403")
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    return "release not found" in _error_text(error) or "http 404" in _error_text(error)


def _is_duplicate(error: ProcessError) -> bool:
    text = _error_text(error)
    return "already_exists" in text or "already exists" in text


def classify_gh_error(
    error: ProcessError, *, default: PublishErrorKind, message: str
) -> PublishError:
    """Map a failed gh invocation onto a publish error kind."""
    kind: PublishErrorKind = default
    if _is_auth_error(error):
        kind = "auth_failed"
    elif _is_duplicate(error):
        kind = "duplicate_tag"
    elif _is_transient_gh_error(error):
        kind = "network"
    return PublishError(kind=kind, message=message, hint=error.stderr.strip() or None)


def run_gh_read(
    *,
    gh: GhTarget,
    cmd: list[str],
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    """Run an idempotent gh query, retrying transient network failures."""
    attempts = max(1, retry_attempts)
    last: ProcessError | None = None
    for attempt in range(attempts):
        result = run_process(cmd, cwd=gh.workspace_root, env=gh.env(), timeout=timeout)
        if isinstance(result, Ok):
            return result

        last = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(last):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue
        break

    assert last is not None
    return Err(last)


def ensure_gh_available() -> Result[None, PublishError]:
    if shutil.which("gh") is None:
        return Err(
            PublishError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, gh: GhTarget) -> Result[None, PublishError]:
    result = run_process(
        ["gh", "auth", "status"],
        cwd=gh.workspace_root,
        env=gh.env(),
        timeout=GH_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="auth_failed",
                message="gh auth required",
                hint="Set the release token env var or run: gh auth login",
            )
        )
    return Ok(None)


def _parse_release(payload: str) -> Result[GhRelease, PublishError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            PublishError(kind="invalid_response", message=f"invalid JSON from gh release view: {e}")
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(PublishError(kind="invalid_response", message="unexpected release payload"))

    tag = get_str(data, "tagName")
    url = get_str(data, "url")
    is_draft = get_bool(data, "isDraft")
    if tag is None or url is None or is_draft is None:
        return Err(
            PublishError(kind="invalid_response", message="release payload missing fields")
        )

    names: list[str] = []
    for item in get_list(data, "assets") or []:
        asset = as_str_dict(item)
        if asset is None:
            continue
        name = get_str(asset, "name")
        if name is not None:
            names.append(name)

    return Ok(GhRelease(tag=tag, url=url, is_draft=is_draft, asset_names=tuple(names)))


def view_release(*, gh: GhTarget, tag: str) -> Result[GhRelease | None, PublishError]:
    """Fetch the release for ``tag``; Ok(None) when there is none."""
    cmd = ["gh", "release", "view", tag, *gh.repo_args(), "--json", _RELEASE_JSON_FIELDS]
    result = run_gh_read(gh=gh, cmd=cmd)
    if isinstance(result, Err):
        if _is_not_found(result.error):
            return Ok(None)
        return Err(
            classify_gh_error(
                result.error, default="network", message=f"failed to query release {tag}"
            )
        )
    return _parse_release(result.value)


def create_draft_release(
    *,
    gh: GhTarget,
    tag: str,
    files: list[Path],
    title: str,
    notes: str,
    generate_notes: bool,
    prerelease: bool,
) -> Result[str, PublishError]:
    """Create a draft release for ``tag`` with ``files`` uploaded as assets.

    Returns the release URL printed by gh.
    """
    cmd = ["gh", "release", "create", tag, *[str(f) for f in files]]
    cmd += [*gh.repo_args(), "--draft", "--verify-tag", "--title", title]
    if generate_notes:
        cmd.append("--generate-notes")
        if notes:
            cmd += ["--notes", notes]
    else:
        cmd += ["--notes", notes]
    if prerelease:
        cmd.append("--prerelease")

    result = run_process(
        cmd, cwd=gh.workspace_root, env=gh.env(), timeout=GH_UPLOAD_TIMEOUT_SECONDS
    )
    if isinstance(result, Err):
        return Err(
            classify_gh_error(
                result.error,
                default="upload_failed",
                message=f"failed to create release {tag}",
            )
        )
    return Ok(result.value.strip())


def publish_draft(*, gh: GhTarget, tag: str) -> Result[None, PublishError]:
    cmd = ["gh", "release", "edit", tag, *gh.repo_args(), "--draft=false"]
    result = run_process(cmd, cwd=gh.workspace_root, env=gh.env(), timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            classify_gh_error(
                result.error,
                default="upload_failed",
                message=f"failed to publish release {tag}",
            )
        )
    return Ok(None)


def delete_release(*, gh: GhTarget, tag: str) -> Result[None, PublishError]:
    """Delete the release record for ``tag``; the git tag itself is kept."""
    cmd = ["gh", "release", "delete", tag, *gh.repo_args(), "--yes"]
    result = run_process(cmd, cwd=gh.workspace_root, env=gh.env(), timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            classify_gh_error(
                result.error,
                default="upload_failed",
                message=f"failed to delete draft release {tag}",
            )
        )
    return Ok(None)
