"""Git repository queries used to discover the release tag.

All operations return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"))
    match repo.tags_at("HEAD"):
        case Ok(tags):
            print(tags)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tagrel.core.result import Err, Ok, Result
from tagrel.platform.process import ProcessError
from tagrel.platform.process import run as run_process

__all__ = ["GitError", "Repository"]

_GIT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """A local git checkout."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return (self._path / ".git").exists()

    def _git(self, *args: str) -> Result[str, GitError]:
        result = run_process(["git", *args], cwd=self._path, timeout=_GIT_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(_to_git_error(args[0], result.error))
        return Ok(result.value)

    def head_sha(self) -> Result[str, GitError]:
        result = self._git("rev-parse", "HEAD")
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def tags_at(self, ref: str = "HEAD") -> Result[list[str], GitError]:
        """Tags pointing at ``ref``, sorted by name."""
        result = self._git("tag", "--points-at", ref)
        if isinstance(result, Err):
            return result
        return Ok(sorted(line.strip() for line in result.value.splitlines() if line.strip()))

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        result = self._git("tag", "--list", tag)
        if isinstance(result, Err):
            return result
        return Ok(tag in (line.strip() for line in result.value.splitlines()))


def _to_git_error(subcommand: str, error: ProcessError) -> GitError:
    message = error.stderr.strip() or str(error)
    return GitError(command=subcommand, message=message, returncode=error.returncode)
