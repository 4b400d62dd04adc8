from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "gh_missing",
    "auth_failed",
    "duplicate_tag",
    "upload_failed",
    "network",
    "incomplete_artifacts",
    "invalid_response",
    "already_published",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """Release creation or attachment was rejected."""

    kind: PublishErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
