from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal


@dataclass(frozen=True, slots=True)
class TriggerError:
    kind: Literal["no_tag", "ambiguous_tag", "invalid_event"]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ToolchainMissing:
    tool: str
    hint: str


@dataclass(frozen=True, slots=True)
class ToolchainError:
    """Compiler or stripper exited non-zero."""

    target: str
    step: Literal["compile", "strip"]
    returncode: int
    command: tuple[str, ...]
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ArtifactMissingError:
    """The compiler succeeded but the binary is not at the configured path."""

    target: str
    path: Path


@dataclass(frozen=True, slots=True)
class PlatformMismatch:
    target: str
    required: str
    host: str


@dataclass(frozen=True, slots=True)
class StoreError:
    kind: Literal["exists", "missing", "invalid_name", "corrupt", "io"]
    message: str
    path: Path | None = None


BuildError = (
    ToolchainMissing | ToolchainError | ArtifactMissingError | PlatformMismatch | StoreError
)
