"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagrel.core.config import ConfigError
from tagrel.core.errors import ErrorCode
from tagrel.output.console import Style
from tagrel.pipeline.errors import (
    ArtifactMissingError,
    BuildError,
    PlatformMismatch,
    StoreError,
    ToolchainError,
    ToolchainMissing,
    TriggerError,
)
from tagrel.pipeline.release.errors import PublishError

if TYPE_CHECKING:
    from tagrel.output.console import ConsoleProtocol

__all__ = ["PipelineError", "print_error", "error_exit_code"]

PipelineError = BuildError | PublishError | TriggerError | ConfigError


def print_error(error: PipelineError, console: ConsoleProtocol) -> None:
    """Print a pipeline error with its hint or captured tool output."""
    match error:
        case ToolchainMissing(tool=tool, hint=hint):
            console.error(f"{tool}: missing")
            console.print(f"hint: {hint}", Style.DIM)
        case ToolchainError(target=target, step=step, returncode=rc, detail=detail):
            console.error(f"{target}: {step} failed (exit {rc})")
            if detail:
                console.print(detail, Style.DIM)
        case ArtifactMissingError(target=target, path=path):
            console.error(f"{target}: binary not found after build: {path}")
            console.print("hint: check artifact_path in tagrel.toml", Style.DIM)
        case PlatformMismatch(target=target, required=required, host=host):
            console.error(f"{target}: builds on {required}, this host is {host}")
            console.print("hint: set rust_target to cross-compile", Style.DIM)
        case StoreError(message=message, path=path):
            console.error(message)
            if path is not None:
                console.print(str(path), Style.DIM)
        case PublishError(message=message, hint=hint) | TriggerError(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case ConfigError(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def error_exit_code(error: PipelineError) -> int:
    """Get exit code for a pipeline error."""
    match error:
        case ToolchainMissing() | PlatformMismatch():
            return int(ErrorCode.ENV_ERROR)
        case ToolchainError() | ArtifactMissingError():
            return int(ErrorCode.BUILD_ERROR)
        case StoreError():
            return int(ErrorCode.IO_ERROR)
        case PublishError(kind="gh_missing"):
            return int(ErrorCode.ENV_ERROR)
        case PublishError():
            return int(ErrorCode.PUBLISH_ERROR)
        case TriggerError() | ConfigError():
            return int(ErrorCode.USER_ERROR)
    return int(ErrorCode.USER_ERROR)
