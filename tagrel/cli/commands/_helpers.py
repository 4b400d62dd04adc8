"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from tagrel.core.errors import ErrorCode
from tagrel.core.result import Err, Result
from tagrel.output.errors import PipelineError, error_exit_code, print_error
from tagrel.pipeline.runner import select_targets
from tagrel.pipeline.trigger import TagEvent

if TYPE_CHECKING:
    from tagrel.cli.context import CLIContext
    from tagrel.pipeline.model import BuildTarget
    from tagrel.pipeline.runner import PipelineRunner


T = TypeVar("T")


def unwrap_or_exit(result: Result[T, PipelineError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        print_error(result.error, ctx.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)


def require_trigger(ctx: CLIContext, runner: PipelineRunner, tag: str | None) -> TagEvent:
    """Resolve the triggering tag; a tag outside the filter exits 0 without doing anything."""
    event = unwrap_or_exit(runner.trigger(tag), ctx)
    if event is None:
        shown = tag or "tag"
        ctx.console.info(
            f"{shown} does not match trigger patterns "
            f"({', '.join(runner.tag_filter.patterns)}); nothing to do"
        )
        exit_with_code(int(ErrorCode.OK))
    return event


def require_targets(ctx: CLIContext, names: list[str] | None = None) -> list[BuildTarget]:
    selected = select_targets(ctx.config, names or [])
    if isinstance(selected, Err):
        ctx.console.error(selected.error)
        exit_with_code(int(ErrorCode.USER_ERROR))
    return selected.value
