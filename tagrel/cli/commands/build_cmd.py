"""Build command - build targets into the artifact store."""

from __future__ import annotations

import typer

from tagrel.cli.commands._helpers import require_targets, require_trigger, unwrap_or_exit
from tagrel.cli.context import build_context
from tagrel.core.errors import ErrorCode
from tagrel.core.result import Err, Ok
from tagrel.output.console import Style
from tagrel.output.errors import error_exit_code, print_error
from tagrel.pipeline.runner import run_id_for


def build(
    target: list[str] | None = typer.Option(
        None, "--target", help="Target to build (repeatable; default: all)", show_default=False
    ),
    tag_name: str | None = typer.Option(
        None, "--tag", help="Release tag (default: CI event or git)", show_default=False
    ),
    run_id: str | None = typer.Option(
        None, "--run-id", help="Artifact store key (default: derived from the tag)"
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel builds"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print commands without running"),
    clean: bool = typer.Option(
        False, "--clean", help="Delete artifacts left in this run before building"
    ),
) -> None:
    """Build targets and store their stripped binaries for `tagrel publish`."""
    ctx = build_context()
    runner = ctx.runner(jobs=jobs)
    event = require_trigger(ctx, runner, tag_name)
    targets = require_targets(ctx, target)

    try:
        store = runner.store(run_id or run_id_for(event.tag))
    except ValueError as e:
        ctx.console.error(str(e))
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if clean and not dry_run:
        unwrap_or_exit(store.remove(), ctx)

    ctx.console.header(f"Build {len(targets)} target(s) for {event.tag}")
    outcomes = runner.build_all(targets, store, dry_run=dry_run)

    exit_code = int(ErrorCode.OK)
    for outcome in outcomes:
        match outcome.result:
            case Ok(artifact):
                ctx.console.success(f"{outcome.target}: {artifact.path}")
                if artifact.sha256:
                    ctx.console.print(f"sha256 {artifact.sha256}", Style.DIM)
            case Err(error):
                print_error(error, ctx.console)
                if exit_code == int(ErrorCode.OK):
                    exit_code = error_exit_code(error)

    if exit_code != int(ErrorCode.OK):
        raise typer.Exit(code=exit_code)
