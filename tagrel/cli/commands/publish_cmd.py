"""Publish command - release the artifacts stored by `tagrel build`."""

from __future__ import annotations

import typer

from tagrel.cli.commands._helpers import require_targets, require_trigger, unwrap_or_exit
from tagrel.cli.context import build_context
from tagrel.core.errors import ErrorCode
from tagrel.pipeline.runner import run_id_for


def publish(
    tag_name: str | None = typer.Option(
        None, "--tag", help="Release tag (default: CI event or git)", show_default=False
    ),
    run_id: str | None = typer.Option(
        None, "--run-id", help="Artifact store key (default: derived from the tag)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without publishing"),
    keep_artifacts: bool = typer.Option(
        False, "--keep-artifacts", help="Keep the stored artifacts after publishing"
    ),
) -> None:
    """Publish one release carrying every configured target's artifact."""
    ctx = build_context()
    runner = ctx.runner()
    event = require_trigger(ctx, runner, tag_name)
    targets = require_targets(ctx)

    try:
        store = runner.store(run_id or run_id_for(event.tag))
    except ValueError as e:
        ctx.console.error(str(e))
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    ctx.console.header(f"Publish release {event.tag}")
    released = unwrap_or_exit(
        runner.publish_from_store(
            event.tag, store, targets, dry_run=dry_run, keep_artifacts=keep_artifacts
        ),
        ctx,
    )
    ctx.console.success(released.url)
