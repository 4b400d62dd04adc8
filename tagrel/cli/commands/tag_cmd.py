"""Tag command - show which tag would trigger a release."""

from __future__ import annotations

from pathlib import Path

import typer

from tagrel.cli.commands._helpers import unwrap_or_exit
from tagrel.cli.context import CLIContext, build_context
from tagrel.core.result import Ok
from tagrel.git.repository import Repository
from tagrel.output.console import Style


def tag(
    tag_name: str | None = typer.Option(
        None, "--tag", help="Tag to check (default: CI event or git)", show_default=False
    ),
    github_output: bool = typer.Option(
        False, "--github-output", help="Also write tag/matched to $GITHUB_OUTPUT"
    ),
) -> None:
    """Resolve the triggering tag and check it against the trigger patterns."""
    ctx = build_context()
    runner = ctx.runner()

    event = unwrap_or_exit(runner.trigger(tag_name), ctx)
    if event is None:
        shown = tag_name or "tag"
        ctx.console.warning(f"{shown}: does not match {', '.join(runner.tag_filter.patterns)}")
        matched, resolved = False, tag_name or ""
    else:
        ctx.console.success(event.tag)
        ctx.console.print(f"source: {event.source}", Style.DIM)
        _check_local_tag(ctx, event.tag)
        matched, resolved = True, event.tag

    if github_output:
        out = ctx.env.get("GITHUB_OUTPUT")
        if not out:
            ctx.console.warning("GITHUB_OUTPUT is not set; nothing written")
            return
        with Path(out).open("a", encoding="utf-8") as f:
            f.write(f"tag={resolved}\n")
            f.write(f"matched={'true' if matched else 'false'}\n")


def _check_local_tag(ctx: CLIContext, tag_name: str) -> None:
    # gh release create --verify-tag fails for tags unknown to the remote.
    repo = Repository(ctx.workspace.root)
    if not repo.exists():
        return
    exists = repo.tag_exists(tag_name)
    if isinstance(exists, Ok) and not exists.value:
        ctx.console.warning(f"tag {tag_name} does not exist in this checkout")
