from __future__ import annotations

import typer

from tagrel.cli.commands._helpers import require_targets
from tagrel.cli.context import CLIContext, build_context
from tagrel.core.errors import ErrorCode
from tagrel.core.result import Ok
from tagrel.git.repository import Repository
from tagrel.output.console import Style
from tagrel.pipeline.build import BuildRunner
from tagrel.pipeline.model import BuildTarget
from tagrel.pipeline.toolchain import required_tools, tool_status


def plan(
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero if a tool is missing"),
) -> None:
    """Show targets, the commands they run, and toolchain status."""
    ctx = build_context()
    targets = require_targets(ctx)

    where = "$TAGREL_WORKSPACE" if ctx.workspace_source == "env" else "current directory"
    ctx.console.print(f"workspace: {ctx.workspace.root} (from {where})", Style.DIM)
    ctx.console.print(f"platform: {ctx.platform}", Style.DIM)
    repo = Repository(ctx.workspace.root)
    if repo.exists():
        head = repo.head_sha()
        if isinstance(head, Ok):
            ctx.console.print(f"commit: {head.value}", Style.DIM)
    ctx.console.print(f"tags: {', '.join(ctx.config.trigger.tags)}", Style.DIM)

    missing = False
    for target in targets:
        missing |= not _print_target(ctx, target)

    if missing and strict:
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))


def _print_target(ctx: CLIContext, target: BuildTarget) -> bool:
    console = ctx.console
    console.header(f"{target.name} ({target.os}) -> {target.asset_name}")

    runner = BuildRunner(
        workspace_root=ctx.workspace.root,
        platform=ctx.platform,
        store=ctx.runner().store("plan"),
        console=console,
    )
    platform_ok = runner.check_platform(target)
    if not platform_ok.is_ok():
        console.warning(f"builds on {target.os}, this host is {ctx.platform.platform}")

    for cmd in runner.commands(target):
        console.print(" ".join(cmd), Style.DIM)
    console.print(f"binary: {target.output_path(ctx.workspace.root)}", Style.DIM)

    all_found = True
    for tool in required_tools(target):
        status = tool_status(tool, cwd=ctx.workspace.root)
        if status.found:
            console.success(f"{tool}: {status.version or status.path}")
        else:
            all_found = False
            console.error(f"{tool}: missing")
    return all_found
