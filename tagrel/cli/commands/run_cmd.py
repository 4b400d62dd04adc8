"""Run command - the whole pipeline in one process."""

from __future__ import annotations

import typer

from tagrel.cli.commands._helpers import require_targets, require_trigger
from tagrel.cli.context import CLIContext, build_context
from tagrel.core.errors import ErrorCode
from tagrel.core.result import Err, Ok
from tagrel.output.console import Style
from tagrel.output.errors import error_exit_code, print_error
from tagrel.pipeline.runner import PipelineReport


def run(
    tag_name: str | None = typer.Option(
        None, "--tag", help="Release tag (default: CI event or git)", show_default=False
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel builds"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without running"),
    keep_artifacts: bool = typer.Option(
        False, "--keep-artifacts", help="Keep the run's artifact directory afterwards"
    ),
) -> None:
    """Build every target and publish the release once all builds succeed."""
    ctx = build_context()
    runner = ctx.runner(jobs=jobs)
    event = require_trigger(ctx, runner, tag_name)
    targets = require_targets(ctx)

    report = runner.run(event, targets, dry_run=dry_run, keep_artifacts=keep_artifacts)
    raise typer.Exit(code=_print_report(ctx, report))


def _print_report(ctx: CLIContext, report: PipelineReport) -> int:
    console = ctx.console
    exit_code = int(ErrorCode.OK)

    for outcome in report.outcomes:
        match outcome.result:
            case Ok(artifact):
                console.success(f"{outcome.target}: {artifact.asset_name}")
            case Err(error):
                print_error(error, console)
                if exit_code == int(ErrorCode.OK):
                    exit_code = error_exit_code(error)

    if report.release is None:
        failed = [o.target for o in report.failed_targets]
        if failed:
            console.error(f"{', '.join(failed)} failed; release {report.tag} not published")
        if report.failed_step is not None:
            console.print(f"failed step: {report.failed_step}", Style.DIM)
        return exit_code

    match report.release:
        case Ok(released):
            console.success(f"released {released.tag}: {released.url}")
            console.print(f"assets: {', '.join(released.asset_names)}", Style.DIM)
        case Err(error):
            print_error(error, console)
            exit_code = error_exit_code(error)
            console.print(f"failed step: {report.failed_step}", Style.DIM)
    return exit_code
