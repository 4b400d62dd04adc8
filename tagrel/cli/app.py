from __future__ import annotations

import os
from pathlib import Path

import typer

from tagrel import __version__
from tagrel.cli.commands.build_cmd import build
from tagrel.cli.commands.plan_cmd import plan
from tagrel.cli.commands.publish_cmd import publish
from tagrel.cli.commands.run_cmd import run
from tagrel.cli.commands.tag_cmd import tag
from tagrel.core.errors import ErrorCode
from tagrel.core.workspace import WORKSPACE_ENV_VAR, is_workspace_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(tag)
app.command()(plan)
app.command()(build)
app.command()(publish)
app.command()(run)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_workspace_root(root):
            typer.echo(
                f"error: --workspace '{root}' is not a valid workspace (missing tagrel.toml)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[WORKSPACE_ENV_VAR] = str(root)


def main() -> None:
    app()
