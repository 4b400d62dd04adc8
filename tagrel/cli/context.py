from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import typer

from tagrel.core.config import Config, load_config
from tagrel.core.errors import ErrorCode
from tagrel.core.result import Err
from tagrel.core.workspace import Workspace, WorkspaceSource, detect_workspace_info
from tagrel.output.console import ConsoleProtocol, RichConsole, Style
from tagrel.pipeline.runner import PipelineRunner
from tagrel.platform.detection import PlatformInfo, detect


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    platform: PlatformInfo
    config: Config
    console: ConsoleProtocol
    env: Mapping[str, str]
    workspace_source: WorkspaceSource = "cwd"

    def runner(self, *, jobs: int | None = None) -> PipelineRunner:
        return PipelineRunner(
            workspace_root=self.workspace.root,
            config=self.config,
            platform=self.platform,
            console=self.console,
            env=self.env,
            artifacts_root=self.workspace.artifacts_dir(self.config.build.artifacts_dir),
            jobs=jobs,
        )


def build_context() -> CLIContext:
    console = RichConsole()

    workspace_result = detect_workspace_info()
    if isinstance(workspace_result, Err):
        console.error(workspace_result.error.message)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    workspace = workspace_result.value.workspace

    config_result = load_config(workspace.config_path)
    if isinstance(config_result, Err):
        console.error(config_result.error.message)
        if config_result.error.hint:
            console.print(f"hint: {config_result.error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(
        workspace=workspace,
        platform=detect(),
        config=config_result.value,
        console=console,
        env=dict(os.environ),
        workspace_source=workspace_result.value.source,
    )
