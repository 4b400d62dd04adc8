"""Build runner: compile, strip and store one target.

For each target the runner:
1. refuses targets for another OS unless they cross-compile (``rust_target``)
2. checks the compiler and stripper are on PATH
3. runs the release build with locked dependencies (``cargo build --release --locked``)
4. locates the binary at the target's ``artifact_path``
5. stages a copy in the artifact store and strips debug symbols from the copy
6. commits the stripped copy under the target's asset name
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from tagrel.core.result import Err, Ok, Result
from tagrel.output.console import ConsoleProtocol, Style
from tagrel.pipeline.errors import (
    ArtifactMissingError,
    BuildError,
    PlatformMismatch,
    ToolchainError,
)
from tagrel.pipeline.model import Artifact, BuildTarget
from tagrel.pipeline.store import ArtifactStore
from tagrel.pipeline.timeouts import COMPILE_TIMEOUT_SECONDS, STRIP_TIMEOUT_SECONDS
from tagrel.pipeline.toolchain import ensure_toolchain
from tagrel.platform.detection import PlatformInfo
from tagrel.platform.process import ProcessError, run, run_silent


class BuildRunner:
    """Produce exactly one stored artifact per ``build`` call."""

    def __init__(
        self,
        *,
        workspace_root: Path,
        platform: PlatformInfo,
        store: ArtifactStore,
        console: ConsoleProtocol,
        stream_output: bool = True,
    ) -> None:
        self._root = workspace_root
        self._platform = platform
        self._store = store
        self._console = console
        self._stream_output = stream_output

    def commands(self, target: BuildTarget) -> list[list[str]]:
        """The external commands ``build`` would run, in order."""
        cmds = [list(target.build_command)]
        if target.strip:
            # The real staged file name is only known once the copy exists.
            cmds.append([*target.strip_command, f"<staged copy of {target.artifact_path}>"])
        return cmds

    def check_platform(self, target: BuildTarget) -> Result[None, PlatformMismatch]:
        if target.is_cross or target.platform == self._platform.platform:
            return Ok(None)
        return Err(
            PlatformMismatch(
                target=target.name,
                required=target.os,
                host=str(self._platform.platform),
            )
        )

    def build(self, target: BuildTarget, *, dry_run: bool = False) -> Result[Artifact, BuildError]:
        """Build ``target`` and store its stripped binary.

        Returns:
            Ok(Artifact) for the committed file (a placeholder in dry-run mode)
            Err(BuildError) if any step fails; nothing is stored in that case
        """
        platform_ok = self.check_platform(target)
        if isinstance(platform_ok, Err):
            return platform_ok

        if dry_run:
            for cmd in self.commands(target):
                self._console.print(" ".join(cmd), Style.DIM)
            return Ok(
                Artifact(
                    asset_name=target.asset_name,
                    path=self._store.run_dir / target.asset_name,
                    size=0,
                    sha256="",
                    target=target.name,
                )
            )

        tools = ensure_toolchain(target)
        if isinstance(tools, Err):
            return tools

        compiled = self._exec(list(target.build_command), timeout=COMPILE_TIMEOUT_SECONDS)
        if isinstance(compiled, Err):
            return Err(self._toolchain_error(target, "compile", compiled.error))

        output = target.output_path(self._root)
        if not output.is_file():
            return Err(ArtifactMissingError(target=target.name, path=output))

        staged = self._store.stage(target.asset_name, output)
        if isinstance(staged, Err):
            return staged

        if target.strip:
            strip_cmd = [*target.strip_command, str(staged.value)]
            stripped = self._exec(strip_cmd, timeout=STRIP_TIMEOUT_SECONDS)
            if isinstance(stripped, Err):
                self._store.discard(staged.value)
                return Err(self._toolchain_error(target, "strip", stripped.error))

        return self._store.commit(target.asset_name, staged.value, target=target.name)

    def _exec(self, cmd: list[str], *, timeout: float) -> Result[None, ProcessError]:
        self._console.print(" ".join(cmd), Style.DIM)
        if self._stream_output:
            return run_silent(cmd, cwd=self._root, timeout=timeout)
        result = run(cmd, cwd=self._root, timeout=timeout)
        if isinstance(result, Err):
            return result
        return Ok(None)

    @staticmethod
    def _toolchain_error(
        target: BuildTarget, step: Literal["compile", "strip"], error: ProcessError
    ) -> ToolchainError:
        return ToolchainError(
            target=target.name,
            step=step,
            returncode=error.returncode,
            command=error.command,
            detail=error.stderr_tail(),
        )
