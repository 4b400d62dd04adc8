"""Pipeline orchestration: trigger -> parallel builds -> barrier -> publish.

Each target builds on its own worker thread with its own output prefix.
Workers share nothing but the artifact store, whose names are write-once.
The publisher starts only after every worker finished successfully; one
failed target leaves running siblings alone but cancels publication.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from tagrel.core.config import Config
from tagrel.core.result import Err, Ok, Result
from tagrel.git.repository import Repository
from tagrel.output.console import ConsoleProtocol, PrefixedConsole
from tagrel.pipeline.build import BuildRunner
from tagrel.pipeline.errors import BuildError, StoreError, TriggerError
from tagrel.pipeline.model import Artifact, BuildTarget, PublishedRelease
from tagrel.pipeline.publish import ReleasePublisher
from tagrel.pipeline.release.errors import PublishError
from tagrel.pipeline.store import ArtifactStore
from tagrel.pipeline.trigger import TagEvent, TagFilter, resolve_tag
from tagrel.platform.detection import PlatformInfo


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    target: str
    result: Result[Artifact, BuildError]

    @property
    def ok(self) -> bool:
        return isinstance(self.result, Ok)


@dataclass(frozen=True, slots=True)
class PipelineReport:
    """Outcome of one pipeline run.

    ``failed_step`` names the first failing step (``build:<target>`` or
    ``publish``); ``release`` stays None whenever a build failed.
    """

    tag: str
    run_id: str
    outcomes: tuple[TargetOutcome, ...]
    release: Result[PublishedRelease, PublishError] | None = None
    failed_step: str | None = None

    @property
    def ok(self) -> bool:
        return self.failed_step is None

    @property
    def failed_targets(self) -> tuple[TargetOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)


def run_id_for(tag: str) -> str:
    """Default store key for a tag; slashes are not allowed in directory names."""
    return tag.replace("/", "_").replace("\\", "_")


def fresh_run_id(tag: str) -> str:
    return f"{run_id_for(tag)}-{uuid4().hex[:8]}"


def select_targets(config: Config, names: Sequence[str] = ()) -> Result[list[BuildTarget], str]:
    """Resolve configured targets, optionally restricted to ``names`` (in config order)."""
    if not config.targets:
        return Err("no [[targets]] configured")
    unknown = [n for n in names if config.target(n) is None]
    if unknown:
        return Err(
            f"unknown target(s): {', '.join(unknown)} "
            f"(available: {', '.join(config.target_names)})"
        )
    wanted = set(names)
    return Ok(
        [BuildTarget.from_config(t) for t in config.targets if not wanted or t.name in wanted]
    )


class PipelineRunner:
    def __init__(
        self,
        *,
        workspace_root: Path,
        config: Config,
        platform: PlatformInfo,
        console: ConsoleProtocol,
        env: Mapping[str, str],
        artifacts_root: Path,
        jobs: int | None = None,
    ) -> None:
        self._root = workspace_root
        self._config = config
        self._platform = platform
        self._console = console
        self._env = env
        self._artifacts_root = artifacts_root
        self._jobs = jobs or config.build.jobs

    @property
    def tag_filter(self) -> TagFilter:
        return TagFilter(self._config.trigger.tags)

    def trigger(self, explicit_tag: str | None = None) -> Result[TagEvent | None, TriggerError]:
        """Resolve the tag event; Ok(None) when the tag does not match the filter."""
        tag_filter = self.tag_filter
        event = resolve_tag(
            explicit=explicit_tag,
            env=self._env,
            repo=Repository(self._root),
            tag_filter=tag_filter,
        )
        if isinstance(event, Err):
            return event
        if not tag_filter.matches(event.value.tag):
            return Ok(None)
        return Ok(event.value)

    def store(self, run_id: str) -> ArtifactStore:
        return ArtifactStore(self._artifacts_root, run_id)

    def build_all(
        self,
        targets: Sequence[BuildTarget],
        store: ArtifactStore,
        *,
        dry_run: bool = False,
    ) -> tuple[TargetOutcome, ...]:
        """Build every target concurrently and wait for all of them."""
        if not targets:
            return ()
        workers = max(1, min(self._jobs or len(targets), len(targets)))
        # Captured output when several builds share the terminal.
        stream = workers == 1

        def build_one(target: BuildTarget) -> TargetOutcome:
            runner = BuildRunner(
                workspace_root=self._root,
                platform=self._platform,
                store=store,
                console=PrefixedConsole(self._console, target.name),
                stream_output=stream,
            )
            return TargetOutcome(target=target.name, result=runner.build(target, dry_run=dry_run))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(build_one, t) for t in targets]
            return tuple(fut.result() for fut in futures)

    def publisher(self) -> ReleasePublisher:
        return ReleasePublisher(
            workspace_root=self._root,
            config=self._config.release,
            console=self._console,
            env=self._env,
        )

    def publish_from_store(
        self,
        tag: str,
        store: ArtifactStore,
        targets: Sequence[BuildTarget],
        *,
        dry_run: bool = False,
        keep_artifacts: bool = False,
    ) -> Result[PublishedRelease, PublishError | StoreError]:
        """Collect the run's artifacts from the store and publish them.

        The run directory is removed once the release is published, unless
        ``keep_artifacts`` is set.
        """
        expected = {t.asset_name for t in targets}
        stray = sorted(set(store.names()) - expected)
        if stray:
            self._console.warning(
                f"ignoring unexpected files in run {store.run_id}: {', '.join(stray)}"
            )

        collected: list[Artifact] = []
        for target in targets:
            art = store.get(target.asset_name)
            if isinstance(art, Err):
                if art.error.kind == "missing":
                    return Err(
                        PublishError(
                            kind="incomplete_artifacts",
                            message=f"no artifact from target {target.name}: {target.asset_name}",
                            hint=f"Run: tagrel build --target {target.name}",
                        )
                    )
                return art
            verified = store.verify(art.value)
            if isinstance(verified, Err):
                return verified
            collected.append(art.value)

        released = self.publisher().publish(
            tag,
            collected,
            expected=tuple(t.asset_name for t in targets),
            dry_run=dry_run,
        )
        if isinstance(released, Ok) and not dry_run and not keep_artifacts:
            self._remove_store(store)
        return released

    def _remove_store(self, store: ArtifactStore) -> None:
        removed = store.remove()
        if isinstance(removed, Err):
            self._console.warning(removed.error.message)

    def run(
        self,
        event: TagEvent,
        targets: Sequence[BuildTarget],
        *,
        run_id: str | None = None,
        dry_run: bool = False,
        keep_artifacts: bool = False,
    ) -> PipelineReport:
        """Build, wait for every target, then publish.

        The run's artifact directory is removed afterwards, whatever the
        outcome, unless ``keep_artifacts`` is set.
        """
        run_id = run_id or fresh_run_id(event.tag)
        store = self.store(run_id)
        try:
            return self._run(event, targets, store, dry_run=dry_run)
        finally:
            if not keep_artifacts:
                self._remove_store(store)

    def _run(
        self,
        event: TagEvent,
        targets: Sequence[BuildTarget],
        store: ArtifactStore,
        *,
        dry_run: bool,
    ) -> PipelineReport:
        run_id = store.run_id
        self._console.header(f"Build {len(targets)} target(s) for {event.tag}")
        outcomes = self.build_all(targets, store, dry_run=dry_run)
        failed = [o for o in outcomes if not o.ok]
        if failed:
            return PipelineReport(
                tag=event.tag,
                run_id=run_id,
                outcomes=outcomes,
                failed_step=f"build:{failed[0].target}",
            )

        self._console.header(f"Publish release {event.tag}")
        artifacts = [o.result.value for o in outcomes if isinstance(o.result, Ok)]
        release = self.publisher().publish(
            event.tag,
            artifacts,
            expected=tuple(t.asset_name for t in targets),
            dry_run=dry_run,
        )
        return PipelineReport(
            tag=event.tag,
            run_id=run_id,
            outcomes=outcomes,
            release=release,
            failed_step="publish" if isinstance(release, Err) else None,
        )
