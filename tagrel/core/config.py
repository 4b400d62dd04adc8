"""Typed configuration loading and access.

The pipeline is configured by ``tagrel.toml`` at the workspace root:

    [trigger]
    tags = ["v*"]

    [build]
    jobs = 2
    artifacts_dir = ".tagrel/artifacts"

    [[targets]]
    name = "linux"
    os = "linux"
    binary = "mongo-task-generator"
    asset_name = "mongo-task-generator"

    [release]
    repo = "owner/name"
    token_env = "GITHUB_TOKEN"

Every table is optional except ``[[targets]]``; at least one target must be
declared for the build and publish commands.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .patterns import compile_tag_pattern
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "Config",
    "ConfigError",
    "TriggerConfig",
    "BuildConfig",
    "TargetConfig",
    "ReleaseConfig",
    "CONFIG_FILENAME",
    "DEFAULT_ARTIFACTS_DIR",
    "DEFAULT_TOKEN_ENV",
    "SUPPORTED_OS",
    "load_config",
]

CONFIG_FILENAME = "tagrel.toml"
DEFAULT_ARTIFACTS_DIR = ".tagrel/artifacts"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
SUPPORTED_OS = ("linux", "macos", "windows")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    """Tag filter patterns, GitHub Actions glob syntax."""

    tags: tuple[str, ...] = ("*",)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    jobs: int | None = None
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """One ``[[targets]]`` entry as written in the file.

    Unset optional fields are resolved into a BuildTarget by the pipeline.
    """

    name: str
    os: str
    binary: str
    asset_name: str
    artifact_path: str | None = None
    rust_target: str | None = None
    command: tuple[str, ...] | None = None
    strip: bool = True
    strip_command: tuple[str, ...] = ("strip",)


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    repo: str | None = None
    token_env: str = DEFAULT_TOKEN_ENV
    title: str = "{tag}"
    notes: str = ""
    generate_notes: bool = False
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    trigger: TriggerConfig = field(default_factory=TriggerConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    targets: tuple[TargetConfig, ...] = ()
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    def target(self, name: str) -> TargetConfig | None:
        for t in self.targets:
            if t.name == name:
                return t
        return None

    @property
    def target_names(self) -> tuple[str, ...]:
        return tuple(t.name for t in self.targets)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[Config, str]:
        """Create Config from a mapping (parsed TOML).

        Returns Err(message) describing the first invalid entry.
        """
        trigger_tbl: StrDict = get_table(data, "trigger") or {}
        build_tbl: StrDict = get_table(data, "build") or {}
        release_tbl: StrDict = get_table(data, "release") or {}

        trigger = TriggerConfig()
        if "tags" in trigger_tbl:
            tags = get_str_list(trigger_tbl, "tags")
            if not tags:
                return Err("trigger.tags must be a non-empty list of patterns")
            for pattern in tags:
                compiled = compile_tag_pattern(pattern.removeprefix("!"))
                if isinstance(compiled, Err):
                    return Err(f"trigger.tags: invalid pattern {pattern!r}: {compiled.error}")
            trigger = TriggerConfig(tags=tuple(tags))

        jobs = get_int(build_tbl, "jobs")
        if "jobs" in build_tbl and (jobs is None or jobs < 1):
            return Err("build.jobs must be a positive integer")
        build = BuildConfig(
            jobs=jobs,
            artifacts_dir=get_str(build_tbl, "artifacts_dir") or DEFAULT_ARTIFACTS_DIR,
        )

        targets = _parse_targets(data)
        if isinstance(targets, Err):
            return targets

        release = ReleaseConfig(
            repo=get_str(release_tbl, "repo"),
            token_env=get_str(release_tbl, "token_env") or DEFAULT_TOKEN_ENV,
            title=get_str(release_tbl, "title") or "{tag}",
            notes=get_str(release_tbl, "notes") or "",
            generate_notes=bool(get_bool(release_tbl, "generate_notes")),
            prerelease=bool(get_bool(release_tbl, "prerelease")),
        )
        if release.repo is not None and release.repo.count("/") != 1:
            return Err(f"release.repo must look like 'owner/name': {release.repo}")

        return Ok(cls(trigger=trigger, build=build, targets=targets.value, release=release))


def _parse_targets(data: Mapping[str, object]) -> Result[tuple[TargetConfig, ...], str]:
    raw = get_list(data, "targets")
    if raw is None:
        return Ok(())

    out: list[TargetConfig] = []
    names: set[str] = set()
    assets: set[str] = set()
    for index, item in enumerate(raw):
        tbl = as_str_dict(item)
        if tbl is None:
            return Err(f"targets[{index}] must be a table")

        name = get_str(tbl, "name")
        if name is None:
            return Err(f"targets[{index}].name is required")
        where = f"targets.{name}"

        os_name = get_str(tbl, "os") or "linux"
        if os_name not in SUPPORTED_OS:
            return Err(f"{where}.os must be one of {', '.join(SUPPORTED_OS)}: {os_name}")

        binary = get_str(tbl, "binary")
        if binary is None:
            return Err(f"{where}.binary is required")

        asset_name = get_str(tbl, "asset_name") or binary
        if "/" in asset_name or "\\" in asset_name or asset_name in (".", ".."):
            return Err(f"{where}.asset_name must be a plain file name: {asset_name}")

        if name in names:
            return Err(f"duplicate target name: {name}")
        if asset_name in assets:
            return Err(f"duplicate asset_name: {asset_name}")
        names.add(name)
        assets.add(asset_name)

        command: tuple[str, ...] | None = None
        if "command" in tbl:
            cmd = get_str_list(tbl, "command")
            if not cmd:
                return Err(f"{where}.command must be a non-empty list of strings")
            command = tuple(cmd)

        strip_command: tuple[str, ...] = ("strip",)
        if "strip_command" in tbl:
            scmd = get_str_list(tbl, "strip_command")
            if not scmd:
                return Err(f"{where}.strip_command must be a non-empty list of strings")
            strip_command = tuple(scmd)

        strip = get_bool(tbl, "strip")
        out.append(
            TargetConfig(
                name=name,
                os=os_name,
                binary=binary,
                asset_name=asset_name,
                artifact_path=get_str(tbl, "artifact_path"),
                rust_target=get_str(tbl, "rust_target"),
                command=command,
                strip=True if strip is None else strip,
                strip_command=strip_command,
            )
        )

    return Ok(tuple(out))


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(
            ConfigError(
                f"Config file not found: {path}",
                path=path,
                hint=f"Create {CONFIG_FILENAME} with at least one [[targets]] entry",
            )
        )
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to tagrel.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    parsed = Config.from_dict(result.value)
    if isinstance(parsed, Err):
        return Err(ConfigError(f"Invalid config: {parsed.error}", path=path))
    return Ok(parsed.value)
