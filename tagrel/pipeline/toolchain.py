"""Toolchain presence checks.

The compiler and stripper are system tools installed outside tagrel (rustup,
binutils, Xcode command line tools). This module only verifies that they are
on PATH before a build starts, so a missing tool is reported as an
environment problem instead of a failed compile.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from tagrel.core.result import Err, Ok, Result
from tagrel.pipeline.errors import ToolchainMissing
from tagrel.pipeline.model import BuildTarget
from tagrel.platform.process import run as run_process

_VERSION_TIMEOUT_SECONDS = 30.0

_INSTALL_HINTS = {
    "cargo": "Install Rust via https://rustup.rs/",
    "rustup": "Install Rust via https://rustup.rs/",
    "strip": "Install binutils (Linux) or the Xcode command line tools (macOS)",
    "llvm-strip": "Install LLVM, or set strip_command in tagrel.toml",
}


@dataclass(frozen=True, slots=True)
class ToolStatus:
    tool: str
    path: Path | None
    version: str | None = None

    @property
    def found(self) -> bool:
        return self.path is not None


def _hint(tool: str) -> str:
    return _INSTALL_HINTS.get(Path(tool).name, f"Install {tool} and make sure it is on PATH")


def required_tools(target: BuildTarget) -> tuple[str, ...]:
    tools = [target.build_command[0]]
    if target.strip:
        tools.append(target.strip_command[0])
    return tuple(dict.fromkeys(tools))


def find_tool(tool: str) -> Path | None:
    found = shutil.which(tool)
    return Path(found) if found else None


def ensure_toolchain(target: BuildTarget) -> Result[None, ToolchainMissing]:
    for tool in required_tools(target):
        if find_tool(tool) is None:
            return Err(ToolchainMissing(tool=tool, hint=_hint(tool)))
    return Ok(None)


def tool_status(tool: str, *, cwd: Path) -> ToolStatus:
    """Locate a tool and, when it answers ``--version``, record the first line."""
    path = find_tool(tool)
    if path is None:
        return ToolStatus(tool=tool, path=None)

    result = run_process([str(path), "--version"], cwd=cwd, timeout=_VERSION_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return ToolStatus(tool=tool, path=path)
    first = result.value.strip().splitlines()
    return ToolStatus(tool=tool, path=path, version=first[0] if first else None)
