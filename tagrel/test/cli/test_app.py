from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from tagrel import __version__
from tagrel.cli.app import app
from tagrel.core.errors import ErrorCode


def test_version() -> None:
    result = CliRunner().invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_invalid_workspace(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["--workspace", str(tmp_path), "plan"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)


def test_commands_registered() -> None:
    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for name in ("tag", "plan", "build", "publish", "run"):
        assert name in result.output
