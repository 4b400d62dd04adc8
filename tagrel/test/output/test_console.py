"""Tests for tagrel.output.console module."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from tagrel.output.console import MockConsole, PrefixedConsole, RichConsole, Style


class TestMockConsole:
    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("built")
        console.error("failed")
        console.warning("careful")
        console.info("note")
        console.print("plain")

        assert console.messages == [
            "OK built",
            "error: failed",
            "warning: careful",
            "info: note",
            "plain",
        ]

    def test_styles(self) -> None:
        console = MockConsole()
        console.header("Build")
        console.print("cargo build", Style.DIM)

        assert [o.style for o in console.outputs] == [Style.HEADER, Style.DIM]

    def test_has_error_and_find(self) -> None:
        console = MockConsole()
        console.print("one")
        assert not console.has_error()

        console.error("two")
        assert console.has_error()
        assert len(console.find("two")) == 1
        assert console.text == "one\nerror: two"

    def test_thread_safe_appends(self) -> None:
        console = MockConsole()

        def emit(i: int) -> None:
            for j in range(50):
                console.print(f"{i}-{j}")

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(emit, range(4)))

        assert len(console.outputs) == 200


class TestPrefixedConsole:
    def test_every_line_is_prefixed(self) -> None:
        inner = MockConsole()
        console = PrefixedConsole(inner, "linux")

        console.print("cargo build", Style.DIM)
        console.success("stored")
        console.error("strip failed")

        assert inner.messages == [
            "[linux] cargo build",
            "OK [linux] stored",
            "error: [linux] strip failed",
        ]
        assert inner.outputs[0].style == Style.DIM


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.print("error[E0308]: [bold]mismatched[/bold]")

        out = capsys.readouterr().out
        assert "[bold]mismatched[/bold]" in out

    def test_error_prefix(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().error("boom")

        out = capsys.readouterr().out
        assert "error:" in out
        assert "boom" in out
