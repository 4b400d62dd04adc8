"""Tests for tagrel.platform.detection module."""

from __future__ import annotations

import sys

import pytest

from tagrel.platform.detection import Arch, Platform, PlatformInfo, detect, detect_platform


class TestPlatform:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("linux", Platform.LINUX),
            ("macos", Platform.MACOS),
            ("Windows", Platform.WINDOWS),
            (" linux ", Platform.LINUX),
            ("solaris", Platform.UNKNOWN),
        ],
    )
    def test_from_name(self, name: str, expected: Platform) -> None:
        assert Platform.from_name(name) == expected

    def test_str(self) -> None:
        assert str(Platform.MACOS) == "macos"

    def test_exe_name(self) -> None:
        assert Platform.LINUX.exe_name("mongo-task-generator") == "mongo-task-generator"
        assert Platform.WINDOWS.exe_name("mongo-task-generator") == "mongo-task-generator.exe"


class TestDetect:
    def test_info_str(self) -> None:
        info = PlatformInfo(platform=Platform.LINUX, arch=Arch.X64)
        assert str(info) == "linux-x64"

    def test_detect_is_cached(self) -> None:
        assert detect() is detect()

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="Linux only")
    def test_detect_linux(self) -> None:
        assert detect_platform() == Platform.LINUX
