"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    PrefixedConsole,
    RichConsole,
    Style,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "PrefixedConsole",
    "RichConsole",
    "Style",
]
