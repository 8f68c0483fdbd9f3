"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .events import (
    ConsoleSink,
    EventKind,
    EventLog,
    InstallEvent,
    JsonLinesSink,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
    "ConsoleSink",
    "EventKind",
    "EventLog",
    "InstallEvent",
    "JsonLinesSink",
]
