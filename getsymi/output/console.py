"""Console output abstraction.

Services never print directly: they emit events, and the human event sink
renders them through a ``ConsoleProtocol``. ``RichConsole`` is the production
backend, ``MockConsole`` captures output for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for styled console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None:
        """Print an error message on the diagnostic stream."""
        ...

    def warning(self, message: str) -> None:
        """Print a warning message on the diagnostic stream."""
        ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Print a dimmed message, only when verbose output is enabled."""
        ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


class RichConsole:
    """Console implementation using Rich.

    Informational output goes to stdout, warnings and errors to stderr.
    With ``quiet=True`` (structured event mode) stdout is reserved for the
    event stream, so only warnings and errors are printed.
    """

    def __init__(self, *, verbose: bool = False, quiet: bool = False) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.markup import escape

        self._out = Console(quiet=quiet)
        self._err = Console(stderr=True)
        self._verbose = verbose
        self._escape = escape
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "blue",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._out.print(message, style=rich_style, highlight=False, markup=False)
        else:
            self._out.print(message, highlight=False, markup=False)

    def success(self, message: str) -> None:
        self._out.print(f"[green]OK[/green] {self._escape(message)}", highlight=False)

    def error(self, message: str) -> None:
        self._err.print(
            f"[red bold]\\[error][/red bold] {self._escape(message)}", highlight=False
        )

    def warning(self, message: str) -> None:
        self._err.print(
            f"[yellow bold]\\[warn][/yellow bold]  {self._escape(message)}", highlight=False
        )

    def info(self, message: str) -> None:
        self._out.print(
            f"[blue bold]\\[info][/blue bold]  {self._escape(message)}", highlight=False
        )

    def debug(self, message: str) -> None:
        if self._verbose:
            self._out.print(message, style="dim", highlight=False, markup=False)

    def header(self, message: str) -> None:
        self._out.print(f"\n[blue bold]{self._escape(message)}[/blue bold]")

    def newline(self) -> None:
        self._out.print()


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)
    verbose: bool = False

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def debug(self, message: str) -> None:
        if self.verbose:
            self.outputs.append(OutputRecord(message, Style.DIM))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helper methods

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
