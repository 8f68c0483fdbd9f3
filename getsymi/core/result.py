"""Result type for explicit error handling.

Every installer stage returns a Result instead of raising, so the
orchestrator can stop at the first failure and map it to an exit code.

Usage:
    def parse_tag(value: str) -> Result[str, InvalidArgument]:
        if not value:
            return Err(InvalidArgument("version", value, "must not be empty"))
        return Ok(value)

    match parse_tag("latest"):
        case Ok(tag):
            print(f"installing symi@{tag}")
        case Err(error):
            print(f"error: {error}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeGuard


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying an error value."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]


def is_ok[T, E](result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Narrow a Result to Ok."""
    return isinstance(result, Ok)


def is_err[T, E](result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Narrow a Result to Err."""
    return isinstance(result, Err)
