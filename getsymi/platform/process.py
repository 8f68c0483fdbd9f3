"""Subprocess execution behind an injectable runner.

Every external command (package managers, npm, git, the installed symi
binary) goes through a ``CommandRunner`` so tests can substitute canned
responses and dry-run can intercept mutations in one place.

Usage:
    runner = DefaultCommandRunner()
    match run_checked(runner, ["git", "--version"]):
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"failed: {error}")
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from getsymi.core.errors import CommandFailed
from getsymi.core.result import Err, Ok, Result

__all__ = [
    "CommandRunner",
    "DefaultCommandRunner",
    "MockCommandRunner",
    "run_checked",
    "with_path",
]


class CommandRunner(Protocol):
    """Protocol for running commands and locating executables."""

    def run(
        self,
        args: list[str],
        *,
        capture: bool = True,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run a command and return the completed process.

        Raises:
            OSError: If the executable cannot be started.
        """
        ...

    def which(self, name: str, path: str | None = None) -> str | None:
        """Locate an executable on PATH (or on the given search path)."""
        ...


class DefaultCommandRunner:
    """Command runner backed by subprocess.run and shutil.which."""

    def run(
        self,
        args: list[str],
        *,
        capture: bool = True,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            args,
            capture_output=capture,
            text=True,
            check=False,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )

    def which(self, name: str, path: str | None = None) -> str | None:
        return shutil.which(name, path=path)


type Response = tuple[int, str, str] | Callable[[list[str]], tuple[int, str, str]]


class MockCommandRunner:
    """Mock command runner for testing.

    Usage:
        runner = MockCommandRunner(
            {("git", "--version"): (0, "git version 2.43.0", "")},
            executables={"git": "/usr/bin/git"},
        )

    Unknown commands raise FileNotFoundError, like a missing executable.
    A response may be a callable taking the argv, to model side effects.
    """

    def __init__(
        self,
        responses: dict[tuple[str, ...], Response] | None = None,
        *,
        executables: dict[str, str] | None = None,
    ) -> None:
        self.responses: dict[tuple[str, ...], Response] = dict(responses or {})
        self.executables: dict[str, str] = dict(executables or {})
        self.calls: list[list[str]] = []
        self.envs: list[Mapping[str, str] | None] = []

    def run(
        self,
        args: list[str],
        *,
        capture: bool = True,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(args))
        self.envs.append(env)
        response = self.responses.get(tuple(args))
        if response is None:
            raise FileNotFoundError(f"Command not found: {args[0]}")
        rc, stdout, stderr = response(list(args)) if callable(response) else response
        return subprocess.CompletedProcess(args, rc, stdout, stderr)

    def which(self, name: str, path: str | None = None) -> str | None:
        return self.executables.get(name)

    def ran(self, *prefix: str) -> bool:
        """True if any recorded call starts with prefix."""
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


def run_checked(
    runner: CommandRunner,
    args: list[str],
    *,
    capture: bool = True,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[str, CommandFailed]:
    """Run a command, mapping non-zero exits and spawn errors to CommandFailed.

    Returns:
        Ok(stdout) on success (empty when not capturing), Err otherwise.
    """
    try:
        proc = runner.run(args, capture=capture, cwd=cwd, env=env)
    except OSError as e:
        return Err(CommandFailed(command=tuple(args), returncode=127, stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            CommandFailed(
                command=tuple(args),
                returncode=proc.returncode,
                stderr=(proc.stderr or "").strip(),
            )
        )
    return Ok(proc.stdout or "")


def with_path(directory: Path, env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy of env with directory prepended to PATH."""
    out = dict(os.environ if env is None else env)
    current = out.get("PATH", "")
    out["PATH"] = f"{directory}{os.pathsep}{current}" if current else str(directory)
    return out
