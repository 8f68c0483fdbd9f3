"""Side-effect gateway for installer stages.

Every mutation a stage performs (running an installer command, writing a
file, creating a directory) goes through an ``Executor``. In dry-run mode the
executor records a ``would_*`` event instead of acting. Read-only probes such
as ``which``, ``--version`` or ``git remote get-url`` always execute, so a
dry run reports the plan for the machine it actually runs on.

The executor also owns the session environment: directories registered on
PATH during a run are prepended here, and every later command and lookup
sees them.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from getsymi.core.errors import CommandFailed
from getsymi.core.result import Ok, Result
from getsymi.output.events import EventKind
from getsymi.platform.process import run_checked

if TYPE_CHECKING:
    from getsymi.output.events import EventLog
    from getsymi.platform.process import CommandRunner

__all__ = ["Executor"]


class Executor:
    """Runs commands and writes files, or records what it would do.

    Usage:
        executor = Executor(runner, events, dry_run=config.dry_run)
        executor.run(["npm", "install", "-g", "symi@latest"], stream=True)
    """

    def __init__(
        self,
        runner: CommandRunner,
        events: EventLog,
        *,
        dry_run: bool = False,
        stream_output: bool = True,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            runner: Underlying command runner
            events: Event log receiving command and dry-run events
            dry_run: Record mutations instead of performing them
            stream_output: Let long-running commands write to the terminal
                (disabled for machine-readable output)
            environ: Initial session environment (defaults to os.environ)
        """
        self._runner = runner
        self._events = events
        self._dry_run = dry_run
        self._stream_output = stream_output
        self._environ = dict(os.environ if environ is None else environ)

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def environ(self) -> dict[str, str]:
        """Copy of the session environment."""
        return dict(self._environ)

    def env_with(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        env = dict(self._environ)
        if extra:
            env.update(extra)
        return env

    def which(self, name: str) -> str | None:
        """Locate an executable on the session PATH."""
        return self._runner.which(name, path=self._environ.get("PATH"))

    def probe(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, CommandFailed]:
        """Run a read-only command, in dry-run mode too."""
        self._events.emit(EventKind.COMMAND, command=shlex.join(args))
        return run_checked(self._runner, args, capture=True, cwd=cwd, env=self.env_with(env))

    def run(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> Result[str, CommandFailed]:
        """Run a command that changes the system.

        Args:
            args: Command line
            cwd: Working directory
            env: Extra environment on top of the session environment
            stream: Show the command's own output (only in human mode)

        Returns:
            Ok(stdout), or Ok("") in dry-run mode.
        """
        command = shlex.join(args)
        if self._dry_run:
            self._events.emit(EventKind.WOULD_RUN, command=command)
            return Ok("")

        self._events.emit(EventKind.COMMAND, command=command)
        capture = not (stream and self._stream_output)
        return run_checked(self._runner, args, capture=capture, cwd=cwd, env=self.env_with(env))

    def write_text(self, path: Path, content: str, *, mode: int | None = None) -> bool:
        """Write a file unless its content is already current.

        Returns:
            True if the file changed (or would change in dry-run mode).
        """
        data = content.encode("utf-8")
        if path.is_file() and path.read_bytes() == data:
            return False

        if self._dry_run:
            self._events.emit(EventKind.WOULD_WRITE, path=path)
            return True

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if mode is not None:
            path.chmod(mode)
        return True

    def mkdir(self, path: Path) -> None:
        if self._dry_run:
            if not path.exists():
                self._events.emit(EventKind.WOULD_WRITE, path=path)
            return
        path.mkdir(parents=True, exist_ok=True)

    def prepend_path(self, directory: Path) -> None:
        """Put directory first on the session PATH (in memory only)."""
        current = self._environ.get("PATH", "")
        entries = current.split(os.pathsep) if current else []
        if str(directory) in entries:
            return
        self._environ["PATH"] = os.pathsep.join([str(directory), *entries])

    def merge_path(self, value: str) -> None:
        """Append entries of a PATH value that the session PATH lacks."""
        current = self._environ.get("PATH", "")
        entries = current.split(os.pathsep) if current else []
        known = {e.lower() for e in entries}
        for entry in value.split(os.pathsep):
            if entry and entry.lower() not in known:
                entries.append(entry)
                known.add(entry.lower())
        self._environ["PATH"] = os.pathsep.join(entries)
