"""Persistent PATH registration primitives.

POSIX shells: a profile file is considered registered when it already names
the directory as a whole PATH entry, either absolute or as ``$HOME/<rel>``;
otherwise an export line is appended. The predicate and the action are
separate functions so each can be exercised on its own.

Windows: the per-user ``Path`` value in the environment store is read and
written through PowerShell, with the same append-if-absent rule applied to
its ``;``-separated entries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath
from typing import TYPE_CHECKING

from getsymi.core.errors import CommandFailed
from getsymi.core.result import Err, Ok, Result

from .process import run_checked

if TYPE_CHECKING:
    from .process import CommandRunner

__all__ = [
    "PathMutation",
    "WindowsUserPath",
    "append_export",
    "export_line",
    "idempotency_keys",
    "path_entries_contain",
    "plan_path_mutations",
    "profile_contains",
]


@dataclass(frozen=True, slots=True)
class PathMutation:
    """One pending "append export line" action on one profile file."""

    directory: Path
    profile: Path
    keys: tuple[str, ...]
    line: str


def _home_relative(directory: Path, home: Path | None) -> Path | None:
    if home is None:
        return None
    try:
        return directory.relative_to(home)
    except ValueError:
        return None


def idempotency_keys(directory: Path, home: Path | None = None) -> tuple[str, ...]:
    """Spellings whose presence means a profile already registers directory.

    The absolute path always counts. Directories under the home directory
    also count when written as ``$HOME/<rel>``, the form export_line uses.
    """
    keys = [str(directory)]
    rel = _home_relative(directory, home)
    if rel is not None and rel.parts:
        keys.append(f"$HOME/{rel.as_posix()}")
    return tuple(keys)


def export_line(directory: Path, home: Path | None = None) -> str:
    """Shell line prepending directory to PATH."""
    rel = _home_relative(directory, home)
    if rel is not None and rel.parts:
        return f'export PATH="$HOME/{rel.as_posix()}:$PATH"'
    return f'export PATH="{directory}:$PATH"'


def _key_pattern(key: str) -> re.Pattern[str]:
    # A key only matches as a whole PATH entry, not inside a longer path.
    return re.compile(rf"(?<![^\s:=\"']){re.escape(key)}/?(?![^\s:;\"'])")


def profile_contains(profile: Path, keys: tuple[str, ...] | list[str]) -> bool:
    """Check whether a profile file already names one of keys as a PATH entry."""
    try:
        text = profile.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False
    return any(_key_pattern(key).search(text) for key in keys)


def append_export(profile: Path, line: str) -> None:
    """Append line to profile, starting on a fresh line."""
    existing = profile.read_bytes() if profile.exists() else b""
    prefix = "" if not existing or existing.endswith(b"\n") else "\n"
    with profile.open("a", encoding="utf-8", newline="\n") as handle:
        handle.write(f"{prefix}{line}\n")


def plan_path_mutations(
    directory: Path,
    profiles: tuple[Path, ...] | list[Path],
    *,
    home: Path | None = None,
) -> list[PathMutation]:
    """Return the appends still needed, one per existing profile lacking the directory.

    Each file is judged on its own; missing files are never created.
    """
    keys = idempotency_keys(directory, home)
    line = export_line(directory, home)
    return [
        PathMutation(directory=directory, profile=profile, keys=keys, line=line)
        for profile in profiles
        if profile.is_file() and not profile_contains(profile, keys)
    ]


def _normalize_entry(entry: str) -> str:
    return str(PureWindowsPath(entry.strip().strip('"'))).rstrip("\\").lower()


def path_entries_contain(path_value: str, directory: Path | str) -> bool:
    """Check a ``;``-separated Windows Path value for directory."""
    wanted = _normalize_entry(str(directory))
    return any(_normalize_entry(e) == wanted for e in path_value.split(";") if e.strip())


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class WindowsUserPath:
    """Per-user Path in the Windows environment store."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def _powershell(self, script: str) -> Result[str, CommandFailed]:
        return run_checked(
            self._runner,
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", script],
        )

    def read(self, scope: str = "User") -> Result[str, CommandFailed]:
        result = self._powershell(
            f"[Environment]::GetEnvironmentVariable('Path', {_ps_quote(scope)})"
        )
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def contains(self, directory: Path) -> Result[bool, CommandFailed]:
        current = self.read()
        if isinstance(current, Err):
            return current
        return Ok(path_entries_contain(current.value, directory))

    def append(self, directory: Path) -> Result[bool, CommandFailed]:
        """Append directory to the user Path if absent.

        Returns:
            Ok(True) when the store was changed, Ok(False) when already present.
        """
        current = self.read()
        if isinstance(current, Err):
            return current
        if path_entries_contain(current.value, directory):
            return Ok(False)

        value = f"{current.value.rstrip(';')};{directory}" if current.value else str(directory)
        written = self._powershell(
            f"[Environment]::SetEnvironmentVariable('Path', {_ps_quote(value)}, 'User')"
        )
        if isinstance(written, Err):
            return written
        return Ok(True)

    def combined(self) -> Result[str, CommandFailed]:
        """Machine + user Path, as a fresh session would see it."""
        machine = self.read("Machine")
        if isinstance(machine, Err):
            return machine
        user = self.read("User")
        if isinstance(user, Err):
            return user
        return Ok(";".join(p for p in (machine.value, user.value) if p))
