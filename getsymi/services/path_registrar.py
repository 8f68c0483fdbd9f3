"""Persistent PATH registration.

Makes a bin directory visible to future shells and to the rest of the
current run:

- POSIX: appends an export line to each existing profile file that does not
  already mention the directory
- Windows: appends the directory to the per-user ``Path`` if absent

The directory is always prepended to the session PATH held by the executor.
Re-running converges: a second registration changes nothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from getsymi.core.errors import CommandFailed
from getsymi.core.result import Err, Ok, Result
from getsymi.output.events import EventKind
from getsymi.platform.shell import (
    PathMutation,
    WindowsUserPath,
    append_export,
    idempotency_keys,
    plan_path_mutations,
    profile_contains,
)

if TYPE_CHECKING:
    from getsymi.platform.detection import PlatformInfo

    from .executor import Executor

__all__ = ["PathRegistrar", "WINDOWS_USER_PATH"]

WINDOWS_USER_PATH = Path("HKCU/Environment/Path")


class PathRegistrar:
    """Registers bin directories on PATH, persistently and for this session."""

    def __init__(
        self,
        executor: Executor,
        platform: PlatformInfo,
        *,
        home: Path,
        windows_path: WindowsUserPath | None = None,
    ) -> None:
        self._executor = executor
        self._platform = platform
        self._home = home
        self._windows_path = windows_path
        self._registered: list[Path] = []

    @property
    def registered(self) -> tuple[Path, ...]:
        return tuple(self._registered)

    def register(
        self, directory: Path, profiles: tuple[Path, ...]
    ) -> Result[list[PathMutation], CommandFailed]:
        """Register directory.

        Returns:
            The mutations applied (or planned, in dry-run mode).
        """
        self._executor.prepend_path(directory)
        if directory not in self._registered:
            self._registered.append(directory)

        if self._platform.is_windows and self._windows_path is not None:
            return self._register_windows(self._windows_path, directory)
        return Ok(self._register_profiles(directory, profiles))

    def _register_profiles(self, directory: Path, profiles: tuple[Path, ...]) -> list[PathMutation]:
        events = self._executor.events
        keys = idempotency_keys(directory, self._home)
        for profile in profiles:
            if profile.is_file() and profile_contains(profile, keys):
                events.emit(EventKind.PATH_PRESENT, directory=directory, profile=profile)

        mutations = plan_path_mutations(directory, profiles, home=self._home)
        for mutation in mutations:
            if self._executor.dry_run:
                events.emit(
                    EventKind.WOULD_REGISTER_PATH, directory=directory, profile=mutation.profile
                )
                continue
            append_export(mutation.profile, mutation.line)
            events.emit(EventKind.PATH_REGISTERED, directory=directory, profile=mutation.profile)
        return mutations

    def _register_windows(
        self, store: WindowsUserPath, directory: Path
    ) -> Result[list[PathMutation], CommandFailed]:
        events = self._executor.events
        present = store.contains(directory)
        if isinstance(present, Err):
            return present
        if present.value:
            events.emit(EventKind.PATH_PRESENT, directory=directory, profile=WINDOWS_USER_PATH)
            return Ok([])

        mutation = PathMutation(
            directory=directory,
            profile=WINDOWS_USER_PATH,
            keys=(str(directory),),
            line=str(directory),
        )
        if self._executor.dry_run:
            events.emit(
                EventKind.WOULD_REGISTER_PATH, directory=directory, profile=WINDOWS_USER_PATH
            )
            return Ok([mutation])

        appended = store.append(directory)
        if isinstance(appended, Err):
            return appended
        events.emit(EventKind.PATH_REGISTERED, directory=directory, profile=WINDOWS_USER_PATH)
        return Ok([mutation])

    def refresh(self) -> None:
        """Reload PATH from persistent storage into the session."""
        if self._platform.is_windows and self._windows_path is not None:
            combined = self._windows_path.combined()
            if isinstance(combined, Ok):
                self._executor.merge_path(combined.value)
            return
        for directory in self._registered:
            self._executor.prepend_path(directory)
