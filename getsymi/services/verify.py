"""Post-install self-check and onboarding.

Nothing here can fail an installation: a missing binary, a failing
``symi doctor`` or an aborted onboarding are reported as warnings and the
exit code stays 0.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from getsymi.core.config import InteractionMode
from getsymi.core.result import Err
from getsymi.output.events import EventKind

if TYPE_CHECKING:
    from getsymi.core.config import InstallConfig

    from .executor import Executor

__all__ = ["PostInstallVerifier"]

DOCTOR_ARGS = ("doctor", "--non-interactive")
ONBOARD_ARGS = ("onboard", "--install-daemon")


class PostInstallVerifier:
    def __init__(
        self,
        executor: Executor,
        config: InstallConfig,
        *,
        refresh_path: Callable[[], None] | None = None,
    ) -> None:
        self._executor = executor
        self._config = config
        self._refresh_path = refresh_path

    def resolve(self) -> str | None:
        """Find the installed command, reloading PATH once if needed."""
        name = self._config.package
        found = self._executor.which(name)
        if found is None and self._refresh_path is not None:
            self._refresh_path()
            found = self._executor.which(name)
        return found

    def self_check(self) -> str | None:
        """Run ``symi doctor``; returns the resolved command or None."""
        events = self._executor.events
        name = self._config.package

        if self._executor.dry_run:
            self._executor.run([name, *DOCTOR_ARGS])
            return name

        command = self.resolve()
        if command is None:
            events.warning(f"{name} not found in PATH. You may need to open a new terminal.")
            events.warning("Run: npm config get prefix - then add <prefix>/bin to your PATH.")
            return None

        events.emit(EventKind.SELF_CHECK, command=f"{name} {' '.join(DOCTOR_ARGS)}")
        result = self._executor.run([command, *DOCTOR_ARGS], stream=True)
        if isinstance(result, Err):
            events.warning(f"{name} doctor reported problems: {result.error}")
        return command

    def skip_reason(self) -> str | None:
        """Why onboarding will not run, or None when it will."""
        if self._config.onboard is False:
            return "--no-onboard"
        if not self._config.should_onboard:
            if self._config.interaction == InteractionMode.NON_INTERACTIVE:
                return f"no TTY - run '{self._config.package} onboard' later"
            return "not requested"
        return None

    def onboard(self, command: str | None) -> None:
        events = self._executor.events
        reason = self.skip_reason()
        if reason is not None:
            events.emit(EventKind.ONBOARD_SKIPPED, reason=reason)
            return
        if command is None:
            events.emit(EventKind.ONBOARD_SKIPPED, reason=f"{self._config.package} not on PATH")
            return

        events.emit(EventKind.ONBOARD_START)
        result = self._executor.run([command, *ONBOARD_ARGS], stream=True)
        if isinstance(result, Err):
            events.warning(f"Onboarding did not finish: {result.error}")
        events.emit(EventKind.ONBOARD_COMPLETE, ok=result.is_ok())

    def run(self) -> None:
        """Self-check, then onboard when the session allows it."""
        self.onboard(self.self_check())
