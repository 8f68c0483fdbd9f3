"""Git checkout abstraction for source installs.

All operations return Result types. Commands are issued through a
``GitCommands`` object that separates read-only queries (``probe``) from
operations that change the checkout (``run``), so a dry run can still look
at an existing checkout without touching it.

Usage:
    repo = Repository(Path("~/symi").expanduser(), commands)

    match repo.pull_ff():
        case Ok(output):
            print(f"Pulled: {output}")
        case Err(DivergedCheckout() as e):
            print(f"Reconcile manually: {e.message}")
        case Err(e):
            print(f"Pull failed: {e}")
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from getsymi.core.errors import CheckoutOriginMismatch, CommandFailed, DivergedCheckout
from getsymi.core.result import Err, Ok, Result

__all__ = [
    "GitCommands",
    "Repository",
    "normalize_remote",
    "same_remote",
]

_DIVERGED_MARKERS = (
    "not possible to fast-forward",
    "diverg",
    "non-fast-forward",
    "have diverged",
)
_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?([\w.-]+):(?!//)(.+)$")


class GitCommands(Protocol):
    """Command surface used by Repository."""

    def probe(self, args: list[str], *, cwd: Path | None = None) -> Result[str, CommandFailed]:
        """Run a read-only command."""
        ...

    def run(self, args: list[str], *, cwd: Path | None = None) -> Result[str, CommandFailed]:
        """Run a command that may change state."""
        ...


def normalize_remote(url: str) -> str:
    """Reduce a remote URL to ``host/owner/repo`` for comparison.

    Examples:
        https://github.com/symi/symi.git -> github.com/symi/symi
        git@github.com:symi/symi.git     -> github.com/symi/symi
    """
    value = url.strip().rstrip("/")
    value = value.removesuffix(".git")

    scp = _SCP_LIKE.match(value)
    if scp and "://" not in value:
        host, path = scp.groups()
        return f"{host.lower()}/{path.strip('/')}"

    if "://" in value:
        value = value.split("://", 1)[1]
        if "@" in value.split("/", 1)[0]:
            value = value.split("@", 1)[1]
        host, _, path = value.partition("/")
        return f"{host.lower()}/{path.strip('/')}"

    return value


def same_remote(a: str, b: str) -> bool:
    return normalize_remote(a) == normalize_remote(b)


class Repository:
    """A local git checkout.

    Attributes:
        path: Checkout root (containing .git)
    """

    def __init__(self, path: Path, commands: GitCommands) -> None:
        self.path = path
        self._commands = commands

    def exists(self) -> bool:
        """Check if this is a git checkout (``.git`` dir or worktree file)."""
        return (self.path / ".git").exists()

    def remote_url(self, remote: str = "origin") -> str | None:
        """URL of a remote, or None when it is not configured."""
        result = self._commands.probe(["git", "-C", str(self.path), "remote", "get-url", remote])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def check_origin(self, expected: str) -> Result[str, CheckoutOriginMismatch]:
        """Verify that origin points at the expected repository.

        Returns:
            Ok(actual origin URL) when it matches.
        """
        actual = self.remote_url()
        if actual is None or not same_remote(actual, expected):
            return Err(
                CheckoutOriginMismatch(path=self.path, expected=expected, actual=actual or "")
            )
        return Ok(actual)

    def clone(self, url: str) -> Result[str, CommandFailed]:
        """Clone url into this path."""
        result = self._commands.run(["git", "clone", url, str(self.path)])
        match result:
            case Err(e):
                return Err(e)
            case Ok(stdout):
                return Ok(stdout.strip())

    def pull_ff(self) -> Result[str, DivergedCheckout | CommandFailed]:
        """Pull with fast-forward only.

        Local history is never reset or merged: a pull that cannot
        fast-forward is reported as DivergedCheckout.
        """
        result = self._commands.run(["git", "-C", str(self.path), "pull", "--ff-only"])
        match result:
            case Err(e):
                if _is_diverged(e.stderr):
                    return Err(DivergedCheckout(path=self.path, message=_last_line(e.stderr)))
                return Err(e)
            case Ok(stdout):
                return Ok(stdout.strip())


def _is_diverged(stderr: str) -> bool:
    text = stderr.lower()
    return any(marker in text for marker in _DIVERGED_MARKERS)


def _last_line(text: str) -> str:
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    return lines[-1] if lines else "pull --ff-only failed"
