"""Platform and architecture detection.

Maps the host kernel name and machine architecture onto the canonical
tokens used in Node.js distribution file names (``darwin``/``linux``/``win``,
``x64``/``arm64``/``armv7l``). Anything outside the table is rejected with
``UnsupportedPlatform`` naming the raw value.
"""

from __future__ import annotations

import os as _os
import platform as _platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from getsymi.core.errors import UnsupportedPlatform
from getsymi.core.result import Err, Ok, Result

__all__ = [
    "Arch",
    "Os",
    "PlatformInfo",
    "detect_wsl",
    "probe",
    "raw_machine",
    "raw_system",
    "running_as_root",
]


class Os(Enum):
    """Operating system, valued by its Node.js distribution token."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "win"

    def __str__(self) -> str:
        return self.value

    @property
    def archive_ext(self) -> str:
        """Extension of the Node.js distribution archive."""
        return "zip" if self == Os.WINDOWS else "tar.xz"


class Arch(Enum):
    """CPU architecture, valued by its Node.js distribution token."""

    X64 = "x64"
    ARM64 = "arm64"
    ARMV7L = "armv7l"

    def __str__(self) -> str:
        return self.value


_OS_TABLE: dict[str, Os] = {
    "darwin": Os.DARWIN,
    "linux": Os.LINUX,
    "windows": Os.WINDOWS,
}

_ARCH_TABLE: dict[str, Arch] = {
    "x86_64": Arch.X64,
    "amd64": Arch.X64,
    "aarch64": Arch.ARM64,
    "arm64": Arch.ARM64,
    "armv7l": Arch.ARMV7L,
}


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Canonical (os, arch) tuple plus the WSL flag."""

    os: Os
    arch: Arch
    is_wsl: bool = False

    @property
    def is_windows(self) -> bool:
        return self.os == Os.WINDOWS

    def as_dict(self) -> dict[str, str | bool]:
        return {"os": str(self.os), "arch": str(self.arch), "wsl": self.is_wsl}

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


def raw_system() -> str:
    """Host kernel name as reported by uname (e.g. "Linux", "Darwin")."""
    return _platform.system()


def raw_machine() -> str:
    """Host machine architecture (e.g. "x86_64", "arm64")."""
    # NOTE: platform.machine() may query WMI on Windows (slow); the
    # environment already carries the answer there.
    if _platform.system() == "Windows":
        return (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        )
    return _platform.machine()


def running_as_root() -> bool:
    """Check whether this process runs with uid 0 (always False on Windows)."""
    geteuid = getattr(_os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def detect_wsl(proc_version: Path = Path("/proc/version")) -> bool:
    """Check whether this Linux kernel is a WSL kernel."""
    try:
        return "microsoft" in proc_version.read_text(encoding="utf-8").lower()
    except OSError:
        return False


def probe(
    system: str | None = None,
    machine: str | None = None,
) -> Result[PlatformInfo, UnsupportedPlatform]:
    """Resolve the canonical platform tuple.

    Args:
        system: Raw kernel name (defaults to the host's)
        machine: Raw machine architecture (defaults to the host's)

    Returns:
        Ok(PlatformInfo), or Err(UnsupportedPlatform) naming the raw value.
    """
    raw_os = raw_system() if system is None else system
    raw_arch = raw_machine() if machine is None else machine

    os_token = _OS_TABLE.get(raw_os.strip().lower())
    if os_token is None:
        return Err(UnsupportedPlatform(kind="os", raw=raw_os))

    arch = _ARCH_TABLE.get(raw_arch.strip().lower())
    if arch is None:
        return Err(UnsupportedPlatform(kind="arch", raw=raw_arch))

    is_wsl = os_token == Os.LINUX and system is None and detect_wsl()
    return Ok(PlatformInfo(os=os_token, arch=arch, is_wsl=is_wsl))
