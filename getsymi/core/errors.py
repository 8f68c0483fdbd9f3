"""Installer error taxonomy and exit codes.

Each failure mode is a small frozen dataclass. Stages return them inside
``Err`` values; ``getsymi.output.errors`` turns them into messages and
process exit codes at the CLI boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Literal

__all__ = [
    "ErrorCode",
    "UnsupportedPlatform",
    "DependencyInstallFailure",
    "ChecksumMismatch",
    "ManifestEntryMissing",
    "PrivilegeRequired",
    "NetworkFailure",
    "InvalidArgument",
    "DivergedCheckout",
    "CheckoutOriginMismatch",
    "CommandFailed",
    "ExtractionFailed",
    "InstallError",
]


class ErrorCode(IntEnum):
    """Process exit codes.

    These values are part of the installer's automation contract and must
    stay stable.
    """

    OK = 0
    INSTALL_FAILED = 1
    INVALID_ARGUMENT = 2
    UNSUPPORTED_PLATFORM = 3
    DEPENDENCY_FAILURE = 4
    PRIVILEGE_REQUIRED = 5
    NETWORK_ERROR = 6
    INTEGRITY_ERROR = 7
    CHECKOUT_ERROR = 8

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


@dataclass(frozen=True, slots=True)
class UnsupportedPlatform:
    kind: Literal["os", "arch"]
    raw: str

    def __str__(self) -> str:
        label = "OS" if self.kind == "os" else "architecture"
        return f"Unsupported {label}: {self.raw}"


@dataclass(frozen=True, slots=True)
class DependencyInstallFailure:
    dependency: str
    attempted_providers: tuple[str, ...]
    hint: str

    def __str__(self) -> str:
        tried = ", ".join(self.attempted_providers) or "none available"
        return f"Could not install {self.dependency} (tried: {tried})"


@dataclass(frozen=True, slots=True)
class ChecksumMismatch:
    filename: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"SHA-256 mismatch for {self.filename}: expected {self.expected}, got {self.actual}"


@dataclass(frozen=True, slots=True)
class ManifestEntryMissing:
    filename: str
    manifest_url: str

    def __str__(self) -> str:
        return f"No SHA-256 entry for {self.filename} in {self.manifest_url}"


@dataclass(frozen=True, slots=True)
class PrivilegeRequired:
    action: str
    reason: str

    def __str__(self) -> str:
        return f"Root required to {self.action}: {self.reason}"


@dataclass(frozen=True, slots=True)
class NetworkFailure:
    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class InvalidArgument:
    name: str
    value: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid {self.name} '{self.value}': {self.reason}"


@dataclass(frozen=True, slots=True)
class DivergedCheckout:
    path: Path
    message: str

    def __str__(self) -> str:
        return f"Checkout at {self.path} cannot be fast-forwarded: {self.message}"


@dataclass(frozen=True, slots=True)
class CheckoutOriginMismatch:
    path: Path
    expected: str
    actual: str

    def __str__(self) -> str:
        actual = self.actual or "(no origin)"
        return f"Checkout at {self.path} tracks {actual}, expected {self.expected}"


@dataclass(frozen=True, slots=True)
class CommandFailed:
    command: tuple[str, ...]
    returncode: int
    stderr: str = ""

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:4])
        if len(self.command) > 4:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class ExtractionFailed:
    archive: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.archive}"


InstallError = (
    UnsupportedPlatform
    | DependencyInstallFailure
    | ChecksumMismatch
    | ManifestEntryMissing
    | PrivilegeRequired
    | NetworkFailure
    | InvalidArgument
    | DivergedCheckout
    | CheckoutOriginMismatch
    | CommandFailed
    | ExtractionFailed
)
