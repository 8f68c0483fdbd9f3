"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from getsymi.core.errors import (
    CheckoutOriginMismatch,
    ChecksumMismatch,
    CommandFailed,
    DependencyInstallFailure,
    DivergedCheckout,
    ErrorCode,
    ExtractionFailed,
    InstallError,
    InvalidArgument,
    ManifestEntryMissing,
    NetworkFailure,
    PrivilegeRequired,
    UnsupportedPlatform,
)
from getsymi.output.console import Style

if TYPE_CHECKING:
    from getsymi.output.console import ConsoleProtocol

__all__ = ["error_hint", "install_error_exit_code", "print_install_error"]


def error_hint(error: InstallError) -> str | None:
    """Remediation hint for an error, if there is a useful one."""
    match error:
        case DependencyInstallFailure(hint=hint):
            return f"Install it manually: {hint}"
        case PrivilegeRequired():
            return "Re-run as root, install sudo, or install the dependency manually."
        case ChecksumMismatch() | ManifestEntryMissing():
            return "The download may be corrupted or tampered with; retry later."
        case DivergedCheckout(path=path):
            return f"Reconcile the local history in {path} manually, then re-run."
        case CheckoutOriginMismatch():
            return "Use --git-dir to pick another directory, or fix the 'origin' remote."
        case CommandFailed(stderr=stderr) if stderr:
            return stderr.splitlines()[-1]
        case _:
            return None


def print_install_error(error: InstallError, console: ConsoleProtocol) -> None:
    """Print an installer error with an optional hint."""
    console.error(str(error))
    hint = error_hint(error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def install_error_exit_code(error: InstallError) -> int:
    """Get the process exit code for an installer error."""
    match error:
        case InvalidArgument():
            return int(ErrorCode.INVALID_ARGUMENT)
        case UnsupportedPlatform():
            return int(ErrorCode.UNSUPPORTED_PLATFORM)
        case DependencyInstallFailure():
            return int(ErrorCode.DEPENDENCY_FAILURE)
        case PrivilegeRequired():
            return int(ErrorCode.PRIVILEGE_REQUIRED)
        case NetworkFailure():
            return int(ErrorCode.NETWORK_ERROR)
        case ChecksumMismatch() | ManifestEntryMissing():
            return int(ErrorCode.INTEGRITY_ERROR)
        case DivergedCheckout() | CheckoutOriginMismatch():
            return int(ErrorCode.CHECKOUT_ERROR)
        case CommandFailed() | ExtractionFailed():
            return int(ErrorCode.INSTALL_FAILED)
    return int(ErrorCode.INSTALL_FAILED)
