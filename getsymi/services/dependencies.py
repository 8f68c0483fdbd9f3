"""Dependency resolution across competing package managers.

A ``DependencySpec`` names a binary, the minimum version it must report, and
an ordered tuple of providers able to install it. ``DependencyResolver``
probes first and only walks the providers when the probe falls short; the
first provider whose re-probe satisfies the minimum wins.

Providers that need root resolve privilege lazily through ``Escalation``, so
a machine with Homebrew or Scoop never hits a sudo prompt.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from getsymi.core.errors import (
    CommandFailed,
    DependencyInstallFailure,
    PrivilegeRequired,
)
from getsymi.core.result import Err, Ok, Result
from getsymi.output.events import EventKind
from getsymi.platform.detection import Os, running_as_root

if TYPE_CHECKING:
    from getsymi.platform.detection import PlatformInfo

    from .executor import Executor

__all__ = [
    "DependencyResolver",
    "DependencySpec",
    "Escalation",
    "HomebrewProvider",
    "PackageProvider",
    "ProbeResult",
    "Provider",
    "git_spec",
    "node_spec",
    "parse_version",
]

type Version = tuple[int, int, int]

NODE_MIN_MAJOR = 22
HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
_HOMEBREW_PREFIXES = (Path("/opt/homebrew/bin"), Path("/usr/local/bin"))
_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version(text: str) -> Version | None:
    """Extract the first ``X.Y[.Z]`` from tool output.

    Examples:
        "v22.22.0" -> (22, 22, 0)
        "git version 2.43.0.windows.1" -> (2, 43, 0)
    """
    match = _VERSION_RE.search(text)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return (int(major), int(minor), int(patch or 0))


def format_version(version: Version | None) -> str:
    if version is None:
        return "unknown"
    return ".".join(str(part) for part in version)


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of one ``<binary> --version`` probe."""

    found: bool
    version: Version | None = None
    raw: str = ""

    def satisfies(self, minimum: Version | None) -> bool:
        if not self.found:
            return False
        if minimum is None:
            return True
        return self.version is not None and self.version >= minimum


class Provider(Protocol):
    """Something able to install a dependency."""

    @property
    def name(self) -> str: ...

    @property
    def privileged(self) -> bool: ...

    def available(self, executor: Executor) -> bool:
        """Whether the provider can run on this machine right now."""
        ...

    def install(self, executor: Executor, sudo: list[str]) -> Result[None, CommandFailed]:
        """Run the installation steps, each prefixed with sudo."""
        ...


@dataclass(frozen=True, slots=True)
class PackageProvider:
    """A package manager invoked through a fixed argv sequence.

    Attributes:
        name: Display name (e.g. "apt-get")
        tool: Executable that must be on PATH for the provider to be usable
        steps: Commands run in order; the first failure aborts the provider
        privileged: Whether the steps need root
        best_effort: Follow-up commands whose failure is ignored
    """

    name: str
    tool: str
    steps: tuple[tuple[str, ...], ...]
    privileged: bool = False
    best_effort: tuple[tuple[str, ...], ...] = ()

    def available(self, executor: Executor) -> bool:
        return executor.which(self.tool) is not None

    def install(self, executor: Executor, sudo: list[str]) -> Result[None, CommandFailed]:
        for step in self.steps:
            result = executor.run([*sudo, *step], stream=True)
            if isinstance(result, Err):
                return result
        for step in self.best_effort:
            executor.run([*sudo, *step], stream=True)
        return Ok(None)


@dataclass(frozen=True, slots=True)
class HomebrewProvider:
    """Homebrew formula, bootstrapping Homebrew itself when it is absent."""

    formula: str
    link: bool = False
    name: str = "brew"
    privileged: bool = False

    def available(self, executor: Executor) -> bool:
        return True

    def install(self, executor: Executor, sudo: list[str]) -> Result[None, CommandFailed]:
        if not self._locate(executor):
            bootstrap = executor.run(
                ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'],
                stream=True,
            )
            if isinstance(bootstrap, Err):
                return bootstrap
            self._locate(executor)

        result = executor.run(["brew", "install", self.formula], stream=True)
        if isinstance(result, Err):
            return result
        if self.link:
            executor.run(["brew", "link", "--overwrite", self.formula], stream=True)
        return Ok(None)

    def _locate(self, executor: Executor) -> bool:
        if executor.which("brew") is not None:
            return True
        for directory in _HOMEBREW_PREFIXES:
            if (directory / "brew").exists():
                executor.prepend_path(directory)
                return True
        return False


@dataclass(frozen=True, slots=True)
class DependencySpec:
    """A required tool and the ways to get it.

    Attributes:
        name: Display name
        binary: Executable probed on PATH
        minimum: Lowest acceptable version (None = any)
        providers: Ordered installation alternatives
        remediation: Where to get it manually
        version_args: Arguments making binary print its version
    """

    name: str
    binary: str
    minimum: Version | None
    providers: tuple[Provider, ...] = field(default_factory=tuple)
    remediation: str = ""
    version_args: tuple[str, ...] = ("--version",)


class Escalation:
    """Decides how privileged commands are prefixed.

    - running as root: no prefix
    - sudo allowed and on PATH: ``sudo``
    - otherwise: PrivilegeRequired
    """

    def __init__(
        self,
        executor: Executor,
        *,
        allow_sudo: bool,
        is_root: bool | None = None,
    ) -> None:
        self._executor = executor
        self._allow_sudo = allow_sudo
        self._is_root = running_as_root() if is_root is None else is_root

    def prefix(self, action: str) -> Result[list[str], PrivilegeRequired]:
        if self._is_root:
            return Ok([])
        if not self._allow_sudo:
            return Err(PrivilegeRequired(action=action, reason="sudo disabled (--no-sudo)"))
        if self._executor.which("sudo") is None:
            return Err(PrivilegeRequired(action=action, reason="sudo not found"))
        return Ok(["sudo"])


class DependencyResolver:
    """Ensures dependencies are present, installing them when needed.

    Usage:
        resolver = DependencyResolver(executor, escalation)
        match resolver.ensure(node_spec(platform)):
            case Ok(probe):
                print(f"node {probe.version}")
            case Err(error):
                print(error)
    """

    def __init__(
        self,
        executor: Executor,
        escalation: Escalation,
        *,
        refresh_path: Callable[[], None] | None = None,
    ) -> None:
        self._executor = executor
        self._escalation = escalation
        self._refresh_path = refresh_path
        self._events = executor.events

    def probe(self, spec: DependencySpec) -> ProbeResult:
        """Probe the binary's version. Never mutates anything."""
        path = self._executor.which(spec.binary)
        if path is None:
            return ProbeResult(found=False)
        result = self._executor.probe([path, *spec.version_args])
        if isinstance(result, Err):
            return ProbeResult(found=False, raw=result.error.stderr)
        raw = result.value.strip()
        return ProbeResult(found=True, version=parse_version(raw), raw=raw)

    def ensure(
        self, spec: DependencySpec
    ) -> Result[ProbeResult, DependencyInstallFailure | PrivilegeRequired]:
        """Make sure spec's binary is present at or above its minimum version."""
        current = self.probe(spec)
        if current.satisfies(spec.minimum):
            self._events.emit(
                EventKind.DEPENDENCY_OK,
                dependency=spec.name,
                version=format_version(current.version),
            )
            return Ok(current)

        attempted: list[str] = []
        privilege_errors: list[PrivilegeRequired] = []
        ran_any = False

        for provider in spec.providers:
            attempted.append(provider.name)
            if not provider.available(self._executor):
                self._events.emit(
                    EventKind.PROVIDER_SKIPPED, provider=provider.name, reason="unavailable"
                )
                continue

            sudo: list[str] = []
            if provider.privileged:
                escalated = self._escalation.prefix(f"install {spec.name} via {provider.name}")
                if isinstance(escalated, Err):
                    privilege_errors.append(escalated.error)
                    self._events.emit(
                        EventKind.PROVIDER_SKIPPED,
                        provider=provider.name,
                        reason=escalated.error.reason,
                    )
                    continue
                sudo = escalated.value

            ran_any = True
            self._events.emit(
                EventKind.DEPENDENCY_INSTALL, dependency=spec.name, provider=provider.name
            )
            installed = provider.install(self._executor, sudo)
            if isinstance(installed, Err):
                self._events.emit(
                    EventKind.PROVIDER_FAILED,
                    provider=provider.name,
                    dependency=spec.name,
                    reason=str(installed.error),
                )
                continue

            if self._executor.dry_run:
                # Nothing was installed; report the plan as satisfying the dependency.
                return Ok(ProbeResult(found=True, version=spec.minimum, raw="dry-run"))

            after = self.probe(spec)
            if not after.found and self._refresh_path is not None:
                self._refresh_path()
                after = self.probe(spec)
            if after.satisfies(spec.minimum):
                self._events.emit(
                    EventKind.DEPENDENCY_INSTALLED,
                    dependency=spec.name,
                    version=format_version(after.version),
                    provider=provider.name,
                )
                return Ok(after)

            self._events.emit(
                EventKind.PROVIDER_FAILED,
                provider=provider.name,
                dependency=spec.name,
                reason=f"version check failed (found {format_version(after.version)})",
            )

        if privilege_errors and not ran_any:
            return Err(privilege_errors[0])
        return Err(
            DependencyInstallFailure(
                dependency=spec.name,
                attempted_providers=tuple(attempted),
                hint=spec.remediation,
            )
        )


def _nodesource(manager: str, repo: str) -> PackageProvider:
    setup = f"curl -fsSL https://{repo}.nodesource.com/setup_{NODE_MIN_MAJOR}.x | bash -"
    return PackageProvider(
        name=f"nodesource ({manager})",
        tool=manager,
        steps=(("bash", "-c", setup), (manager, "install", "-y", "nodejs")),
        privileged=True,
    )


def _winget(package_id: str) -> PackageProvider:
    return PackageProvider(
        name="winget",
        tool="winget",
        steps=(
            (
                "winget",
                "install",
                "--id",
                package_id,
                "-e",
                "--source",
                "winget",
                "--accept-package-agreements",
                "--accept-source-agreements",
            ),
        ),
    )


def node_spec(platform: PlatformInfo, minimum_major: int = NODE_MIN_MAJOR) -> DependencySpec:
    """Node.js >= minimum_major and its providers for platform."""
    providers: tuple[Provider, ...]
    match platform.os:
        case Os.DARWIN:
            providers = (HomebrewProvider(formula=f"node@{minimum_major}", link=True),)
        case Os.LINUX:
            providers = (
                _nodesource("apt-get", "deb"),
                _nodesource("dnf", "rpm"),
                _nodesource("yum", "rpm"),
            )
        case Os.WINDOWS:
            providers = (
                _winget("OpenJS.NodeJS.LTS"),
                PackageProvider("choco", "choco", (("choco", "install", "nodejs-lts", "-y"),)),
                PackageProvider("scoop", "scoop", (("scoop", "install", "nodejs-lts"),)),
            )

    return DependencySpec(
        name="node",
        binary="node",
        minimum=(minimum_major, 0, 0),
        providers=providers,
        remediation="https://nodejs.org/en/download",
    )


def git_spec(platform: PlatformInfo) -> DependencySpec:
    """Git (any version) and its providers for platform."""
    providers: tuple[Provider, ...]
    match platform.os:
        case Os.DARWIN:
            providers = (HomebrewProvider(formula="git"),)
        case Os.LINUX:
            providers = (
                PackageProvider(
                    "apt-get",
                    "apt-get",
                    (("apt-get", "update", "-y"), ("apt-get", "install", "-y", "git")),
                    privileged=True,
                ),
                PackageProvider("dnf", "dnf", (("dnf", "install", "-y", "git"),), privileged=True),
                PackageProvider("yum", "yum", (("yum", "install", "-y", "git"),), privileged=True),
            )
        case Os.WINDOWS:
            providers = (
                _winget("Git.Git"),
                PackageProvider("choco", "choco", (("choco", "install", "git", "-y"),)),
                PackageProvider("scoop", "scoop", (("scoop", "install", "git"),)),
            )

    return DependencySpec(
        name="git",
        binary="git",
        minimum=None,
        providers=providers,
        remediation="https://git-scm.com/downloads",
    )
