"""Install strategies for the symi package.

- ``RegistryInstall``: ``npm install -g`` against the system Node runtime
- ``PrefixRegistryInstall``: npm install into ``<prefix>/lib`` using the
  prefix-local runtime, fronted by a wrapper in ``<prefix>/bin``
- ``SourceInstall``: clone or fast-forward a git checkout, build it with
  pnpm, and front it with a wrapper in ``~/.local/bin``

Each strategy returns the installed entry point plus the directories that
must be on PATH for it to resolve. Re-running a strategy converges on the
same result.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from getsymi.core.config import InstallMethod
from getsymi.core.errors import InstallError
from getsymi.core.result import Err, Ok, Result
from getsymi.git.repository import Repository
from getsymi.output.events import EventKind
from getsymi.platform.detection import Os, running_as_root
from getsymi.platform.process import with_path
from getsymi.tools.wrapper import RenderedWrapper, WrapperGenerator, WrapperSpec

if TYPE_CHECKING:
    from getsymi.core.config import InstallConfig
    from getsymi.platform.detection import PlatformInfo

    from .executor import Executor

__all__ = [
    "InstallStrategy",
    "InstalledTool",
    "PrefixRegistryInstall",
    "RegistryInstall",
    "SourceInstall",
    "detect_source_checkout",
]

SOURCE_PACKAGE_NAMES = frozenset({"symi", "@symi/symi"})
NPM_GLOBAL_DIR = ".npm-global"


@dataclass(frozen=True, slots=True)
class InstalledTool:
    """What an install strategy produced.

    Attributes:
        bin: Entry point users run
        method: How it was installed
        version: Requested version or dist-tag
        path_dirs: Directories that must be on PATH
    """

    bin: Path
    method: InstallMethod
    version: str
    path_dirs: tuple[Path, ...] = ()


class InstallStrategy(Protocol):
    def prepare(self) -> Result[None, InstallError]:
        """Fetch or update sources before installing."""
        ...

    def install(self) -> Result[InstalledTool, InstallError]: ...


def detect_source_checkout(directory: Path) -> bool:
    """Check whether directory is a symi source checkout."""
    package_json = directory / "package.json"
    if not package_json.is_file() or not (directory / "pnpm-workspace.yaml").is_file():
        return False
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(data, dict) and data.get("name") in SOURCE_PACKAGE_NAMES


def _npm_env(executor: Executor) -> dict[str, str]:
    env: dict[str, str] = {}
    if "SHARP_IGNORE_GLOBAL_LIBVIPS" not in executor.environ:
        env["SHARP_IGNORE_GLOBAL_LIBVIPS"] = "1"
    return env


def _write_wrapper(executor: Executor, wrapper: RenderedWrapper) -> None:
    changed = executor.write_text(wrapper.path, wrapper.content, mode=wrapper.mode)
    if changed and not executor.dry_run:
        executor.events.emit(EventKind.WRAPPER_WRITTEN, path=wrapper.path)


def _report_installed(executor: Executor, package: str, version: str, bin_path: Path) -> None:
    if executor.dry_run:
        executor.events.emit(
            EventKind.WOULD_INSTALL, package=package, version=version, target=bin_path
        )
        return
    executor.events.emit(EventKind.INSTALL_COMPLETE, package=package, bin=bin_path)


class RegistryInstall:
    """Global npm install on the system Node runtime."""

    def __init__(
        self,
        executor: Executor,
        config: InstallConfig,
        platform: PlatformInfo,
        *,
        is_root: bool | None = None,
    ) -> None:
        self._executor = executor
        self._config = config
        self._platform = platform
        self._is_root = running_as_root() if is_root is None else is_root

    @property
    def _npm(self) -> str:
        return self._executor.which("npm") or "npm"

    def resolve_tag(self) -> str:
        """Pick the dist-tag, preferring beta when asked and published."""
        tag = self._config.version
        if not self._config.use_beta:
            return tag

        result = self._executor.probe(
            [self._npm, "view", f"{self._config.package}@beta", "version"]
        )
        beta = result.value.strip() if isinstance(result, Ok) else ""
        if beta:
            self._executor.events.info(f"Beta available: {beta}")
            return "beta"
        self._executor.events.warning(f"No beta release found - falling back to {tag}")
        return tag

    def global_prefix(self) -> Path | None:
        result = self._executor.probe([self._npm, "config", "get", "prefix"])
        if isinstance(result, Err):
            return None
        value = result.value.strip()
        return Path(value) if value else None

    def fix_npm_prefix(self) -> Result[Path | None, InstallError]:
        """Move the global prefix to ~/.npm-global when it is not writable.

        Only applies on Linux. Returns the new prefix, or None when the
        current one is kept.
        """
        if self._platform.os != Os.LINUX:
            return Ok(None)

        if not self._config.set_npm_prefix:
            if self._is_root:
                return Ok(None)
            prefix = self.global_prefix()
            if prefix is not None and os.access(prefix / "lib", os.W_OK):
                return Ok(None)

        new_prefix = self._config.home / NPM_GLOBAL_DIR
        self._executor.events.info(f"npm prefix not writable - switching to {new_prefix}")
        self._executor.mkdir(new_prefix)
        result = self._executor.run([self._npm, "config", "set", "prefix", str(new_prefix)])
        if isinstance(result, Err):
            return result
        return Ok(new_prefix)

    def prepare(self) -> Result[None, InstallError]:
        return Ok(None)

    def install(self) -> Result[InstalledTool, InstallError]:
        tag = self.resolve_tag()

        fixed = self.fix_npm_prefix()
        if isinstance(fixed, Err):
            return fixed
        path_dirs: tuple[Path, ...] = ()
        if fixed.value is not None:
            path_dirs = (fixed.value / "bin",)
            self._executor.prepend_path(fixed.value / "bin")

        package = self._config.package
        self._executor.events.emit(
            EventKind.INSTALL_STARTED, package=package, version=tag, method="npm"
        )
        result = self._executor.run(
            [
                self._npm,
                "install",
                "-g",
                f"{package}@{tag}",
                f"--loglevel={self._config.npm_loglevel}",
            ],
            env=_npm_env(self._executor),
            stream=True,
        )
        if isinstance(result, Err):
            return result

        prefix = fixed.value or self.global_prefix()
        bin_path = self._global_bin(prefix)
        _report_installed(self._executor, package, tag, bin_path)
        return Ok(
            InstalledTool(
                bin=bin_path,
                method=InstallMethod.REGISTRY,
                version=tag,
                path_dirs=path_dirs,
            )
        )

    def _global_bin(self, prefix: Path | None) -> Path:
        name = self._config.package
        if prefix is None:
            return Path(name)
        if self._platform.is_windows:
            return prefix / f"{name}.cmd"
        return prefix / "bin" / name


class PrefixRegistryInstall:
    """npm install into ``<prefix>/lib`` with the prefix-local runtime."""

    def __init__(
        self,
        executor: Executor,
        config: InstallConfig,
        platform: PlatformInfo,
        *,
        node_bin: Path,
    ) -> None:
        self._executor = executor
        self._config = config
        self._platform = platform
        self._node_bin = node_bin

    @property
    def lib_dir(self) -> Path:
        return self._config.prefix / "lib"

    def entry_point(self) -> Path:
        name = self._config.package
        if self._platform.is_windows:
            name = f"{name}.cmd"
        return self.lib_dir / "node_modules" / ".bin" / name

    def prepare(self) -> Result[None, InstallError]:
        return Ok(None)

    def install(self) -> Result[InstalledTool, InstallError]:
        config = self._config
        npm = self._node_bin / ("npm.cmd" if self._platform.is_windows else "npm")

        self._executor.mkdir(config.bin_dir)
        self._executor.mkdir(self.lib_dir)
        self._executor.events.emit(
            EventKind.INSTALL_STARTED,
            package=config.package,
            version=config.version,
            method="npm",
            prefix=config.prefix,
        )

        env = _npm_env(self._executor)
        env["PATH"] = with_path(self._node_bin, self._executor.environ)["PATH"]
        result = self._executor.run(
            [
                str(npm),
                "install",
                "--prefix",
                str(self.lib_dir),
                f"{config.package}@{config.version}",
                f"--loglevel={config.npm_loglevel}",
            ],
            env=env,
            stream=True,
        )
        if isinstance(result, Err):
            return result

        wrapper = WrapperGenerator(config.bin_dir).render(
            WrapperSpec(
                name=config.package,
                target=self.entry_point(),
                path_prepend=(self._node_bin,),
            ),
            self._platform.os,
        )
        _write_wrapper(self._executor, wrapper)

        _report_installed(self._executor, config.package, config.version, wrapper.path)
        return Ok(
            InstalledTool(
                bin=wrapper.path,
                method=InstallMethod.REGISTRY,
                version=config.version,
                path_dirs=(config.bin_dir,),
            )
        )


class SourceInstall:
    """Build symi from a git checkout."""

    def __init__(
        self,
        executor: Executor,
        config: InstallConfig,
        platform: PlatformInfo,
        *,
        verify_origin: bool = True,
    ) -> None:
        self._executor = executor
        self._config = config
        self._platform = platform
        self._verify_origin = verify_origin

    def sync_checkout(self) -> Result[Repository, InstallError]:
        """Clone the repository, or fast-forward an existing checkout."""
        config = self._config
        events = self._executor.events
        repo = Repository(config.git_dir, self._executor)

        if not repo.exists():
            events.emit(EventKind.CHECKOUT_CLONE, repo=config.repo_url, path=config.git_dir)
            cloned = repo.clone(config.repo_url)
            if isinstance(cloned, Err):
                return cloned
            return Ok(repo)

        if self._verify_origin:
            origin = repo.check_origin(config.repo_url)
            if isinstance(origin, Err):
                return origin

        if not config.git_update:
            events.emit(EventKind.CHECKOUT_SKIPPED, path=config.git_dir, reason="--no-git-update")
            return Ok(repo)

        events.emit(EventKind.CHECKOUT_UPDATE, path=config.git_dir)
        pulled = repo.pull_ff()
        if isinstance(pulled, Err):
            return pulled
        return Ok(repo)

    def prepare(self) -> Result[None, InstallError]:
        synced = self.sync_checkout()
        if isinstance(synced, Err):
            return synced
        return Ok(None)

    def ensure_pnpm(self) -> Result[str, InstallError]:
        pnpm = self._executor.which("pnpm")
        if pnpm is not None:
            return Ok(pnpm)

        self._executor.events.info("Installing pnpm...")
        npm = self._executor.which("npm") or "npm"
        result = self._executor.run([npm, "install", "-g", "pnpm"], stream=True)
        if isinstance(result, Err):
            return result
        return Ok(self._executor.which("pnpm") or "pnpm")

    def build(self, pnpm: str) -> Result[None, InstallError]:
        cwd = self._config.git_dir
        env = _npm_env(self._executor)

        installed = self._executor.run([pnpm, "install"], cwd=cwd, env=env, stream=True)
        if isinstance(installed, Err):
            return installed

        ui = self._executor.run([pnpm, "run", "ui:build"], cwd=cwd, env=env, stream=True)
        if isinstance(ui, Err):
            self._executor.events.warning(f"UI build failed, continuing: {ui.error}")

        built = self._executor.run([pnpm, "run", "build"], cwd=cwd, env=env, stream=True)
        if isinstance(built, Err):
            return built
        return Ok(None)

    def install(self) -> Result[InstalledTool, InstallError]:
        config = self._config
        self._executor.events.emit(
            EventKind.INSTALL_STARTED,
            package=config.package,
            version=config.version,
            method="git",
            path=config.git_dir,
        )

        pnpm = self.ensure_pnpm()
        if isinstance(pnpm, Err):
            return pnpm

        built = self.build(pnpm.value)
        if isinstance(built, Err):
            return built

        wrapper = WrapperGenerator(config.local_bin).render(
            WrapperSpec(
                name=config.package,
                target=config.git_dir / "dist" / "index.js",
                interpreter="node",
            ),
            self._platform.os,
        )
        _write_wrapper(self._executor, wrapper)

        _report_installed(self._executor, config.package, config.version, wrapper.path)
        return Ok(
            InstalledTool(
                bin=wrapper.path,
                method=InstallMethod.SOURCE,
                version=config.version,
                path_dirs=(config.local_bin,),
            )
        )
