"""Installation pipeline.

Stages run strictly in order:

    PROBE -> RESOLVE_DEPENDENCIES -> FETCH_OR_UPDATE -> INSTALL
          -> REGISTER_PATH -> VERIFY -> DONE

Every stage returns a Result; the first Err stops the pipeline, is recorded
as an ``error`` event naming the stage, and is returned to the caller. There
are no retries. VERIFY only ever warns.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from getsymi.core.config import InstallMethod, RuntimeMode
from getsymi.core.errors import InstallError
from getsymi.core.result import Err, Ok, Result
from getsymi.output.errors import install_error_exit_code
from getsymi.output.events import EventKind
from getsymi.platform.detection import PlatformInfo, probe
from getsymi.platform.shell import WindowsUserPath
from getsymi.tools.fetcher import ArtifactFetcher

from .dependencies import DependencyResolver, Escalation, git_spec, node_spec
from .path_registrar import PathRegistrar
from .strategies import (
    InstallStrategy,
    InstalledTool,
    PrefixRegistryInstall,
    RegistryInstall,
    SourceInstall,
)
from .verify import PostInstallVerifier

if TYPE_CHECKING:
    from getsymi.core.config import InstallConfig
    from getsymi.platform.process import CommandRunner
    from getsymi.tools.http import HttpClient

    from .executor import Executor

__all__ = ["Orchestrator", "Stage"]


class Stage(Enum):
    PROBE = "probe"
    RESOLVE_DEPENDENCIES = "resolve_dependencies"
    FETCH_OR_UPDATE = "fetch_or_update"
    INSTALL = "install"
    REGISTER_PATH = "register_path"
    VERIFY = "verify"
    DONE = "done"

    def __str__(self) -> str:
        return self.value


class Orchestrator:
    """Drives one installation from platform probe to final report.

    Usage:
        orchestrator = Orchestrator(config, executor=executor, runner=runner, http=http)
        match orchestrator.run():
            case Ok(tool):
                print(f"installed {tool.bin}")
            case Err(error):
                raise typer.Exit(code=install_error_exit_code(error))
    """

    def __init__(
        self,
        config: InstallConfig,
        *,
        executor: Executor,
        runner: CommandRunner,
        http: HttpClient,
        system: str | None = None,
        machine: str | None = None,
        is_root: bool | None = None,
        verify_origin: bool = True,
    ) -> None:
        self._config = config
        self._executor = executor
        self._runner = runner
        self._http = http
        self._system = system
        self._machine = machine
        self._is_root = is_root
        self._verify_origin = verify_origin
        self._stage = Stage.PROBE

    @property
    def stage(self) -> Stage:
        """Current stage (the failing one after an error)."""
        return self._stage

    def _fail(self, error: InstallError) -> Err[InstallError]:
        self._executor.events.emit(
            EventKind.ERROR,
            stage=str(self._stage),
            code=install_error_exit_code(error),
            message=str(error),
        )
        return Err(error)

    def run(self) -> Result[InstalledTool, InstallError]:
        config = self._config
        events = self._executor.events

        self._stage = Stage.PROBE
        probed = probe(self._system, self._machine)
        if isinstance(probed, Err):
            return self._fail(probed.error)
        platform = probed.value
        events.emit(EventKind.PLATFORM_DETECTED, **platform.as_dict())

        windows_path = WindowsUserPath(self._runner) if platform.is_windows else None
        registrar = PathRegistrar(
            self._executor, platform, home=config.home, windows_path=windows_path
        )

        self._stage = Stage.RESOLVE_DEPENDENCIES
        resolved = self._resolve_dependencies(platform, registrar)
        if isinstance(resolved, Err):
            return self._fail(resolved.error)

        self._stage = Stage.FETCH_OR_UPDATE
        strategy = self._prepare(platform)
        if isinstance(strategy, Err):
            return self._fail(strategy.error)

        self._stage = Stage.INSTALL
        installed = strategy.value.install()
        if isinstance(installed, Err):
            return self._fail(installed.error)
        tool = installed.value
        if config.runtime == RuntimeMode.PREFIX:
            self._legacy_checkout_notice()

        self._stage = Stage.REGISTER_PATH
        for directory in tool.path_dirs:
            registered = registrar.register(directory, config.profile_files)
            if isinstance(registered, Err):
                return self._fail(registered.error)

        self._stage = Stage.VERIFY
        PostInstallVerifier(self._executor, config, refresh_path=registrar.refresh).run()

        self._stage = Stage.DONE
        events.emit(EventKind.COMPLETE, prefix=config.prefix, bin=tool.bin)
        return Ok(tool)

    def _resolve_dependencies(
        self, platform: PlatformInfo, registrar: PathRegistrar
    ) -> Result[None, InstallError]:
        escalation = Escalation(
            self._executor, allow_sudo=self._config.allow_sudo, is_root=self._is_root
        )
        resolver = DependencyResolver(self._executor, escalation, refresh_path=registrar.refresh)

        specs = [git_spec(platform)]
        if self._config.runtime == RuntimeMode.SYSTEM:
            specs.insert(0, node_spec(platform))

        for spec in specs:
            result = resolver.ensure(spec)
            if isinstance(result, Err):
                return result
        return Ok(None)

    def _prepare(self, platform: PlatformInfo) -> Result[InstallStrategy, InstallError]:
        config = self._config
        strategy: InstallStrategy

        if config.runtime == RuntimeMode.PREFIX:
            fetcher = ArtifactFetcher(
                http=self._http, events=self._executor.events, dry_run=config.dry_run
            )
            node = fetcher.ensure_node(
                config.node_version, platform, config.node_dir, dist_url=config.node_dist_url
            )
            if isinstance(node, Err):
                return node
            strategy = PrefixRegistryInstall(
                self._executor, config, platform, node_bin=node.value
            )
        elif config.install_method == InstallMethod.SOURCE:
            strategy = SourceInstall(
                self._executor, config, platform, verify_origin=self._verify_origin
            )
        else:
            strategy = RegistryInstall(self._executor, config, platform, is_root=self._is_root)

        prepared = strategy.prepare()
        if isinstance(prepared, Err):
            return prepared
        return Ok(strategy)

    def _legacy_checkout_notice(self) -> None:
        legacy = self._config.legacy_git_dir
        if legacy is not None and Path(legacy, ".git").is_dir():
            self._executor.events.emit(EventKind.LEGACY_CHECKOUT, path=legacy)
