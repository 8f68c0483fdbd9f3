"""Tests for the install commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import typer
from typer.testing import CliRunner

from getsymi import __version__
from getsymi.cli.app import app
from getsymi.cli.commands.install import _resolve_source_checkout
from getsymi.cli.context import CLIContext
from getsymi.core.config import (
    ConfigOverrides,
    InstallConfig,
    InstallMethod,
    RuntimeMode,
    load_config,
)
from getsymi.core.errors import InstallError, NetworkFailure
from getsymi.core.result import Err, Ok, Result
from getsymi.output.console import MockConsole
from getsymi.output.events import EventKind, EventLog
from getsymi.platform.process import MockCommandRunner
from getsymi.services.executor import Executor
from getsymi.services.strategies import InstalledTool
from getsymi.tools.http import MockHttpClient

runner = CliRunner()


class FakeOrchestrator:
    """Stands in for the pipeline; records the config it was given."""

    configs: list[InstallConfig] = []
    result: Result[InstalledTool, InstallError] = Ok(
        InstalledTool(bin=Path("symi"), method=InstallMethod.REGISTRY, version="latest")
    )

    def __init__(self, config: InstallConfig, **kwargs: Any) -> None:
        self._config = config
        self._executor: Executor = kwargs["executor"]
        FakeOrchestrator.configs.append(config)

    def run(self) -> Result[InstalledTool, InstallError]:
        result = FakeOrchestrator.result
        if isinstance(result, Err):
            self._executor.events.emit(
                EventKind.ERROR, stage="fetch_or_update", code=6, message=str(result.error)
            )
        return result


@pytest.fixture
def fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> type[FakeOrchestrator]:
    FakeOrchestrator.configs = []
    monkeypatch.setattr("getsymi.cli.commands._helpers.Orchestrator", FakeOrchestrator)
    return FakeOrchestrator


def _env(home: Path, **extra: str) -> dict[str, str]:
    return {"HOME": str(home), "USERPROFILE": str(home), **extra}


class TestApp:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "install-cli" in result.output


class TestArguments:
    def test_invalid_env_method(
        self, tmp_path: Path, fake_pipeline: type[FakeOrchestrator]
    ) -> None:
        env = _env(tmp_path, SYMI_INSTALL_METHOD="pip")
        result = runner.invoke(app, ["install"], env=env)
        assert result.exit_code == 2
        assert fake_pipeline.configs == []

    def test_npm_and_git_conflict(
        self, tmp_path: Path, fake_pipeline: type[FakeOrchestrator]
    ) -> None:
        result = runner.invoke(app, ["install", "--npm", "--git"], env=_env(tmp_path))
        assert result.exit_code == 2

    def test_flags_reach_config(
        self, tmp_path: Path, fake_pipeline: type[FakeOrchestrator]
    ) -> None:
        result = runner.invoke(
            app,
            ["install", "--git", "--no-git-update", "--no-onboard", "--no-sudo", "--dry-run"],
            env=_env(tmp_path),
        )

        assert result.exit_code == 0, result.output
        (config,) = fake_pipeline.configs
        assert config.install_method == InstallMethod.SOURCE
        assert config.git_update is False
        assert config.onboard is False
        assert config.allow_sudo is False
        assert config.dry_run is True
        assert config.runtime == RuntimeMode.SYSTEM

    def test_install_cli_uses_prefix_runtime(
        self, tmp_path: Path, fake_pipeline: type[FakeOrchestrator]
    ) -> None:
        result = runner.invoke(
            app,
            ["install-cli", "--prefix", str(tmp_path / "p"), "--node-version", "v22.1.0"],
            env=_env(tmp_path),
        )

        assert result.exit_code == 0, result.output
        (config,) = fake_pipeline.configs
        assert config.runtime == RuntimeMode.PREFIX
        assert config.prefix == tmp_path / "p"
        assert config.node_version == "22.1.0"

    def test_explicit_env_method_skips_checkout_detection(
        self,
        tmp_path: Path,
        fake_pipeline: type[FakeOrchestrator],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        checkout = _make_checkout(tmp_path / "checkout")
        monkeypatch.chdir(checkout)

        result = runner.invoke(app, ["install"], env=_env(tmp_path, SYMI_INSTALL_METHOD="git"))

        assert result.exit_code == 0, result.output
        (config,) = fake_pipeline.configs
        assert config.install_method == InstallMethod.SOURCE
        assert config.git_dir == tmp_path / "symi"
        assert "defaulting to npm" not in result.output


class TestExitCodes:
    def test_failure_maps_to_exit_code(
        self,
        tmp_path: Path,
        fake_pipeline: type[FakeOrchestrator],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        failure = Err(NetworkFailure("https://nodejs.org", 503, "down"))
        monkeypatch.setattr(fake_pipeline, "result", failure)
        result = runner.invoke(app, ["install-cli", "--json"], env=_env(tmp_path))

        assert result.exit_code == 6
        records = [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]
        assert records[-1]["event"] == "error"
        assert records[-1]["code"] == 6


def _context(
    tmp_path: Path, *, is_tty: bool, env: dict[str, str] | None = None
) -> tuple[CLIContext, MockConsole]:
    loaded = load_config(
        env or {}, ConfigOverrides(), runtime=RuntimeMode.SYSTEM, home=tmp_path, is_tty=is_tty
    )
    assert isinstance(loaded, Ok)
    console = MockConsole()
    events = EventLog()
    command_runner = MockCommandRunner()
    ctx = CLIContext(
        config=loaded.value,
        console=console,
        events=events,
        runner=command_runner,
        executor=Executor(command_runner, events, environ={}),
        http=MockHttpClient(),
    )
    return ctx, console


def _make_checkout(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(json.dumps({"name": "symi"}))
    (root / "pnpm-workspace.yaml").write_text("")
    return root


class TestSourceCheckoutPrompt:
    def test_not_a_checkout(self, tmp_path: Path) -> None:
        ctx, _ = _context(tmp_path, is_tty=True)
        assert _resolve_source_checkout(ctx, tmp_path) == (ctx, True)

    def test_no_tty_defaults_to_npm(self, tmp_path: Path) -> None:
        ctx, _ = _context(tmp_path, is_tty=False)
        updated, verify_origin = _resolve_source_checkout(ctx, _make_checkout(tmp_path))
        assert updated.config.install_method == InstallMethod.REGISTRY
        assert verify_origin is True
        assert ctx.events.has(EventKind.WARNING)

    def test_json_mode_never_prompts(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(typer, "prompt", lambda *args, **kwargs: pytest.fail("prompted"))
        ctx, _ = _context(tmp_path, is_tty=True, env={"SYMI_JSON": "1"})

        updated, _ = _resolve_source_checkout(ctx, _make_checkout(tmp_path))

        assert updated.config.install_method == InstallMethod.REGISTRY
        assert ctx.events.has(EventKind.WARNING)

    def test_choose_git(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typer, "prompt", lambda *args, **kwargs: "git")
        ctx, _ = _context(tmp_path, is_tty=True)
        checkout = _make_checkout(tmp_path)

        updated, verify_origin = _resolve_source_checkout(ctx, checkout)

        assert updated.config.install_method == InstallMethod.SOURCE
        assert updated.config.git_dir == checkout
        assert verify_origin is False

    def test_invalid_choice(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typer, "prompt", lambda *args, **kwargs: "pip")
        ctx, console = _context(tmp_path, is_tty=True)

        with pytest.raises(typer.Exit) as exc_info:
            _resolve_source_checkout(ctx, _make_checkout(tmp_path))

        assert exc_info.value.exit_code == 2
        assert console.has_error()
