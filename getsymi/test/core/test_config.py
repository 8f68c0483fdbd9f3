"""Tests for installer configuration resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from getsymi.core.config import (
    DEFAULT_NODE_VERSION,
    ConfigOverrides,
    InstallConfig,
    InstallMethod,
    InteractionMode,
    OutputMode,
    RuntimeMode,
    load_config,
)
from getsymi.core.errors import InvalidArgument
from getsymi.core.result import Err, Ok

HOME = Path("/home/me")


def _load(
    env: dict[str, str] | None = None,
    overrides: ConfigOverrides | None = None,
    *,
    runtime: RuntimeMode = RuntimeMode.SYSTEM,
    is_tty: bool = True,
) -> InstallConfig:
    result = load_config(
        env or {}, overrides or ConfigOverrides(), runtime=runtime, home=HOME, is_tty=is_tty
    )
    assert isinstance(result, Ok), result
    return result.value


def _load_err(
    env: dict[str, str] | None = None,
    overrides: ConfigOverrides | None = None,
    *,
    runtime: RuntimeMode = RuntimeMode.SYSTEM,
) -> InvalidArgument:
    result = load_config(
        env or {}, overrides or ConfigOverrides(), runtime=runtime, home=HOME, is_tty=True
    )
    assert isinstance(result, Err), result
    return result.error


class TestDefaults:
    def test_system_defaults(self) -> None:
        config = _load()
        assert config.prefix == HOME / ".symi"
        assert config.version == "latest"
        assert config.node_version == DEFAULT_NODE_VERSION
        assert config.install_method == InstallMethod.REGISTRY
        assert config.git_dir == HOME / "symi"
        assert config.git_update is True
        assert config.allow_sudo is True
        assert config.output == OutputMode.HUMAN
        assert config.npm_loglevel == "warn"
        assert config.dry_run is False

    def test_derived_paths(self) -> None:
        config = _load()
        assert config.bin_dir == HOME / ".symi" / "bin"
        assert config.node_dir == HOME / ".symi" / "tools" / f"node-v{DEFAULT_NODE_VERSION}"
        assert config.local_bin == HOME / ".local" / "bin"
        assert HOME / ".bashrc" in config.profile_files

    def test_prefix_runtime_does_not_onboard_by_default(self) -> None:
        config = _load(runtime=RuntimeMode.PREFIX)
        assert config.onboard is None
        assert config.should_onboard is False


class TestPrecedence:
    """Flags beat environment, environment beats defaults."""

    def test_env_overrides_default(self) -> None:
        config = _load({"SYMI_VERSION": "1.2.3", "SYMI_PREFIX": "/opt/symi"})
        assert config.version == "1.2.3"
        assert config.prefix == Path("/opt/symi")

    def test_flag_overrides_env(self) -> None:
        config = _load(
            {"SYMI_VERSION": "1.2.3", "SYMI_DRY_RUN": "1"},
            ConfigOverrides(version="2.0.0", dry_run=False),
        )
        assert config.version == "2.0.0"
        assert config.dry_run is False

    def test_node_version_strips_leading_v(self) -> None:
        config = _load({"SYMI_NODE_VERSION": "v22.1.0"})
        assert config.node_version == "22.1.0"

    def test_node_dist_url_trailing_slash_removed(self) -> None:
        config = _load({"SYMI_NODE_DIST_URL": "https://mirror.example/node/"})
        assert config.node_dist_url == "https://mirror.example/node"

    def test_git_dir_env_is_remembered_as_legacy(self) -> None:
        config = _load({"SYMI_GIT_DIR": "/src/symi"})
        assert config.git_dir == Path("/src/symi")
        assert config.legacy_git_dir == Path("/src/symi")

    def test_no_git_dir_env_means_no_legacy(self) -> None:
        assert _load().legacy_git_dir is None


class TestBooleans:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy(self, raw: str) -> None:
        assert _load({"SYMI_BETA": raw}).use_beta is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off", ""])
    def test_falsy(self, raw: str) -> None:
        assert _load({"SYMI_BETA": raw}).use_beta is False

    def test_malformed_bool_is_rejected(self) -> None:
        error = _load_err({"SYMI_NO_SUDO": "maybe"})
        assert error.name == "SYMI_NO_SUDO"
        assert error.value == "maybe"

    def test_no_sudo(self) -> None:
        assert _load({"SYMI_NO_SUDO": "1"}).allow_sudo is False
        assert _load(overrides=ConfigOverrides(no_sudo=True)).allow_sudo is False


class TestInstallMethod:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("npm", InstallMethod.REGISTRY),
            ("registry", InstallMethod.REGISTRY),
            ("git", InstallMethod.SOURCE),
            ("GitHub", InstallMethod.SOURCE),
            ("source", InstallMethod.SOURCE),
        ],
    )
    def test_aliases(self, raw: str, expected: InstallMethod) -> None:
        assert _load({"SYMI_INSTALL_METHOD": raw}).install_method == expected

    def test_unknown_method_rejected(self) -> None:
        error = _load_err({"SYMI_INSTALL_METHOD": "pip"})
        assert error.value == "pip"

    def test_default_method_is_not_explicit(self) -> None:
        config = _load()
        assert config.install_method == InstallMethod.REGISTRY
        assert config.method_explicit is False

    def test_env_method_is_explicit(self) -> None:
        assert _load({"SYMI_INSTALL_METHOD": "npm"}).method_explicit is True

    def test_flag_method_is_explicit(self) -> None:
        assert _load(overrides=ConfigOverrides(install_method="git")).method_explicit is True

    def test_blank_env_method_is_not_explicit(self) -> None:
        assert _load({"SYMI_INSTALL_METHOD": "  "}).method_explicit is False

    def test_prefix_runtime_rejects_source(self) -> None:
        error = _load_err(
            overrides=ConfigOverrides(install_method="git"), runtime=RuntimeMode.PREFIX
        )
        assert "prefix" in error.reason


class TestValidation:
    def test_version_with_whitespace_rejected(self) -> None:
        assert _load_err(overrides=ConfigOverrides(version="1.0 beta")).name == "version"

    def test_malformed_node_version_rejected(self) -> None:
        assert _load_err({"SYMI_NODE_VERSION": "22"}).name == "node version"

    def test_unknown_npm_loglevel_rejected(self) -> None:
        assert _load_err({"SYMI_NPM_LOGLEVEL": "loud"}).name == "SYMI_NPM_LOGLEVEL"

    def test_verbose_raises_default_loglevel(self) -> None:
        assert _load(overrides=ConfigOverrides(verbose=True)).npm_loglevel == "notice"

    def test_verbose_keeps_explicit_loglevel(self) -> None:
        config = _load({"SYMI_NPM_LOGLEVEL": "silent"}, ConfigOverrides(verbose=True))
        assert config.npm_loglevel == "silent"


class TestInteraction:
    def test_tty_is_interactive(self) -> None:
        config = _load(is_tty=True)
        assert config.interaction == InteractionMode.INTERACTIVE
        assert config.allow_prompts is True
        assert config.should_onboard is True

    def test_no_tty_is_non_interactive(self) -> None:
        config = _load(is_tty=False)
        assert config.interaction == InteractionMode.NON_INTERACTIVE
        assert config.allow_prompts is False
        assert config.should_onboard is False

    def test_no_prompt_disables_prompts_on_tty(self) -> None:
        config = _load({"SYMI_NO_PROMPT": "1"}, is_tty=True)
        assert config.interaction == InteractionMode.NON_INTERACTIVE
        assert config.allow_prompts is False

    def test_explicit_onboard_is_forced(self) -> None:
        config = _load(overrides=ConfigOverrides(onboard=True), is_tty=False)
        assert config.interaction == InteractionMode.FORCED
        assert config.should_onboard is True

    def test_env_no_onboard(self) -> None:
        config = _load({"SYMI_NO_ONBOARD": "1"}, is_tty=True)
        assert config.onboard is False
        assert config.should_onboard is False

    def test_onboard_flag_beats_env(self) -> None:
        config = _load({"SYMI_NO_ONBOARD": "1"}, ConfigOverrides(onboard=True))
        assert config.onboard is True

    def test_json_output(self) -> None:
        config = _load({"SYMI_JSON": "1"})
        assert config.output == OutputMode.JSON
        assert config.json_output is True

    def test_json_output_disables_prompts(self) -> None:
        config = _load({"SYMI_JSON": "1"}, is_tty=True)
        assert config.allow_prompts is False
