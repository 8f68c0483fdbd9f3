"""Typed installer configuration.

The configuration is resolved exactly once at startup, in this order:
built-in defaults, then ``SYMI_*`` environment variables, then explicit
command-line flags. The result is a frozen ``InstallConfig`` that every
stage receives explicitly; nothing downstream reads the environment.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from .errors import InvalidArgument
from .result import Err, Ok, Result

__all__ = [
    "ConfigOverrides",
    "InstallConfig",
    "InstallMethod",
    "InteractionMode",
    "OutputMode",
    "RuntimeMode",
    "load_config",
    "DEFAULT_NODE_VERSION",
    "DEFAULT_REPO_URL",
    "NODE_DIST_URL",
]

DEFAULT_VERSION = "latest"
DEFAULT_NODE_VERSION = "22.22.0"
DEFAULT_NPM_LOGLEVEL = "warn"
DEFAULT_REPO_URL = "https://github.com/symi/symi.git"
NODE_DIST_URL = "https://nodejs.org/dist"
PACKAGE_NAME = "symi"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_NODE_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_NPM_LOGLEVELS = {"silent", "error", "warn", "notice", "http", "info", "verbose", "silly"}


class InstallMethod(Enum):
    """How symi itself is installed."""

    REGISTRY = "registry"
    SOURCE = "source"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> InstallMethod | None:
        """Parse a method name, accepting the npm/git aliases."""
        aliases = {
            "registry": cls.REGISTRY,
            "npm": cls.REGISTRY,
            "source": cls.SOURCE,
            "git": cls.SOURCE,
            "github": cls.SOURCE,
        }
        return aliases.get(raw.strip().lower())


class RuntimeMode(Enum):
    """Where the Node.js runtime comes from."""

    SYSTEM = auto()  # resolved through package-manager providers
    PREFIX = auto()  # checksum-verified tarball under <prefix>/tools

    def __str__(self) -> str:
        return self.name.lower()


class OutputMode(Enum):
    HUMAN = auto()
    JSON = auto()

    def __str__(self) -> str:
        return self.name.lower()


class InteractionMode(Enum):
    """Whether the session may run interactive steps.

    Computed once from flags and the terminal state, never re-queried.
    """

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()
    FORCED = auto()  # interactive steps explicitly requested (e.g. --onboard)

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True, slots=True)
class ConfigOverrides:
    """Values given explicitly on the command line (None = not given)."""

    prefix: Path | None = None
    version: str | None = None
    node_version: str | None = None
    install_method: str | None = None
    beta: bool | None = None
    git_dir: Path | None = None
    git_update: bool | None = None
    onboard: bool | None = None
    no_prompt: bool | None = None
    no_sudo: bool | None = None
    set_npm_prefix: bool | None = None
    json_output: bool | None = None
    dry_run: bool | None = None
    verbose: bool | None = None


@dataclass(frozen=True, slots=True)
class InstallConfig:
    """Resolved, immutable installation target and options."""

    home: Path
    prefix: Path
    version: str
    node_version: str
    install_method: InstallMethod
    runtime: RuntimeMode
    use_beta: bool
    git_dir: Path
    git_update: bool
    repo_url: str
    onboard: bool | None
    interaction: InteractionMode
    output: OutputMode
    allow_sudo: bool
    set_npm_prefix: bool
    npm_loglevel: str
    node_dist_url: str = NODE_DIST_URL
    legacy_git_dir: Path | None = None
    method_explicit: bool = False
    allow_prompts: bool = False
    dry_run: bool = False
    verbose: bool = False
    package: str = PACKAGE_NAME

    @property
    def bin_dir(self) -> Path:
        """Directory holding the prefix-local symi wrapper."""
        return self.prefix / "bin"

    @property
    def node_dir(self) -> Path:
        """Install directory of the prefix-local Node runtime."""
        return self.prefix / "tools" / f"node-v{self.node_version}"

    @property
    def local_bin(self) -> Path:
        """User bin directory used by source installs."""
        return self.home / ".local" / "bin"

    @property
    def profile_files(self) -> tuple[Path, ...]:
        return (
            self.home / ".bashrc",
            self.home / ".zshrc",
            self.home / ".profile",
        )

    @property
    def json_output(self) -> bool:
        return self.output == OutputMode.JSON

    @property
    def should_onboard(self) -> bool:
        """Onboard when asked to, or by default in an interactive system install."""
        if self.onboard is not None:
            return self.onboard
        if self.runtime == RuntimeMode.PREFIX:
            return False
        return self.interaction == InteractionMode.INTERACTIVE


def _env_str(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_bool(env: Mapping[str, str], key: str) -> Result[bool | None, InvalidArgument]:
    raw = env.get(key)
    if raw is None:
        return Ok(None)
    value = raw.strip().lower()
    if value in _TRUE:
        return Ok(True)
    if value in _FALSE:
        return Ok(False)
    return Err(InvalidArgument(key, raw, "expected 1/0, true/false, yes/no or on/off"))


def _pick[T](flag: T | None, env_value: T | None, default: T) -> T:
    if flag is not None:
        return flag
    if env_value is not None:
        return env_value
    return default


def _resolve_onboard(
    overrides: ConfigOverrides,
    env_onboard: bool | None,
    env_no_onboard: bool | None,
) -> bool | None:
    if overrides.onboard is not None:
        return overrides.onboard
    if env_onboard:
        return True
    if env_no_onboard is not None:
        return not env_no_onboard
    return None


def load_config(
    env: Mapping[str, str],
    overrides: ConfigOverrides,
    *,
    runtime: RuntimeMode,
    home: Path,
    is_tty: bool,
) -> Result[InstallConfig, InvalidArgument]:
    """Resolve defaults, environment and flags into an InstallConfig.

    Args:
        env: Process environment (only ``SYMI_*`` keys are consulted)
        overrides: Explicit command-line values
        runtime: Runtime mode chosen by the entry point
        home: User home directory
        is_tty: Whether stdin is attached to a terminal

    Returns:
        Ok with the config, or Err(InvalidArgument) for malformed values.
    """
    bools: dict[str, bool | None] = {}
    for key in (
        "SYMI_BETA",
        "SYMI_GIT_UPDATE",
        "SYMI_ONBOARD",
        "SYMI_NO_ONBOARD",
        "SYMI_NO_PROMPT",
        "SYMI_NO_SUDO",
        "SYMI_SET_NPM_PREFIX",
        "SYMI_JSON",
        "SYMI_DRY_RUN",
        "SYMI_VERBOSE",
    ):
        parsed = _env_bool(env, key)
        if isinstance(parsed, Err):
            return parsed
        bools[key] = parsed.value

    env_prefix = _env_str(env, "SYMI_PREFIX")
    prefix = _pick(
        overrides.prefix,
        Path(env_prefix) if env_prefix else None,
        home / ".symi",
    ).expanduser()

    version = _pick(overrides.version, _env_str(env, "SYMI_VERSION"), DEFAULT_VERSION).strip()
    if not version or any(ch.isspace() for ch in version):
        return Err(InvalidArgument("version", version, "must be a version or dist-tag"))

    node_version = _pick(
        overrides.node_version, _env_str(env, "SYMI_NODE_VERSION"), DEFAULT_NODE_VERSION
    ).removeprefix("v")
    if not _NODE_VERSION_RE.match(node_version):
        return Err(InvalidArgument("node version", node_version, "expected X.Y.Z"))

    explicit_method = _pick(overrides.install_method, _env_str(env, "SYMI_INSTALL_METHOD"), None)
    raw_method = explicit_method or "registry"
    method = InstallMethod.parse(raw_method)
    if method is None:
        return Err(InvalidArgument("install method", raw_method, "must be npm or git"))
    if runtime == RuntimeMode.PREFIX and method == InstallMethod.SOURCE:
        return Err(
            InvalidArgument("install method", raw_method, "prefix installs only support npm")
        )

    env_git_dir = _env_str(env, "SYMI_GIT_DIR")
    git_dir = _pick(
        overrides.git_dir,
        Path(env_git_dir) if env_git_dir else None,
        home / "symi",
    ).expanduser()
    legacy_git_dir = Path(env_git_dir).expanduser() if env_git_dir else None

    verbose = _pick(overrides.verbose, bools["SYMI_VERBOSE"], False)
    npm_loglevel = _env_str(env, "SYMI_NPM_LOGLEVEL") or DEFAULT_NPM_LOGLEVEL
    if npm_loglevel not in _NPM_LOGLEVELS:
        return Err(InvalidArgument("SYMI_NPM_LOGLEVEL", npm_loglevel, "unknown npm log level"))
    if verbose and npm_loglevel == DEFAULT_NPM_LOGLEVEL:
        npm_loglevel = "notice"

    onboard = _resolve_onboard(overrides, bools["SYMI_ONBOARD"], bools["SYMI_NO_ONBOARD"])
    no_prompt = _pick(overrides.no_prompt, bools["SYMI_NO_PROMPT"], False)
    if onboard is True:
        interaction = InteractionMode.FORCED
    elif no_prompt or not is_tty:
        interaction = InteractionMode.NON_INTERACTIVE
    else:
        interaction = InteractionMode.INTERACTIVE

    json_output = _pick(overrides.json_output, bools["SYMI_JSON"], False)

    return Ok(
        InstallConfig(
            home=home,
            prefix=prefix,
            version=version,
            node_version=node_version,
            install_method=method,
            method_explicit=explicit_method is not None,
            runtime=runtime,
            use_beta=_pick(overrides.beta, bools["SYMI_BETA"], False),
            git_dir=git_dir,
            git_update=_pick(overrides.git_update, bools["SYMI_GIT_UPDATE"], True),
            repo_url=_env_str(env, "SYMI_REPO_URL") or DEFAULT_REPO_URL,
            onboard=onboard,
            interaction=interaction,
            output=OutputMode.JSON if json_output else OutputMode.HUMAN,
            allow_sudo=not _pick(overrides.no_sudo, bools["SYMI_NO_SUDO"], False),
            set_npm_prefix=_pick(overrides.set_npm_prefix, bools["SYMI_SET_NPM_PREFIX"], False),
            npm_loglevel=npm_loglevel,
            node_dist_url=(_env_str(env, "SYMI_NODE_DIST_URL") or NODE_DIST_URL).rstrip("/"),
            legacy_git_dir=legacy_git_dir,
            allow_prompts=is_tty and not no_prompt and not json_output,
            dry_run=_pick(overrides.dry_run, bools["SYMI_DRY_RUN"], False),
            verbose=verbose,
        )
    )
