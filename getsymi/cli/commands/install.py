from __future__ import annotations

import dataclasses
from pathlib import Path

import typer

from getsymi.cli.commands._helpers import run_pipeline
from getsymi.cli.context import CLIContext, build_context
from getsymi.core.config import ConfigOverrides, InstallMethod, RuntimeMode
from getsymi.core.errors import ErrorCode, InvalidArgument
from getsymi.output.errors import print_install_error
from getsymi.services.strategies import detect_source_checkout


def _flag(value: bool) -> bool | None:
    """Map an on-only flag to an override (False = not given)."""
    return True if value else None


def _method_override(install_method: str | None, npm: bool, git: bool) -> str | None:
    if npm and git:
        error = InvalidArgument("install method", "--npm --git", "choose one")
        typer.echo(f"error: {error}", err=True)
        raise typer.Exit(code=int(ErrorCode.INVALID_ARGUMENT))
    if npm:
        return "npm"
    if git:
        return "git"
    return install_method


def _resolve_source_checkout(ctx: CLIContext, cwd: Path) -> tuple[CLIContext, bool]:
    """Offer to install from the checkout the installer runs in.

    Returns the (possibly updated) context and whether the checkout's origin
    should still be verified.
    """
    if not detect_source_checkout(cwd):
        return ctx, True

    if not ctx.config.allow_prompts:
        ctx.events.warning(
            "Inside a symi checkout but prompts are disabled - defaulting to npm method."
        )
        config = dataclasses.replace(ctx.config, install_method=InstallMethod.REGISTRY)
        return dataclasses.replace(ctx, config=config), True

    ctx.console.warning("Running inside a symi source checkout.")
    choice = typer.prompt("Install from this checkout (git) or global npm? [git/npm]").strip()
    match InstallMethod.parse(choice):
        case InstallMethod.SOURCE:
            config = dataclasses.replace(
                ctx.config, install_method=InstallMethod.SOURCE, git_dir=cwd
            )
            return dataclasses.replace(ctx, config=config), False
        case InstallMethod.REGISTRY:
            config = dataclasses.replace(ctx.config, install_method=InstallMethod.REGISTRY)
            return dataclasses.replace(ctx, config=config), True
        case _:
            error = InvalidArgument("choice", choice, "expected git or npm")
            print_install_error(error, ctx.console)
            raise typer.Exit(code=int(ErrorCode.INVALID_ARGUMENT))


def install(
    install_method: str | None = typer.Option(
        None,
        "--install-method",
        "--method",
        help="Install method: npm (registry) or git (source)",
    ),
    npm: bool = typer.Option(False, "--npm", help="Shortcut for --install-method npm"),
    git: bool = typer.Option(False, "--git", "--github", help="Shortcut for --install-method git"),
    version: str | None = typer.Option(
        None, "--version", help="npm version or dist-tag (default: latest)"
    ),
    beta: bool = typer.Option(False, "--beta", help="Use the beta dist-tag if published"),
    git_dir: Path | None = typer.Option(
        None, "--git-dir", "--dir", help="Clone directory (default: ~/symi)"
    ),
    git_update: bool | None = typer.Option(
        None, "--git-update/--no-git-update", help="Pull an existing checkout (default: on)"
    ),
    onboard: bool | None = typer.Option(
        None, "--onboard/--no-onboard", help="Run onboarding after install (default: if TTY)"
    ),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Disable interactive prompts"),
    no_sudo: bool = typer.Option(False, "--no-sudo", help="Never escalate with sudo"),
    set_npm_prefix: bool = typer.Option(
        False, "--set-npm-prefix", help="Force the npm prefix to ~/.npm-global (Linux)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit NDJSON events on stdout"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be done"),
    verbose: bool = typer.Option(False, "--verbose", help="Show every command"),
) -> None:
    """Install symi with the system Node.js runtime.

    Node.js 22+ and git are installed through the platform's package
    managers when missing.
    """
    method = _method_override(install_method, npm, git)
    overrides = ConfigOverrides(
        version=version,
        install_method=method,
        beta=_flag(beta),
        git_dir=git_dir,
        git_update=git_update,
        onboard=onboard,
        no_prompt=_flag(no_prompt),
        no_sudo=_flag(no_sudo),
        set_npm_prefix=_flag(set_npm_prefix),
        json_output=_flag(json_output),
        dry_run=_flag(dry_run),
        verbose=_flag(verbose),
    )
    ctx = build_context(overrides, runtime=RuntimeMode.SYSTEM)

    verify_origin = True
    if not ctx.config.method_explicit:
        ctx, verify_origin = _resolve_source_checkout(ctx, Path.cwd())

    config = ctx.config
    ctx.console.header(
        f"symi installer - install method={config.install_method} version={config.version}"
    )
    run_pipeline(ctx, verify_origin=verify_origin)


def install_cli(
    prefix: Path | None = typer.Option(None, "--prefix", help="Install prefix (default: ~/.symi)"),
    version: str | None = typer.Option(
        None, "--version", help="symi version or dist-tag (default: latest)"
    ),
    node_version: str | None = typer.Option(
        None, "--node-version", help="Node.js version (default: 22.22.0)"
    ),
    onboard: bool | None = typer.Option(
        None, "--onboard/--no-onboard", help="Run onboarding after install (default: off)"
    ),
    no_prompt: bool = typer.Option(False, "--no-prompt", help="Disable interactive prompts"),
    no_sudo: bool = typer.Option(False, "--no-sudo", help="Never escalate with sudo"),
    json_output: bool = typer.Option(False, "--json", help="Emit NDJSON events on stdout"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be done"),
    verbose: bool = typer.Option(False, "--verbose", help="Show every command"),
) -> None:
    """Install symi into a self-contained prefix.

    Downloads a checksum-verified Node.js runtime into <prefix>/tools and
    writes a <prefix>/bin/symi wrapper that uses it.
    """
    overrides = ConfigOverrides(
        prefix=prefix,
        version=version,
        node_version=node_version,
        onboard=onboard,
        no_prompt=_flag(no_prompt),
        no_sudo=_flag(no_sudo),
        json_output=_flag(json_output),
        dry_run=_flag(dry_run),
        verbose=_flag(verbose),
    )
    ctx = build_context(overrides, runtime=RuntimeMode.PREFIX)

    config = ctx.config
    ctx.console.header(
        f"symi installer - prefix={config.prefix} version={config.version} "
        f"node={config.node_version}"
    )
    run_pipeline(ctx)
