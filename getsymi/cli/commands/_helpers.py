"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from getsymi.core.result import Err
from getsymi.output.errors import install_error_exit_code, print_install_error
from getsymi.services.orchestrator import Orchestrator

if TYPE_CHECKING:
    from getsymi.cli.context import CLIContext


def run_pipeline(ctx: CLIContext, *, verify_origin: bool = True) -> None:
    """Run the installation and exit with its error code on failure.

    The error is printed once, here; in JSON mode it has already been
    emitted as an ``error`` event too.
    """
    result = Orchestrator(
        ctx.config,
        executor=ctx.executor,
        runner=ctx.runner,
        http=ctx.http,
        verify_origin=verify_origin,
    ).run()

    if isinstance(result, Err):
        print_install_error(result.error, ctx.console)
        raise typer.Exit(code=install_error_exit_code(result.error))
