from __future__ import annotations

import typer

from getsymi import __version__
from getsymi.cli.commands.install import install, install_cli

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Install the symi CLI and its Node.js runtime.",
)


# Commands
app.command()(install)
app.command("install-cli")(install_cli)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    pass


def main() -> None:
    app()
