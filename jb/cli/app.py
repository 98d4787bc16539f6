from __future__ import annotations

import typer

from jb import __version__
from jb.cli.commands.build import build
from jb.cli.commands.deploy import deploy, remove
from jb.cli.commands.export import export, verify
from jb.cli.commands.publish import promote, publish

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    invoke_without_command=True,
    help="Interact with a bundle and the charms contained therein.",
)


# Commands
app.command()(build)
app.command(context_settings={"allow_interspersed_args": False})(deploy)
app.command()(remove)
app.command()(publish)
app.command()(promote)
app.command()(export)
app.command()(verify)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
