from __future__ import annotations

import typer

from rflow import __version__
from rflow.cli.commands.merge_cmd import check, merge
from rflow.cli.commands.stamp_cmd import stamp
from rflow.cli.commands.train_cmd import train_app

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(merge)
app.command()(check)
app.command()(stamp)

# Sub-apps
app.add_typer(train_app, name="train")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    """Guarded alpha, beta and stable releases driven by branch merges."""


def main() -> None:
    app()
