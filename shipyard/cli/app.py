from __future__ import annotations

import os
from pathlib import Path

import typer

from shipyard import __version__
from shipyard.cli.commands.check import check
from shipyard.cli.commands.gate_cmd import gate
from shipyard.cli.commands.matrix_cmd import matrix
from shipyard.cli.commands.run_cmd import run
from shipyard.core.checkout import ROOT_ENV_VAR
from shipyard.core.config import CONFIG_FILENAME
from shipyard.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(run)
app.command()(matrix)
app.command()(gate)
app.command()(check)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    root: Path | None = typer.Option(
        None,
        "--root",
        help=f"Checkout root containing {CONFIG_FILENAME} (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not (resolved / CONFIG_FILENAME).is_file():
            typer.echo(f"error: --root '{resolved}' has no {CONFIG_FILENAME}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[ROOT_ENV_VAR] = str(resolved)


def main() -> None:
    app()
