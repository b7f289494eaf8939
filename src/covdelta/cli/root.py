from __future__ import annotations

from typing import Annotated

import typer
from typer.main import get_command

from covdelta import __version__
from covdelta.cli import report


def create_app() -> typer.Typer:
    app = typer.Typer(help="Coverage change reports for Go pull requests.")

    @app.callback(invoke_without_command=True)
    def _root(
        ctx: typer.Context,
        *,
        version: Annotated[
            bool,
            typer.Option("--version", help="Show version and exit"),
        ] = False,
    ) -> None:
        if version:
            typer.echo(f"covdelta {__version__}")
            raise typer.Exit
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit

    @app.command("version")
    def version_cmd() -> None:
        """Print the version and exit."""
        typer.echo(__version__)

    report.register(app)

    return app


def main() -> None:
    app = create_app()
    get_command(app)()


# Click-compatible object for tooling that imports it
cli = get_command(create_app())

__all__ = ["cli", "create_app", "main"]
