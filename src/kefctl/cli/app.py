from __future__ import annotations

from typing import Annotated

import typer

from kefctl.utils.logging import setup_logging

from . import config as config_cmd
from .control import register as register_control
from .discover import register as register_discover
from .mock import register as register_mock

app = typer.Typer(
    help="kefctl - control KEF wireless speakers", no_args_is_help=True
)

app.add_typer(config_cmd.app, name="config")

register_discover(app)
register_control(app)
register_mock(app)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """kefctl CLI."""
    setup_logging()

    if version:
        from importlib.metadata import version as get_version

        typer.echo(f"kefctl version {get_version('kefctl')}")
        raise typer.Exit()
