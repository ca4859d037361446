from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from yarl import URL

from kefctl.discovery import discover as discover_speakers

from .common import load_settings_or_exit

logger = logging.getLogger(__name__)


def discover(
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Seconds to listen for SSDP responses"),
    ] = None,
) -> None:
    """Find KEF speakers on the local network via SSDP."""
    console = Console()
    settings = load_settings_or_exit()
    if timeout is None:
        timeout = settings.discovery.timeout

    console.print(f"Searching for KEF speakers ({timeout:g}s)...")
    logger.info(
        "Discovery settings: timeout=%.2fs, fetch_timeout=%.2fs",
        timeout,
        settings.discovery.fetch_timeout,
    )
    speakers = asyncio.run(
        discover_speakers(timeout, fetch_timeout=settings.discovery.fetch_timeout)
    )

    if speakers is None:
        typer.secho(
            "Error: SSDP discovery is not available on this host",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)

    if not speakers:
        console.print("No KEF speakers found.")
        return

    table = Table()
    table.add_column("Host", style="cyan")
    table.add_column("Serial", style="green")
    table.add_column("Location")
    for location, serial in sorted(speakers.items()):
        table.add_row(URL(location).host or "", serial, location)

    console.print(table)
    console.print(f"\n[green]Found {len(speakers)} speaker(s)[/green]")


def register(app: typer.Typer) -> None:
    app.command()(discover)
