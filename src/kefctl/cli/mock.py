from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from kefctl.commands import DEFAULT_PORT
from kefctl.mock_speaker import DEFAULT_STATUS, run_mock_speaker


def _parse_status(value: str) -> int:
    try:
        status = int(value, 0)
    except ValueError as exc:
        raise typer.BadParameter(f"invalid status byte '{value}'") from exc
    if not 0 <= status <= 0xFF:
        raise typer.BadParameter(f"status byte out of range: '{value}'")
    return status


def register(app: typer.Typer) -> None:
    @app.command()
    def mock(
        host: str = typer.Option("0.0.0.0", "--host", help="Address to listen on"),
        port: int = typer.Option(
            DEFAULT_PORT, "--port", "-p", help="Port to listen on"
        ),
        status: str = typer.Option(
            hex(DEFAULT_STATUS), "--status", help="Initial status byte (e.g. 0x1a)"
        ),
    ) -> None:
        """Run a mock KEF speaker for development."""
        initial = _parse_status(status)
        console = Console()
        console.print(f"Starting mock speaker on {host}:{port}...")
        console.print("Press Ctrl+C to stop.\n")

        try:
            asyncio.run(run_mock_speaker(host=host, port=port, status=initial))
        except KeyboardInterrupt:
            console.print("\n[green]Mock speaker stopped.[/green]")
