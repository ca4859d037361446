from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from kefctl.protocol import Inverse, Power, Source, Standby

from .common import (
    build_speaker,
    load_settings_or_exit,
    parse_field,
    parse_volume,
    run_or_exit,
)

HostOption = Annotated[
    str | None,
    typer.Option(
        "--host", "-H", help="Speaker address. Uses config default if omitted."
    ),
]


def status(host: HostOption = None) -> None:
    """Show the speaker's source, power, standby and channel inversion."""
    speaker = build_speaker(load_settings_or_exit(), host)
    result = run_or_exit(speaker.get_source())

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Source", str(result.source))
    table.add_row("Power", str(result.power))
    table.add_row("Standby", str(result.standby))
    table.add_row("Inverse", str(result.inverse))
    Console().print(table)


def source(
    name: Annotated[str, typer.Argument(help="wifi, bluetooth, aux, opt or usb")],
    host: HostOption = None,
    power: Annotated[str, typer.Option(help="on or off")] = "on",
    standby: Annotated[
        str, typer.Option(help="Auto-standby: s0 (never), s20 or s60 minutes")
    ] = "s20",
    inverse: Annotated[
        str, typer.Option(help="Master speaker side: right or left")
    ] = "right",
) -> None:
    """Switch input source (power, standby and inversion are set together)."""
    selected = parse_field(Source, name)
    power_value = parse_field(Power, power)
    standby_value = parse_field(Standby, standby)
    inverse_value = parse_field(Inverse, inverse)

    speaker = build_speaker(load_settings_or_exit(), host)
    run_or_exit(
        speaker.set_source(
            selected, power=power_value, standby=standby_value, inverse=inverse_value
        )
    )
    Console().print(f"[green]✓[/green] Source set to {selected}")


def volume(
    level: Annotated[str, typer.Argument(help="Volume 0-255, saturated to 100")],
    host: HostOption = None,
) -> None:
    """Set the speaker volume."""
    value = parse_volume(level)
    speaker = build_speaker(load_settings_or_exit(), host)
    run_or_exit(speaker.set_volume(value))
    Console().print(f"[green]✓[/green] Volume set to {value}")


def off(host: HostOption = None) -> None:
    """Turn the speaker off."""
    speaker = build_speaker(load_settings_or_exit(), host)
    run_or_exit(speaker.turn_off())
    Console().print("[green]✓[/green] Speaker turned off")


def register(app: typer.Typer) -> None:
    app.command()(status)
    app.command()(source)
    app.command()(volume)
    app.command()(off)
