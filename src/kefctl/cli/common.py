from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer

from kefctl.commands import Speaker
from kefctl.config import Settings, get_settings, resolve_config_path
from kefctl.exceptions import KefError, ParseError
from kefctl.protocol import StatusField, Volume

T = TypeVar("T")
F = TypeVar("F", bound=StatusField)


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def build_speaker(settings: Settings, host: str | None) -> Speaker:
    host = host or settings.speaker.host
    if not host:
        typer.echo(
            "No speaker host given. Pass --host or set speaker.host in the config.",
            err=True,
        )
        raise typer.Exit(1)
    return Speaker(
        host=host, port=settings.speaker.port, timeout=settings.speaker.timeout
    )


def run_or_exit(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except KefError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


def parse_field(field_type: type[F], value: str) -> F:
    try:
        return field_type.parse(value)
    except ParseError as exc:
        raise typer.BadParameter(str(exc)) from exc


def parse_volume(value: str) -> Volume:
    try:
        return Volume.parse(value)
    except ParseError as exc:
        raise typer.BadParameter(str(exc)) from exc
