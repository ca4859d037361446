from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from kefctl.commands import DEFAULT_PORT
from kefctl.commands import DEFAULT_TIMEOUT as DEFAULT_COMMAND_TIMEOUT
from kefctl.discovery import DEFAULT_FETCH_TIMEOUT
from kefctl.discovery import DEFAULT_TIMEOUT as DEFAULT_DISCOVERY_TIMEOUT

CONFIG_ENV_VAR = "KEFCTL_CONFIG"
CONFIG_FILE = Path("kefctl") / "config.toml"


class SpeakerConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    host: str = ""
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    timeout: float = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0)


class DiscoveryConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    timeout: float = Field(default=DEFAULT_DISCOVERY_TIMEOUT, gt=0)
    fetch_timeout: float = Field(default=DEFAULT_FETCH_TIMEOUT, gt=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    speaker: SpeakerConfig = Field(default_factory=SpeakerConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)


def default_config_path() -> Path:
    """Config file under $XDG_CONFIG_HOME, falling back to ~/.config."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / CONFIG_FILE


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(os.path.expandvars(env_path)).expanduser()
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def _toml_string(value: str) -> str:
    return json.dumps(value)


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# kefctl configuration",
        "",
        "[speaker]",
        f"host = {_toml_string(settings.speaker.host)}",
        f"port = {settings.speaker.port}",
        f"timeout = {settings.speaker.timeout}",
        "",
        "[discovery]",
        f"timeout = {settings.discovery.timeout}",
        f"fetch_timeout = {settings.discovery.fetch_timeout}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
