from __future__ import annotations

from .settings import (
    CONFIG_ENV_VAR,
    CONFIG_FILE,
    DiscoveryConfig,
    Settings,
    SpeakerConfig,
    default_config_path,
    get_settings,
    load_settings,
    render_settings_toml,
    resolve_config_path,
    write_settings,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILE",
    "DiscoveryConfig",
    "Settings",
    "SpeakerConfig",
    "default_config_path",
    "get_settings",
    "load_settings",
    "render_settings_toml",
    "resolve_config_path",
    "write_settings",
]
