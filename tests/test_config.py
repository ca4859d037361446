"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from kefctl.config import (
    Settings,
    SpeakerConfig,
    default_config_path,
    get_settings,
    load_settings,
    resolve_config_path,
    write_settings,
)


def test_config_roundtrip(tmp_path):
    path = tmp_path / "config.toml"
    settings = Settings(speaker=SpeakerConfig(host="192.168.1.40", port=50002))
    write_settings(settings, path)

    loaded = load_settings(path)
    assert loaded.speaker.host == "192.168.1.40"
    assert loaded.speaker.port == 50002
    assert loaded.discovery.timeout == settings.discovery.timeout


def test_defaults_without_config_file():
    settings = get_settings()
    assert settings.speaker.host == ""
    assert settings.speaker.port == 50001


def test_env_var_pointing_to_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv("KEFCTL_CONFIG", str(tmp_path / "nope.toml"))
    with pytest.raises(FileNotFoundError):
        get_settings()


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[speaker\nhost = ")
    with pytest.raises(ValueError, match="Invalid TOML"):
        load_settings(path)


def test_invalid_values(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[speaker]\nport = 70000\n")
    with pytest.raises(ValueError, match="Invalid config file"):
        load_settings(path)


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[speaker]\nvolume = 10\n")
    with pytest.raises(ValueError):
        load_settings(path)


def test_default_path_follows_xdg_config_home(tmp_path):
    assert default_config_path() == tmp_path / "xdg" / "kefctl" / "config.toml"


def test_default_path_without_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.delenv("XDG_CONFIG_HOME")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_config_path() == tmp_path / ".config" / "kefctl" / "config.toml"


def test_env_var_path_is_expanded(tmp_path, monkeypatch):
    path = tmp_path / "speaker.toml"
    path.write_text('[speaker]\nhost = "10.0.0.9"\n')
    monkeypatch.setenv("KEF_DIR", str(tmp_path))
    monkeypatch.setenv("KEFCTL_CONFIG", "$KEF_DIR/speaker.toml")

    assert resolve_config_path() == (path, True)
    assert get_settings().speaker.host == "10.0.0.9"
