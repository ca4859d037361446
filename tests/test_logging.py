from __future__ import annotations

import logging

import pytest

from kefctl.utils.logging import resolve_level, setup_logging


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", "DEBUG"),
        (" Warning ", "WARNING"),
        ("warn", "WARNING"),
        ("verbose", "INFO"),
        ("", "INFO"),
    ],
)
def test_resolve_level_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("LOGLEVEL", value)
    assert resolve_level() == expected


def test_resolve_level_argument_wins(monkeypatch):
    monkeypatch.setenv("LOGLEVEL", "DEBUG")
    assert resolve_level("ERROR") == "ERROR"


def test_setup_logging_quiets_aiohttp(monkeypatch):
    monkeypatch.setenv("LOGLEVEL", "DEBUG")
    setup_logging()
    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger().getEffectiveLevel() == logging.DEBUG
