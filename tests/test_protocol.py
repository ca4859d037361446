"""Tests for status byte fields and volume."""

from __future__ import annotations

import pytest

from kefctl.exceptions import ParseError
from kefctl.protocol import (
    Inverse,
    Power,
    Source,
    Standby,
    Volume,
    bitmask_to_source_config,
    source_config_to_bitmask,
)


def test_volume_limit():
    assert Volume(128).level == 100
    assert Volume(100).level == 100
    assert Volume(255).level == 100


def test_volume_in_range_is_kept():
    for level in (0, 1, 50, 99):
        assert Volume(level).level == level


def test_volume_negative_clamps_to_zero():
    assert Volume(-3).level == 0


def test_volume_parse_saturates():
    assert Volume.parse("255").level == 100
    assert Volume.parse(" 42 ").level == 42


@pytest.mark.parametrize("text", ["", "loud", "256", "-1", "4.5"])
def test_volume_parse_rejects_invalid(text):
    with pytest.raises(ParseError):
        Volume.parse(text)


def test_source_string_conv():
    for source in Source:
        assert Source.parse(str(source)) is source


def test_source_parse_is_case_insensitive():
    assert Source.parse("WiFi") is Source.WIFI
    assert Source.parse("BLUETOOTH") is Source.BLUETOOTH


def test_source_parse_rejects_unknown():
    with pytest.raises(ParseError, match="hdmi"):
        Source.parse("hdmi")


def test_other_fields_parse():
    assert Standby.parse("s60") is Standby.S60
    assert Power.parse("off") is Power.OFF
    assert Inverse.parse("Left") is Inverse.LEFT


def test_bitmask_only_touches_own_bits():
    assert Power.OFF.bitmask(0x00) == 0x80
    assert Power.ON.bitmask(0xFF) == 0x7F
    assert Inverse.LEFT.bitmask(0x00) == 0x40
    assert Standby.S0.bitmask(0xFF) == 0xEF
    assert Source.USB.bitmask(0xF0) == 0xFC


def test_wifi_status_byte():
    status = source_config_to_bitmask(
        Power.ON, Inverse.RIGHT, Standby.S20, Source.WIFI
    )
    assert status == 0b00000010


def test_decode_then_encode_restores_known_patterns():
    known_sources = {source.value for source in Source}
    checked = 0
    for status in range(256):
        if status & 0x0F not in known_sources or status & 0x30 == 0x30:
            continue
        assert source_config_to_bitmask(*bitmask_to_source_config(status)) == status
        checked += 1
    # 2 power x 2 inverse x 3 standby x 5 sources
    assert checked == 60


def test_unknown_source_decodes_to_aux():
    for code in (0b0000, 0b0001, 0b0111, 0b1111):
        assert Source.from_mask(code) is Source.AUX


def test_unknown_standby_decodes_to_60min():
    assert Standby.from_mask(0b00110000) is Standby.S60


def test_decode_status():
    assert bitmask_to_source_config(0x9A) == (
        Power.OFF,
        Inverse.RIGHT,
        Standby.S60,
        Source.AUX,
    )
    assert bitmask_to_source_config(0x69) == (
        Power.ON,
        Inverse.LEFT,
        Standby.S0,
        Source.BLUETOOTH,
    )
