"""Values carried by speaker frames.

The speaker packs power, channel inversion, auto-standby and input source into
a single status byte (MSB to LSB)::

    bit 7     power     0 = on, 1 = off
    bit 6     inverse   0 = right, 1 = left
    bits 5-4  standby   10 = off, 00 = 20 min, 01 = 60 min
    bits 3-0  source    see ``Source``

Each field owns its bits only, so fields can be written into the byte in any
order. Decoding never fails: patterns outside a field's known set resolve to
that field's fallback member.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Self

from kefctl.exceptions import ParseError

MIN_VOLUME = 0
MAX_VOLUME = 100
# Largest value accepted from text before saturating (one unsigned byte).
MAX_VOLUME_INPUT = 255


class StatusField(Enum):
    """A group of bits inside the status byte."""

    @classmethod
    def mask(cls) -> int:
        raise NotImplementedError

    @classmethod
    def fallback(cls) -> Self:
        raise NotImplementedError

    def bitmask(self, status: int) -> int:
        """Write this value into ``status``, leaving the other bits untouched."""
        return (status & ~self.mask() & 0xFF) | self.value

    @classmethod
    def from_mask(cls, status: int) -> Self:
        try:
            return cls(status & cls.mask())
        except ValueError:
            return cls.fallback()

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse a case-insensitive name such as ``"wifi"`` or ``"s20"``."""
        try:
            return cls[text.strip().upper()]
        except KeyError:
            choices = ", ".join(str(member) for member in cls)
            raise ParseError(
                f"invalid {cls.__name__.lower()} '{text}' (expected one of: {choices})"
            ) from None

    def __str__(self) -> str:
        return self.name.lower()


class Source(StatusField):
    WIFI = 0b0010
    BLUETOOTH = 0b1001
    AUX = 0b1010
    OPT = 0b1011
    USB = 0b1100

    @classmethod
    def mask(cls) -> int:
        return 0b00001111

    @classmethod
    def fallback(cls) -> Source:
        return cls.AUX


class Standby(StatusField):
    S0 = 0b00100000
    S20 = 0b00000000
    S60 = 0b00010000

    @classmethod
    def mask(cls) -> int:
        return 0b00110000

    @classmethod
    def fallback(cls) -> Standby:
        return cls.S60


class Power(StatusField):
    ON = 0b00000000
    OFF = 0b10000000

    @classmethod
    def mask(cls) -> int:
        return 0b10000000

    @classmethod
    def fallback(cls) -> Power:
        return cls.OFF


class Inverse(StatusField):
    RIGHT = 0b00000000
    LEFT = 0b01000000

    @classmethod
    def mask(cls) -> int:
        return 0b01000000

    @classmethod
    def fallback(cls) -> Inverse:
        return cls.RIGHT


SourceConfig = tuple[Power, Inverse, Standby, Source]


def source_config_to_bitmask(
    power: Power, inverse: Inverse, standby: Standby, source: Source
) -> int:
    status = power.bitmask(0x00)
    status = inverse.bitmask(status)
    status = standby.bitmask(status)
    return source.bitmask(status)


def bitmask_to_source_config(status: int) -> SourceConfig:
    return (
        Power.from_mask(status),
        Inverse.from_mask(status),
        Standby.from_mask(status),
        Source.from_mask(status),
    )


@dataclass(frozen=True)
class Volume:
    """Volume level, always within 0..100."""

    level: int

    def __post_init__(self) -> None:
        clamped = max(MIN_VOLUME, min(MAX_VOLUME, self.level))
        object.__setattr__(self, "level", clamped)

    @classmethod
    def parse(cls, text: str) -> Volume:
        try:
            value = int(text.strip())
        except ValueError:
            raise ParseError(f"failed to parse volume '{text}'") from None
        if not MIN_VOLUME <= value <= MAX_VOLUME_INPUT:
            raise ParseError(
                f"failed to parse volume '{text}' "
                f"(expected {MIN_VOLUME}-{MAX_VOLUME_INPUT})"
            )
        return cls(value)

    def __str__(self) -> str:
        return str(self.level)
