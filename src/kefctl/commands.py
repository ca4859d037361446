"""Speaker commands and the TCP request/response exchange."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from kefctl.exceptions import ShortResponseError, SpeakerConnectionError
from kefctl.protocol import (
    Inverse,
    Power,
    Source,
    Standby,
    Volume,
    bitmask_to_source_config,
    source_config_to_bitmask,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 50001
DEFAULT_TIMEOUT = 5.0
RESPONSE_SIZE = 8
STATUS_INDEX = 3

GET_SOURCE_FRAME = bytes([0x47, 0x30, 0x80])
TURN_OFF_FRAME = bytes([0x53, 0x30, 0x81, 0x9B, 0x0B])
SET_SOURCE_PREFIX = bytes([0x53, 0x30, 0x81])
SET_SOURCE_SUFFIX = 0x9B
SET_VOLUME_PREFIX = bytes([0x53, 0x25, 0x81])
SET_VOLUME_SUFFIX = 0x1A


@dataclass(frozen=True)
class Completed:
    """The speaker acknowledged a command."""


@dataclass(frozen=True)
class GotSource:
    """Decoded status of the speaker."""

    power: Power
    inverse: Inverse
    standby: Standby
    source: Source


CommandResult = Completed | GotSource


class _Command:
    def to_bytes(self) -> bytes:
        raise NotImplementedError

    def decode_response(self, response: bytes) -> CommandResult:
        return Completed()


@dataclass(frozen=True)
class GetSource(_Command):
    """Ask the speaker for its current source, power, standby and inversion."""

    def to_bytes(self) -> bytes:
        return GET_SOURCE_FRAME

    def decode_response(self, response: bytes) -> CommandResult:
        if len(response) <= STATUS_INDEX:
            raise ShortResponseError(
                f"expected at least {STATUS_INDEX + 1} bytes, got {len(response)}"
            )
        power, inverse, standby, source = bitmask_to_source_config(
            response[STATUS_INDEX]
        )
        return GotSource(power, inverse, standby, source)


@dataclass(frozen=True)
class SetSource(_Command):
    """Set source, power, standby and inversion in a single frame."""

    power: Power
    inverse: Inverse
    standby: Standby
    source: Source

    @property
    def status(self) -> int:
        return source_config_to_bitmask(
            self.power, self.inverse, self.standby, self.source
        )

    def to_bytes(self) -> bytes:
        return SET_SOURCE_PREFIX + bytes([self.status, SET_SOURCE_SUFFIX])


@dataclass(frozen=True)
class SetVolume(_Command):
    volume: Volume

    def to_bytes(self) -> bytes:
        return SET_VOLUME_PREFIX + bytes([self.volume.level, SET_VOLUME_SUFFIX])


@dataclass(frozen=True)
class TurnOff(_Command):
    def to_bytes(self) -> bytes:
        return TURN_OFF_FRAME


Command = GetSource | SetSource | SetVolume | TurnOff


async def execute(
    command: Command,
    host: str,
    port: int = DEFAULT_PORT,
    timeout: float = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Send one command to the speaker at ``host:port`` and decode the reply.

    A fresh connection is opened for every call and closed before returning,
    whether the exchange succeeded or not. Failures are not retried.
    """
    frame = command.to_bytes()
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (asyncio.TimeoutError, OSError) as exc:
        raise SpeakerConnectionError(
            f"could not connect to {host}:{port}: {str(exc) or 'timed out'}"
        ) from exc

    try:
        logger.debug("write to speaker %s:%d: %s", host, port, frame.hex(" "))
        writer.write(frame)
        await asyncio.wait_for(writer.drain(), timeout=timeout)
        response = await asyncio.wait_for(reader.read(RESPONSE_SIZE), timeout=timeout)
        logger.debug("read from speaker %s:%d: %s", host, port, response.hex(" "))
    except (asyncio.TimeoutError, OSError) as exc:
        raise SpeakerConnectionError(
            f"exchange with {host}:{port} failed: {str(exc) or 'timed out'}"
        ) from exc
    finally:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    return command.decode_response(response)


@dataclass(frozen=True)
class Speaker:
    """Convenience wrapper binding commands to one speaker address."""

    host: str
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    async def execute(self, command: Command) -> CommandResult:
        return await execute(command, self.host, self.port, self.timeout)

    async def get_source(self) -> GotSource:
        result = await self.execute(GetSource())
        if not isinstance(result, GotSource):
            raise SpeakerConnectionError(
                f"unexpected reply to status query from {self.host}: {result!r}"
            )
        return result

    async def set_source(
        self,
        source: Source,
        power: Power = Power.ON,
        standby: Standby = Standby.S20,
        inverse: Inverse = Inverse.RIGHT,
    ) -> None:
        await self.execute(SetSource(power, inverse, standby, source))

    async def set_volume(self, volume: Volume) -> None:
        await self.execute(SetVolume(volume))

    async def turn_off(self) -> None:
        await self.execute(TurnOff())
