from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kefctl.commands import (
    DEFAULT_PORT,
    GET_SOURCE_FRAME,
    RESPONSE_SIZE,
    SET_SOURCE_PREFIX,
    SET_VOLUME_PREFIX,
    TURN_OFF_FRAME,
)
from kefctl.protocol import Power, bitmask_to_source_config

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)

SET_FRAME_SIZE = 5
STATUS_RESPONSE_PREFIX = bytes([0x52, 0x30, 0x81])
ACK_RESPONSE = bytes([0x52, 0x11, 0xFF])
# aux, 60 min standby, powered on
DEFAULT_STATUS = 0x1A


def pad_response(data: bytes) -> bytes:
    return data.ljust(RESPONSE_SIZE, b"\x00")[:RESPONSE_SIZE]


@dataclass
class MockSpeaker:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    status: int = DEFAULT_STATUS
    volume: int = 30
    # Truncate every reply to this many bytes; None sends full replies.
    reply_size: int | None = None

    frames: list[bytes] = field(default_factory=list, repr=False)
    _server: asyncio.Server | None = field(default=None, repr=False)

    @property
    def bound_port(self) -> int:
        if self._server is None or not self._server.sockets:
            return self.port
        return int(self._server.sockets[0].getsockname()[1])

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._handle_client, self.host, self.port
        )
        logger.info("Mock speaker listening on %s:%d", self.host, self.bound_port)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("Mock speaker stopped")

    async def run_forever(self) -> None:
        await self.start()
        if self._server:
            await self._server.serve_forever()

    async def __aenter__(self) -> MockSpeaker:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _handle_client(
        self, reader: "StreamReader", writer: "StreamWriter"
    ) -> None:
        addr = writer.get_extra_info("peername")
        logger.debug("Client connected: %s", addr)
        try:
            frame = await self._read_frame(reader)
            if frame:
                self.frames.append(frame)
                reply = self.handle_frame(frame)
                if self.reply_size is not None:
                    reply = reply[: self.reply_size]
                writer.write(reply)
                await writer.drain()
        except (ConnectionResetError, BrokenPipeError):
            logger.debug("Client disconnected: %s", addr)
        finally:
            writer.close()
            await writer.wait_closed()

    async def _read_frame(self, reader: "StreamReader") -> bytes:
        try:
            head = await reader.readexactly(len(GET_SOURCE_FRAME))
        except asyncio.IncompleteReadError as exc:
            return exc.partial
        if head == GET_SOURCE_FRAME:
            return head
        try:
            rest = await reader.readexactly(SET_FRAME_SIZE - len(head))
        except asyncio.IncompleteReadError as exc:
            rest = exc.partial
        return head + rest

    def handle_frame(self, frame: bytes) -> bytes:
        """Apply ``frame`` to the speaker state and return the reply."""
        logger.debug("Received frame %s", frame.hex(" "))
        if frame == GET_SOURCE_FRAME:
            return pad_response(STATUS_RESPONSE_PREFIX + bytes([self.status, 0x00]))
        if frame == TURN_OFF_FRAME:
            self.status = Power.OFF.bitmask(self.status)
        elif len(frame) == SET_FRAME_SIZE and frame[:3] == SET_SOURCE_PREFIX:
            self.status = frame[3]
        elif len(frame) == SET_FRAME_SIZE and frame[:3] == SET_VOLUME_PREFIX:
            self.volume = frame[3]
        else:
            logger.warning("Unknown frame %s", frame.hex(" "))
        power, inverse, standby, source = bitmask_to_source_config(self.status)
        logger.info(
            "State: power=%s inverse=%s standby=%s source=%s volume=%d",
            power,
            inverse,
            standby,
            source,
            self.volume,
        )
        return pad_response(ACK_RESPONSE)


async def run_mock_speaker(
    host: str = "0.0.0.0", port: int = DEFAULT_PORT, status: int = DEFAULT_STATUS
) -> None:
    speaker = MockSpeaker(host=host, port=port, status=status)
    await speaker.run_forever()
