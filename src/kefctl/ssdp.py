"""Minimal SSDP (UPnP) search client.

Sends an ``M-SEARCH`` to the SSDP multicast group and yields the unicast
responses that arrive within the search window:

    async with SsdpSearch(ROOT_DEVICE, timeout=5.0) as search:
        async for response in search:
            print(response.location)
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from dataclasses import dataclass, field
from types import TracebackType
from typing import AsyncIterator

from kefctl.exceptions import DiscoveryUnavailableError

logger = logging.getLogger(__name__)

SSDP_ADDR = "239.255.255.250"
SSDP_PORT = 1900
ROOT_DEVICE = "upnp:rootdevice"
DEFAULT_SEND_COUNT = 2
DEFAULT_TTL = 2
MAX_MX = 5


@dataclass(frozen=True)
class SsdpResponse:
    """One answer to a search request."""

    address: str
    status_line: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> str | None:
        return self.headers.get("location")

    @property
    def usn(self) -> str | None:
        return self.headers.get("usn")


def build_search_request(search_target: str, mx: int) -> bytes:
    return (
        "M-SEARCH * HTTP/1.1\r\n"
        f"HOST: {SSDP_ADDR}:{SSDP_PORT}\r\n"
        'MAN: "ssdp:discover"\r\n'
        f"MX: {mx}\r\n"
        f"ST: {search_target}\r\n"
        "\r\n"
    ).encode("ascii")


def parse_response(data: bytes, address: str) -> SsdpResponse | None:
    """Parse a search response; returns None for anything that is not one."""
    text = data.decode("utf-8", errors="replace")
    lines = text.split("\r\n")
    status_line = lines[0].strip()
    if not status_line.upper().startswith("HTTP/"):
        # M-SEARCH echoes and NOTIFY announcements share the socket
        return None
    headers: dict[str, str] = {}
    for line in lines[1:]:
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        headers[key.strip().lower()] = value.strip()
    return SsdpResponse(address=address, status_line=status_line, headers=headers)


class _SsdpProtocol(asyncio.DatagramProtocol):
    def __init__(self, queue: asyncio.Queue[SsdpResponse]) -> None:
        self._queue = queue

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        response = parse_response(data, addr[0])
        if response is None:
            return
        self._queue.put_nowait(response)

    def error_received(self, exc: Exception) -> None:
        logger.debug("SSDP socket error: %s", exc)


class SsdpSearch:
    """An SSDP search request together with the responses it collects."""

    def __init__(
        self,
        search_target: str = ROOT_DEVICE,
        timeout: float = 5.0,
        send_count: int = DEFAULT_SEND_COUNT,
        ttl: int = DEFAULT_TTL,
        multicast_address: tuple[str, int] = (SSDP_ADDR, SSDP_PORT),
    ) -> None:
        self.search_target = search_target
        self.timeout = timeout
        self.send_count = send_count
        self.ttl = ttl
        self.multicast_address = multicast_address
        self.end_time = 0.0
        self._queue: asyncio.Queue[SsdpResponse] = asyncio.Queue()
        self._transport: asyncio.DatagramTransport | None = None
        self._resend_task: asyncio.Task[None] | None = None

    @property
    def mx(self) -> int:
        return max(1, min(MAX_MX, int(self.timeout)))

    async def __aenter__(self) -> SsdpSearch:
        loop = asyncio.get_running_loop()
        sock: socket.socket | None = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.ttl)
            sock.bind(("", 0))
            # Errors from transport.sendto only reach error_received, so the
            # first search goes out on the plain socket.
            self.end_time = time.monotonic() + self.timeout
            sock.sendto(self._request(), self.multicast_address)
            sock.setblocking(False)
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SsdpProtocol(self._queue), sock=sock
            )
        except OSError as exc:
            if sock is not None:
                sock.close()
            raise DiscoveryUnavailableError(
                f"cannot send SSDP search to {self.multicast_address[0]}: {exc}"
            ) from exc
        self._transport = transport

        if self.send_count > 1:
            self._resend_task = asyncio.create_task(self._resend())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._close()

    def _request(self) -> bytes:
        logger.debug(
            "Sending SSDP search for %s to %s:%d",
            self.search_target,
            *self.multicast_address,
        )
        return build_search_request(self.search_target, self.mx)

    def _send(self) -> None:
        if self._transport is None:
            raise DiscoveryUnavailableError("SSDP search is not open")
        self._transport.sendto(self._request(), self.multicast_address)

    async def _resend(self) -> None:
        interval = self.timeout / self.send_count
        for _ in range(self.send_count - 1):
            await asyncio.sleep(interval)
            try:
                self._send()
            except OSError as exc:
                logger.debug("SSDP re-broadcast failed: %s", exc)

    def _close(self) -> None:
        if self._resend_task is not None:
            self._resend_task.cancel()
            self._resend_task = None
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    async def iter_responses(self) -> AsyncIterator[SsdpResponse]:
        while True:
            remaining = self.end_time - time.monotonic()
            if remaining <= 0.0:
                break
            try:
                response = await asyncio.wait_for(self._queue.get(), remaining)
            except asyncio.TimeoutError:
                break
            logger.debug(
                "SSDP response from %s: %s", response.address, response.status_line
            )
            yield response

    def __aiter__(self) -> AsyncIterator[SsdpResponse]:
        return self.iter_responses()


def search(
    search_target: str = ROOT_DEVICE,
    timeout: float = 5.0,
    send_count: int = DEFAULT_SEND_COUNT,
) -> SsdpSearch:
    return SsdpSearch(search_target, timeout=timeout, send_count=send_count)
