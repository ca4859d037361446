"""Tests for the SSDP search client."""

from __future__ import annotations

import asyncio

import pytest

from kefctl.exceptions import DiscoveryUnavailableError
from kefctl.ssdp import (
    SSDP_PORT,
    SsdpSearch,
    build_search_request,
    parse_response,
)

RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"CACHE-CONTROL: max-age=1800\r\n"
    b"Location: http://192.168.1.40:8080/description.xml\r\n"
    b"ST: upnp:rootdevice\r\n"
    b"USN: uuid:abc::upnp:rootdevice\r\n"
    b"\r\n"
)


class _Responder(asyncio.DatagramProtocol):
    def __init__(self) -> None:
        self.requests: list[bytes] = []
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        self.requests.append(data)
        assert self.transport is not None
        self.transport.sendto(RESPONSE, addr)


def test_build_search_request():
    request = build_search_request("upnp:rootdevice", 3).decode("ascii")
    assert request.startswith("M-SEARCH * HTTP/1.1\r\n")
    assert "ST: upnp:rootdevice\r\n" in request
    assert 'MAN: "ssdp:discover"\r\n' in request
    assert "MX: 3\r\n" in request
    assert request.endswith("\r\n\r\n")


def test_parse_response_headers_are_case_insensitive():
    response = parse_response(RESPONSE, "192.168.1.40")
    assert response is not None
    assert response.location == "http://192.168.1.40:8080/description.xml"
    assert response.usn == "uuid:abc::upnp:rootdevice"
    assert response.address == "192.168.1.40"


def test_parse_response_ignores_requests():
    assert parse_response(build_search_request("ssdp:all", 1), "10.0.0.1") is None
    assert parse_response(b"NOTIFY * HTTP/1.1\r\n\r\n", "10.0.0.1") is None


def test_parse_response_without_location():
    response = parse_response(b"HTTP/1.1 200 OK\r\nST: x\r\n\r\n", "10.0.0.1")
    assert response is not None
    assert response.location is None


def test_search_collects_responses_until_timeout():
    async def _run() -> tuple[list[str | None], _Responder]:
        loop = asyncio.get_running_loop()
        transport, responder = await loop.create_datagram_endpoint(
            _Responder, local_addr=("127.0.0.1", 0)
        )
        port = transport.get_extra_info("sockname")[1]
        try:
            search = SsdpSearch(
                timeout=0.6, send_count=2, multicast_address=("127.0.0.1", port)
            )
            async with search:
                locations = [response.location async for response in search]
        finally:
            transport.close()
        return locations, responder

    locations, responder = asyncio.run(_run())
    assert len(responder.requests) == 2
    assert locations == ["http://192.168.1.40:8080/description.xml"] * 2


def test_search_unavailable_when_first_send_fails():
    # broadcast without SO_BROADCAST is refused by the kernel (EACCES)
    search = SsdpSearch(timeout=0.3, multicast_address=("255.255.255.255", SSDP_PORT))

    async def _run() -> None:
        async with search:
            pass

    with pytest.raises(DiscoveryUnavailableError, match="255.255.255.255"):
        asyncio.run(_run())


def test_send_on_closed_search():
    search = SsdpSearch()
    with pytest.raises(DiscoveryUnavailableError):
        search._send()
