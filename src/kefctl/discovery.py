"""Find KEF speakers on the local network.

Every device answering an SSDP root-device search is a candidate: its UPnP
description document is fetched from the advertised location and kept only
when the device claims to be made by KEF and exposes a serial number. Other
UPnP devices (TVs, routers, media servers) answer the same search, so a
candidate that cannot be fetched, parsed or matched is skipped, never fatal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from xml.etree.ElementTree import Element, ParseError as XMLParseError

import aiohttp
import defusedxml.ElementTree as DefusedET
from defusedxml import DefusedXmlException
from yarl import URL

from kefctl import ssdp
from kefctl.exceptions import DiscoveryUnavailableError

logger = logging.getLogger(__name__)

MANUFACTURER = "KEF"
DEFAULT_TIMEOUT = 5.0
DEFAULT_FETCH_TIMEOUT = 3.0


@dataclass
class DiscoveryState:
    """Locations seen and speakers found during one discovery run."""

    visited: set[str] = field(default_factory=set)
    speakers: dict[str, str] = field(default_factory=dict)

    def visit(self, location: str) -> bool:
        """Mark ``location`` as visited; False if it already was."""
        if location in self.visited:
            return False
        self.visited.add(location)
        return True


def parse_location(location: str | None) -> str | None:
    """Normalise an advertised location, or None when it is not a usable URL."""
    if not location:
        return None
    try:
        url = URL(location)
    except (TypeError, ValueError):
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    return str(url)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: Element, name: str) -> Element | None:
    for child in element:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: Element, name: str) -> str | None:
    child = _child(element, name)
    if child is None or not child.text:
        return None
    return child.text


def get_serial(device: Element) -> str | None:
    """Serial number of a ``<device>`` element made by KEF, else None."""
    if _child_text(device, "manufacturer") != MANUFACTURER:
        return None
    return _child_text(device, "serialNumber")


def parse_descriptor(content: bytes) -> str | None:
    """Extract the serial number from a UPnP device description document."""
    try:
        root = DefusedET.fromstring(content)
    except (XMLParseError, DefusedXmlException) as exc:
        logger.debug("Invalid device description: %s", exc)
        return None
    device = _child(root, "device")
    if device is None:
        return None
    return get_serial(device)


async def fetch_descriptor(
    session: aiohttp.ClientSession, location: str
) -> bytes | None:
    try:
        async with session.get(location) as response:
            if response.status >= 300:
                logger.debug("%s returned HTTP %d", location, response.status)
                return None
            return await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.debug("Failed to fetch %s: %s", location, exc)
        return None


async def check_device(session: aiohttp.ClientSession, location: str) -> str | None:
    content = await fetch_descriptor(session, location)
    if content is None:
        return None
    return parse_descriptor(content)


async def discover(
    timeout: float = DEFAULT_TIMEOUT,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> dict[str, str] | None:
    """Search the network for KEF speakers.

    Returns a mapping of description location to serial number, which may be
    empty, or None when the SSDP search itself could not be started.
    """
    state = DiscoveryState()
    client_timeout = aiohttp.ClientTimeout(total=fetch_timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with ssdp.search(ssdp.ROOT_DEVICE, timeout=timeout) as responses:
                async for response in responses:
                    await _process(session, state, response)
    except DiscoveryUnavailableError as exc:
        logger.warning("SSDP discovery unavailable: %s", exc)
        return None

    logger.debug("Discovery complete: found %d speaker(s)", len(state.speakers))
    return state.speakers


async def _process(
    session: aiohttp.ClientSession,
    state: DiscoveryState,
    response: ssdp.SsdpResponse,
) -> None:
    logger.debug("Got SSDP response pointing to %s", response.location)
    location = parse_location(response.location)
    if location is None:
        return
    if not state.visit(location):
        logger.debug("Already crawled %s, skipping", location)
        return

    logger.info("Checking %s", location)
    serial = await check_device(session, location)
    if serial is not None:
        logger.debug("Found KEF device %s at %s", serial, location)
        state.speakers[location] = serial
