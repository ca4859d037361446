"""kefctl - control KEF wireless speakers and find them on the network."""

from __future__ import annotations

from importlib.metadata import version

from .commands import (
    Command,
    CommandResult,
    Completed,
    GetSource,
    GotSource,
    SetSource,
    SetVolume,
    Speaker,
    TurnOff,
    execute,
)
from .discovery import discover
from .exceptions import (
    DiscoveryUnavailableError,
    KefError,
    ParseError,
    ShortResponseError,
    SpeakerConnectionError,
)
from .protocol import Inverse, Power, Source, Standby, Volume

__all__ = [
    "Command",
    "CommandResult",
    "Completed",
    "DiscoveryUnavailableError",
    "GetSource",
    "GotSource",
    "Inverse",
    "KefError",
    "ParseError",
    "Power",
    "SetSource",
    "SetVolume",
    "ShortResponseError",
    "Source",
    "Speaker",
    "SpeakerConnectionError",
    "Standby",
    "TurnOff",
    "Volume",
    "__version__",
    "discover",
    "execute",
]

__version__ = version("kefctl")
