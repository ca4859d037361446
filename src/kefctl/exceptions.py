"""Exceptions raised by kefctl."""


class KefError(Exception):
    """Base class for kefctl errors."""


class ParseError(KefError, ValueError):
    """Textual input could not be turned into a protocol value."""


class SpeakerConnectionError(KefError, ConnectionError):
    """Talking to the speaker over TCP failed."""


class ShortResponseError(SpeakerConnectionError):
    """The speaker answered with fewer bytes than the command needs."""


class DiscoveryUnavailableError(KefError, OSError):
    """The SSDP search could not be started."""
