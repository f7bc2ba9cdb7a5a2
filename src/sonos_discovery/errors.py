"""Exceptions raised by the discovery package.

Only session construction and the initial search send surface errors
to the caller.  Receive failures are raised by the transport but are
always absorbed by the collector.
"""


class DiscoveryError(Exception):
    """Base class for all discovery errors."""


class InvalidAddress(DiscoveryError, ValueError):
    """The multicast address override could not be parsed."""


class SocketCreationFailed(DiscoveryError, OSError):
    """The UDP socket could not be opened or configured."""


class SendFailed(DiscoveryError, OSError):
    """The search request could not be transmitted."""


class ReceiveFailed(DiscoveryError, OSError):
    """A single receive on the socket failed."""
