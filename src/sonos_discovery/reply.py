"""Datagram received in answer to a search.

Example:
    >>> from ipaddress import IPv4Address
    >>> from sonos_discovery.reply import Reply
    >>> r = Reply(addr=IPv4Address("10.0.0.5"), payload=b"SERVER: Sonos/70.3")
    >>> r.matches("Sonos")
    True
"""

from dataclasses import dataclass
from ipaddress import IPv4Address


@dataclass(frozen=True)
class Reply:
    """A single reply: sender address and raw payload."""

    addr: IPv4Address
    payload: bytes

    @property
    def text(self) -> str:
        """Payload decoded as UTF-8, invalid bytes replaced."""
        return self.payload.decode("utf-8", errors="replace")

    def matches(self, signature: str) -> bool:
        """Return True if the decoded payload contains *signature*."""
        return signature in self.text
