"""Discovery session -- search the local network for ZonePlayers.

A session owns one multicast socket.  Each ``start()`` sends the
M-SEARCH request once and collects the addresses of players that
answer, until the timeout elapses or enough players are found.

Example:
    >>> from sonos_discovery.discovery import Discovery
    >>> with Discovery() as discovery:
    ...     players = discovery.start(timeout=3, max_devices=2)
    >>> sorted(str(p) for p in players)
    ['192.168.1.20', '192.168.1.21']
"""

import enum
import logging
import time
from ipaddress import IPv4Address

from sonos_discovery.collector import Collector
from sonos_discovery.config import DEFAULT_TIMEOUT_S, SIGNATURE, parse_address
from sonos_discovery.errors import SendFailed
from sonos_discovery.query import build_search
from sonos_discovery.transport import MulticastTransport

log = logging.getLogger(__name__)


class State(enum.Enum):
    """Session lifecycle."""

    CONSTRUCTED = "constructed"
    SEARCH_SENT = "search_sent"
    COLLECTING = "collecting"
    COMPLETED = "completed"
    CLOSED = "closed"


class Discovery:
    """SSDP search session for ZonePlayers.

    The address is validated before the socket is opened, so a bad
    address never leaves a socket behind.

    Args:
        address: Destination for the search.  None for the SSDP group
            ``239.255.255.250:1900``, an ``"ip:port"`` string, or an
            ``(ip, port)`` tuple.
        transport_factory: Callable returning the transport (default
            MulticastTransport).  Tests substitute any object with
            ``send``, ``recv_one`` and ``close``.
        signature: Substring that marks a reply as a ZonePlayer.

    Raises:
        InvalidAddress: If *address* is malformed.
        SocketCreationFailed: If the socket cannot be opened.

    Example:
        >>> discovery = Discovery("239.255.255.250:1900")
        >>> discovery.start(timeout=1)
        {IPv4Address('192.168.1.20')}
        >>> discovery.close()
    """

    def __init__(self, address=None, transport_factory=None,
                 signature: str = SIGNATURE):
        """Validate the address and open the transport."""
        self._address = parse_address(address)
        self._request = build_search()
        self._collector = Collector(signature)
        if transport_factory is None:
            transport_factory = MulticastTransport
        self._transport = transport_factory()
        self._state = State.CONSTRUCTED

    @property
    def address(self) -> tuple[str, int]:
        """Destination ``(ip, port)`` of the search request."""
        return self._address

    @property
    def state(self) -> State:
        """Current lifecycle state."""
        return self._state

    def start(self, timeout: float | None = None,
              max_devices: int | None = None) -> set[IPv4Address]:
        """Send the search and collect the players that answer.

        May be called repeatedly; every call resends the request and
        starts from an empty result.

        Args:
            timeout: Seconds to collect replies (default 5).
            max_devices: Return as soon as this many players answered;
                None for no limit.

        Returns:
            set[IPv4Address]: Addresses of the players found, possibly
                empty.

        Raises:
            SendFailed: If the request cannot be sent or the session
                is closed.
            ValueError: If *timeout* or *max_devices* is negative.

        Example:
            >>> discovery.start(max_devices=1)
            {IPv4Address('192.168.1.20')}
        """
        if self._state is State.CLOSED:
            raise SendFailed("session is closed")

        if timeout is None:
            timeout = DEFAULT_TIMEOUT_S
        if timeout < 0:
            raise ValueError("timeout must not be negative, got %r" % timeout)
        if max_devices is not None and max_devices < 0:
            raise ValueError("max_devices must not be negative, got %r" % max_devices)

        log.debug(
            "searching %s:%d: timeout=%ss max_devices=%s",
            self._address[0], self._address[1], timeout, max_devices,
        )
        self._transport.send(self._request, self._address)
        self._state = State.SEARCH_SENT

        deadline = time.monotonic() + timeout
        self._state = State.COLLECTING
        found = self._collector.collect(self._transport, deadline, max_devices)
        self._state = State.COMPLETED

        log.info("search finished: %d device(s) found", len(found))
        return found

    def close(self) -> None:
        """Close the socket.  Failures are logged, never raised."""
        if self._state is State.CLOSED:
            return
        self._state = State.CLOSED
        try:
            self._transport.close()
        except OSError as exc:
            log.debug("close failed: %s", exc)

    def __enter__(self) -> "Discovery":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def discover(timeout: float | None = None, max_devices: int | None = None,
             address=None) -> set[IPv4Address]:
    """Run a single search on a fresh session and close it.

    Example:
        >>> discover(timeout=2)
        {IPv4Address('192.168.1.20'), IPv4Address('192.168.1.21')}
    """
    with Discovery(address) as discovery:
        return discovery.start(timeout, max_devices)
