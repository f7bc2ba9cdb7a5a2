"""UDP transport for SSDP multicast search.

One unbound datagram socket with the multicast TTL set.  The first
send assigns an ephemeral port, and replies come back to it as unicast.
The socket is shared between the session and its receive worker;
only ``close()`` releases it.

Example:
    >>> from sonos_discovery.transport import MulticastTransport
    >>> transport = MulticastTransport()
    >>> transport.send(build_search(), ("239.255.255.250", 1900))
    >>> reply = transport.recv_one()  # Blocks until a datagram arrives
    >>> transport.close()
"""

import logging
import socket
from ipaddress import IPv4Address

from sonos_discovery.config import MAX_DATAGRAM, MULTICAST_TTL
from sonos_discovery.errors import ReceiveFailed, SendFailed, SocketCreationFailed
from sonos_discovery.reply import Reply

log = logging.getLogger(__name__)


class MulticastTransport:
    """IPv4 datagram socket configured for multicast send.

    ``recv_one`` has no timeout of its own; callers that need one run
    it on a worker thread and bound the wait there.

    Raises:
        SocketCreationFailed: If the socket cannot be opened or the
            TTL option cannot be applied.

    Example:
        >>> with MulticastTransport() as transport:
        ...     transport.send(b"M-SEARCH ...", ("239.255.255.250", 1900))
    """

    def __init__(self):
        """Open the socket and set the multicast TTL."""
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, 0)
        except OSError as exc:
            raise SocketCreationFailed("cannot open UDP socket: %s" % exc) from exc

        try:
            self._sock.setsockopt(
                socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, MULTICAST_TTL,
            )
        except OSError as exc:
            self._sock.close()
            raise SocketCreationFailed("cannot set multicast TTL: %s" % exc) from exc

        self._closed = False

    @property
    def closed(self) -> bool:
        """True once ``close()`` has been called."""
        return self._closed

    def getsockopt(self, level: int, option: int) -> int:
        """Read an integer socket option."""
        return self._sock.getsockopt(level, option)

    def send(self, data: bytes, dest: tuple[str, int]) -> int:
        """Send *data* to *dest* and return the number of bytes sent.

        Raises:
            SendFailed: On any socket error, including use after close.
        """
        try:
            sent = self._sock.sendto(data, dest)
        except OSError as exc:
            raise SendFailed("cannot send to %s:%d: %s" % (dest[0], dest[1], exc)) from exc
        log.debug("sent %d bytes to %s:%d", sent, dest[0], dest[1])
        return sent

    def recv_one(self, max_size: int = MAX_DATAGRAM) -> Reply:
        """Receive a single datagram (blocks).

        Datagrams longer than *max_size* are truncated.

        Raises:
            ReceiveFailed: On socket error, or when the socket is shut
                down while waiting.
        """
        try:
            data, addr = self._sock.recvfrom(max_size)
        except OSError as exc:
            raise ReceiveFailed("receive failed: %s" % exc) from exc

        # A shutdown wakes the receiver with no sender address.
        if not addr:
            raise ReceiveFailed("socket shut down")

        return Reply(addr=IPv4Address(addr[0]), payload=data)

    def close(self) -> None:
        """Close the socket.  Safe to call more than once; never raises.

        Shuts the socket down first so a worker blocked in
        ``recv_one`` wakes up and exits.
        """
        if self._closed:
            return
        self._closed = True

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Expected for an unconnected UDP socket; receivers are still woken.
            pass

        try:
            self._sock.close()
        except OSError as exc:
            log.debug("close failed: %s", exc)

    def __enter__(self) -> "MulticastTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
