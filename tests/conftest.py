"""Shared pytest fixtures for sonos_discovery tests."""

import queue
import socket
import threading
from ipaddress import IPv4Address

import pytest

from sonos_discovery.errors import ReceiveFailed, SendFailed
from sonos_discovery.reply import Reply

SONOS_BODY = (
    b"HTTP/1.1 200 OK\r\n"
    b"CACHE-CONTROL: max-age = 1800\r\n"
    b"EXT:\r\n"
    b"LOCATION: http://10.0.0.5:1400/xml/device_description.xml\r\n"
    b"SERVER: Linux UPnP/1.0 Sonos/70.3-35220 (ZPS1)\r\n"
    b"ST: urn:schemas-upnp-org:device:ZonePlayer:1\r\n"
    b"\r\n"
)

OTHER_BODY = b"HTTP/1.1 200 OK\r\nST: other-service"


def make_reply(addr: str, payload: bytes = SONOS_BODY) -> Reply:
    """Build a Reply from a dotted-quad string."""
    return Reply(addr=IPv4Address(addr), payload=payload)


def find_free_port() -> int:
    """Find an available UDP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class FakeTransport:
    """Test double for MulticastTransport: canned replies, records sends.

    ``recv_one`` hands out queued replies in order, raising any queued
    exception instead.  Once the queue is empty it blocks like a real
    socket until more is pushed or the transport is closed.
    """

    def __init__(self, replies=(), fail_send: bool = False):
        """Initialize with canned replies (Reply or exception objects)."""
        self._replies: queue.Queue = queue.Queue()
        for item in replies:
            self._replies.put(item)
        self._closed = threading.Event()
        self._fail_send = fail_send
        self.sent = []
        self.recv_calls = 0
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed.is_set()

    @property
    def unread(self) -> int:
        """Number of queued replies not yet received."""
        return self._replies.qsize()

    def push(self, item) -> None:
        """Queue another reply (or exception) for recv_one."""
        self._replies.put(item)

    def send(self, data: bytes, dest: tuple[str, int]) -> int:
        """Record *data* and *dest*; fail if configured to or closed."""
        if self._fail_send or self.closed:
            raise SendFailed("fake send failure")
        self.sent.append((data, dest))
        return len(data)

    def recv_one(self) -> Reply:
        """Return the next queued reply, blocking while none is queued."""
        self.recv_calls += 1
        while not self._closed.is_set():
            try:
                item = self._replies.get(timeout=0.01)
            except queue.Empty:
                continue
            if isinstance(item, Exception):
                raise item
            return item
        raise ReceiveFailed("fake transport closed")

    def close(self) -> None:
        """Mark closed and wake any blocked receiver."""
        self.close_calls += 1
        self._closed.set()


@pytest.fixture
def transport():
    """A FakeTransport closed after the test."""
    fake = FakeTransport()
    yield fake
    fake.close()
