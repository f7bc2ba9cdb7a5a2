"""Tests for sonos_discovery.collector."""

import threading
import time
from ipaddress import IPv4Address

from conftest import OTHER_BODY, make_reply
from sonos_discovery.collector import Collector
from sonos_discovery.errors import ReceiveFailed


class TestCollectFiltering:
    """Which replies end up in the result."""

    def test_duplicates_collapse(self, transport):
        """Repeated replies from one player are counted once."""
        for addr in ("10.0.0.5", "10.0.0.5", "10.0.0.6", "10.0.0.5"):
            transport.push(make_reply(addr))

        found = Collector().collect(transport, time.monotonic() + 0.3)

        assert found == {IPv4Address("10.0.0.5"), IPv4Address("10.0.0.6")}

    def test_non_matching_reply_excluded(self, transport):
        """A reply without the signature never counts."""
        transport.push(make_reply("10.0.0.7", OTHER_BODY))
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() + 0.3)

        assert found == {IPv4Address("10.0.0.5")}

    def test_non_matching_then_matching_same_host(self, transport):
        """A rejected reply does not block a later matching one."""
        transport.push(make_reply("10.0.0.5", OTHER_BODY))
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() + 0.3)

        assert found == {IPv4Address("10.0.0.5")}

    def test_empty_payload_ignored(self, transport):
        """Empty datagrams neither count nor mark the sender as seen."""
        transport.push(make_reply("10.0.0.5", b""))
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() + 2, 1)

        assert found == {IPv4Address("10.0.0.5")}
        assert transport.recv_calls == 2

    def test_invalid_utf8_still_matches(self, transport):
        """Undecodable bytes around the signature are tolerated."""
        transport.push(make_reply("10.0.0.5", b"\xff\xfeSERVER: Sonos/70\x80"))

        found = Collector().collect(transport, time.monotonic() + 2, 1)

        assert found == {IPv4Address("10.0.0.5")}

    def test_custom_signature(self, transport):
        """The signature string is configurable."""
        transport.push(make_reply("10.0.0.5"))
        transport.push(make_reply("10.0.0.7", OTHER_BODY))

        found = Collector("other-service").collect(transport, time.monotonic() + 0.3)

        assert found == {IPv4Address("10.0.0.7")}


class TestCollectBounds:
    """Device-count and deadline bounds."""

    def test_stops_at_max_devices(self, transport):
        """The loop stops receiving once K players are found."""
        for i in range(5):
            transport.push(make_reply("10.0.0.%d" % (10 + i)))

        start = time.monotonic()
        found = Collector().collect(transport, start + 5, 2)
        elapsed = time.monotonic() - start

        assert len(found) == 2
        assert transport.unread == 3
        assert elapsed < 1.0

    def test_zero_max_devices_returns_immediately(self, transport):
        """max_devices=0 returns an empty set without receiving."""
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() + 5, 0)

        assert found == set()
        assert transport.recv_calls == 0

    def test_silent_network_waits_full_timeout(self, transport):
        """With no replies the loop runs for the whole timeout, no longer."""
        start = time.monotonic()
        found = Collector().collect(transport, start + 1.0)
        elapsed = time.monotonic() - start

        assert found == set()
        assert elapsed >= 1.0
        assert elapsed < 1.5

    def test_past_deadline_returns_empty(self, transport):
        """A deadline already in the past yields nothing."""
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() - 1)

        assert found == set()


class TestCollectFailures:
    """Receive errors degrade to 'no information'."""

    def test_receive_failure_swallowed(self, transport):
        """A failed receive is skipped and collection continues."""
        transport.push(ReceiveFailed("boom"))
        transport.push(make_reply("10.0.0.5"))

        found = Collector().collect(transport, time.monotonic() + 2, 1)

        assert found == {IPv4Address("10.0.0.5")}

    def test_receive_failure_waits_out_attempt(self, transport):
        """A failed attempt is not retried before its window ends."""
        transport.push(ReceiveFailed("boom"))
        collector = Collector(attempt_timeout_ms=200)

        start = time.monotonic()
        reply = collector.receive(transport, 0.2)
        elapsed = time.monotonic() - start

        assert reply is None
        assert elapsed >= 0.19


class TestReceiveAttempts:
    """Worker handling across attempts."""

    def test_timed_out_worker_is_reused(self, transport):
        """A slow reply is picked up by the same worker on a later attempt."""
        collector = Collector(attempt_timeout_ms=50)

        def push_later():
            time.sleep(0.2)
            transport.push(make_reply("10.0.0.5"))

        t = threading.Thread(target=push_later)
        t.start()
        found = collector.collect(transport, time.monotonic() + 2, 1)
        t.join()

        assert found == {IPv4Address("10.0.0.5")}
        assert transport.recv_calls == 1

    def test_receive_timeout_returns_none(self, transport):
        """receive() returns None when nothing arrives in time."""
        assert Collector().receive(transport, 0.05) is None

    def test_receive_returns_reply(self, transport):
        """receive() returns the reply the worker got."""
        reply = make_reply("10.0.0.5")
        transport.push(reply)

        assert Collector().receive(transport, 1.0) == reply

    def test_pending_reply_carries_into_next_collect(self, transport):
        """A reply landing after one collect ends is seen by the next."""
        collector = Collector(attempt_timeout_ms=50)
        assert collector.collect(transport, time.monotonic() + 0.1) == set()

        transport.push(make_reply("10.0.0.5"))
        found = collector.collect(transport, time.monotonic() + 1, 1)

        assert found == {IPv4Address("10.0.0.5")}
        assert transport.recv_calls == 1
