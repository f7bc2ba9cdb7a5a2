"""Bounded receive loop for search replies.

The transport's receive blocks with no timeout, so each attempt runs
on a short-lived worker thread and the coordinator waits on its
result for at most the per-attempt timeout.  Between attempts the
coordinator re-checks the overall deadline and the device count.

A worker that has not answered when its attempt times out stays
pending and is waited on again by the next attempt, so only one
worker ever reads from the socket.  It exits once a datagram arrives
or the socket is closed.

Example:
    >>> from sonos_discovery.collector import Collector
    >>> collector = Collector()
    >>> found = collector.collect(transport, time.monotonic() + 5, 3)
    >>> sorted(str(a) for a in found)
    ['192.168.1.20', '192.168.1.21']
"""

import logging
import math
import queue
import threading
import time
from ipaddress import IPv4Address

from sonos_discovery.config import ATTEMPT_TIMEOUT_MS, SIGNATURE
from sonos_discovery.errors import ReceiveFailed
from sonos_discovery.reply import Reply

log = logging.getLogger(__name__)


class _Attempt:
    """One ``recv_one`` call on a daemon thread.

    The outcome (a Reply or the ReceiveFailed raised) is put on a
    single-slot queue exactly once.
    """

    def __init__(self, transport):
        self.transport = transport
        self._outcome: queue.Queue = queue.Queue(maxsize=1)
        self._thread = threading.Thread(
            target=self._run, name="ssdp-recv", daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            self._outcome.put(self.transport.recv_one())
        except ReceiveFailed as exc:
            self._outcome.put(exc)

    def wait(self, timeout_s: float) -> Reply | ReceiveFailed | None:
        """Return the outcome, or None if it is not ready in *timeout_s*."""
        try:
            return self._outcome.get(timeout=timeout_s)
        except queue.Empty:
            return None


class Collector:
    """Collects unique matching reply addresses within time and count bounds.

    Args:
        signature: Substring a reply body must contain to count.
        attempt_timeout_ms: Upper bound on one receive attempt.

    Example:
        >>> collector = Collector()
        >>> collector.collect(transport, time.monotonic() + 1, 1)
        {IPv4Address('10.0.0.5')}
    """

    def __init__(self, signature: str = SIGNATURE,
                 attempt_timeout_ms: int = ATTEMPT_TIMEOUT_MS):
        """Initialize the collector."""
        self._signature = signature
        self._attempt_timeout_s = attempt_timeout_ms / 1000.0
        self._pending: _Attempt | None = None

    def collect(self, transport, deadline: float,
                max_devices: int | None = None) -> set[IPv4Address]:
        """Receive replies until *deadline* or *max_devices* are found.

        Args:
            transport: Object with a blocking ``recv_one()`` returning a
                Reply and raising ReceiveFailed on error.
            deadline: ``time.monotonic()`` instant at which to stop.
            max_devices: Stop after this many distinct addresses;
                None means no limit.

        Returns:
            set[IPv4Address]: Addresses of matching replies.  Empty if
                nothing answered; never an error.
        """
        limit = math.inf if max_devices is None else max_devices
        found: set[IPv4Address] = set()

        while len(found) < limit:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break

            reply = self.receive(transport, min(self._attempt_timeout_s, remaining))
            if reply is None:
                continue

            if not reply.payload:
                log.debug("empty reply from %s", reply.addr)
                continue

            if reply.addr in found:
                log.debug("duplicate reply from %s", reply.addr)
                continue

            if not reply.matches(self._signature):
                log.debug("ignoring reply from %s: no %r", reply.addr, self._signature)
                continue

            found.add(reply.addr)
            log.info("found %s", reply.addr)

        return found

    def receive(self, transport, timeout_s: float) -> Reply | None:
        """Make one bounded receive attempt.

        Resumes the pending worker if there is one for *transport*,
        otherwise starts a new one.  A failed receive is logged and
        the rest of the attempt window is slept away.

        Returns:
            Reply on success, None on timeout or receive failure.
        """
        started = time.monotonic()

        attempt = self._pending
        if attempt is None or attempt.transport is not transport:
            attempt = _Attempt(transport)
        self._pending = attempt

        outcome = attempt.wait(timeout_s)
        if outcome is None:
            return None

        self._pending = None

        if isinstance(outcome, ReceiveFailed):
            log.debug("%s", outcome)
            time.sleep(max(0.0, timeout_s - (time.monotonic() - started)))
            return None

        return outcome
