#!/usr/bin/env python3
"""Fake ZonePlayer for trying out discovery without real hardware.

Joins the SSDP multicast group (or listens on a plain UDP port) and
answers every ZonePlayer M-SEARCH with a Sonos-style reply sent back
to the searcher as unicast.

Usage:
    python responder.py [port] [group]

Args:
    port: UDP port to listen on (default 1900).
    group: Multicast group to join (default 239.255.255.250).
        Pass ``-`` to skip joining and listen on 127.0.0.1 only.

Example:
    python responder.py 1900
    python responder.py 5900 -   # then: sonos-discover -a 127.0.0.1:5900
"""

import socket
import struct
import sys
import uuid

# Add parent src to path so we can import sonos_discovery
sys.path.insert(0, str(__import__("pathlib").Path(__file__).resolve().parents[1] / "src"))

from sonos_discovery.config import MULTICAST_ADDR, MULTICAST_PORT
from sonos_discovery.query import SEARCH_TARGET, is_search


def make_reply(host, udn):
    """Build a search reply the way a ZonePlayer words it.

    Args:
        host: Address advertised in the LOCATION header.
        udn: Device UDN (e.g. ``"RINCON_000E58A0B1C201400"``).

    Returns:
        bytes: CRLF-framed HTTP response.
    """
    lines = [
        "HTTP/1.1 200 OK",
        "CACHE-CONTROL: max-age = 1800",
        "EXT:",
        "LOCATION: http://{}:1400/xml/device_description.xml".format(host),
        "SERVER: Linux UPnP/1.0 Sonos/70.3-35220 (ZPS1)",
        "ST: {}".format(SEARCH_TARGET),
        "USN: uuid:{}::{}".format(udn, SEARCH_TARGET),
        "",
        "",
    ]
    return "\r\n".join(lines).encode("ascii")


def open_socket(port, group):
    """Bind to *port* and join *group*, or bind to localhost if group is None."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if group is None:
        sock.bind(("127.0.0.1", port))
        return sock

    sock.bind(("", port))
    mreq = struct.pack("4sl", socket.inet_aton(group), socket.INADDR_ANY)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
    return sock


def run(port, group):
    """Answer searches until interrupted.

    Args:
        port: UDP port to listen on.
        group: Multicast group to join, or None for localhost only.
    """
    sock = open_socket(port, group)
    udn = "RINCON_{}01400".format(uuid.uuid4().hex[:12].upper())

    print("responder: {} listening on {}:{}".format(
        udn, group or "127.0.0.1", port), flush=True)

    try:
        while True:
            data, addr = sock.recvfrom(1024)
            if not is_search(data):
                continue

            local = sock.getsockname()[0]
            if local == "0.0.0.0":
                local = "127.0.0.1"
            sock.sendto(make_reply(local, udn), addr)
            print("responder: answered {}:{}".format(addr[0], addr[1]),
                  flush=True)
    except KeyboardInterrupt:
        pass
    finally:
        sock.close()


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else MULTICAST_PORT
    group = sys.argv[2] if len(sys.argv) > 2 else MULTICAST_ADDR
    run(port, None if group == "-" else group)
