"""SSDP search request for ZonePlayer discovery.

The request is a fixed M-SEARCH message.  Players ignore requests
with leading or trailing whitespace, so the template is stored
without either and sent byte-for-byte.

Example:
    >>> from sonos_discovery.query import build_search
    >>> build_search().splitlines()[0]
    b'M-SEARCH * HTTP/1.1'
"""

from sonos_discovery.config import MULTICAST_ADDR, MULTICAST_PORT

SEARCH_TARGET = "urn:schemas-upnp-org:device:ZonePlayer:1"

SEARCH_REQUEST = (
    "M-SEARCH * HTTP/1.1\n"
    "HOST: %s:%d\n"
    'MAN: "ssdp:discover"\n'
    "MX: 1\n"
    "ST: %s" % (MULTICAST_ADDR, MULTICAST_PORT, SEARCH_TARGET)
).encode("ascii")


def build_search() -> bytes:
    """Return the M-SEARCH request payload.

    The HOST header always names the well-known SSDP group, even when
    the request is sent to an override address.
    """
    return SEARCH_REQUEST


def is_search(data: bytes) -> bool:
    """Return True if *data* is an M-SEARCH for ZonePlayers.

    Line endings may be LF or CRLF.

    Example:
        >>> is_search(build_search())
        True
        >>> is_search(b"NOTIFY * HTTP/1.1")
        False
    """
    text = data.decode("ascii", errors="replace")
    lines = [line.strip() for line in text.splitlines()]
    if not lines or lines[0] != "M-SEARCH * HTTP/1.1":
        return False
    for line in lines[1:]:
        key, sep, value = line.partition(":")
        if sep and key.strip().upper() == "ST":
            return value.strip() == SEARCH_TARGET
    return False
