"""Project-wide configuration constants and config-file loading.

Central place for the SSDP protocol parameters shared across modules.
Import individual names where needed.

Example:
    >>> from sonos_discovery.config import load_config, MULTICAST_ADDR
    >>> cfg = load_config("sonos-discovery.toml")
    >>> cfg["timeout"]
    3
"""

import ipaddress
import tomllib

from sonos_discovery.errors import InvalidAddress

# SSDP well-known multicast group and port.
MULTICAST_ADDR = "239.255.255.250"
MULTICAST_PORT = 1900

# UPnP 1.0 requires a multicast TTL of 4.
MULTICAST_TTL = 4

# Upper bound on a single receive attempt, in milliseconds.
ATTEMPT_TIMEOUT_MS = 500

# Overall search duration when the caller gives none, in seconds.
DEFAULT_TIMEOUT_S = 5

# Largest reply read from the socket; longer datagrams are truncated.
MAX_DATAGRAM = 1024

# Replies whose body contains this string come from a ZonePlayer.
SIGNATURE = "Sonos"


def parse_address(value) -> tuple[str, int]:
    """Validate a multicast destination and return ``(ip, port)``.

    Accepts ``None`` (the SSDP default), an ``"ip:port"`` or bare
    ``"ip"`` string, or an ``(ip, port)`` tuple.  Only IPv4 literals
    are accepted; host names are not resolved.

    Raises:
        InvalidAddress: If *value* is not a valid IPv4 address and port.

    Example:
        >>> parse_address("239.255.255.250:1900")
        ('239.255.255.250', 1900)
        >>> parse_address(None)
        ('239.255.255.250', 1900)
    """
    if value is None:
        return MULTICAST_ADDR, MULTICAST_PORT

    if isinstance(value, str):
        host, sep, port = value.strip().partition(":")
        if not sep:
            port = MULTICAST_PORT
    elif isinstance(value, tuple) and len(value) == 2:
        host, port = value
    else:
        raise InvalidAddress("address must be 'ip:port' or (ip, port), got %r" % (value,))

    try:
        ip = ipaddress.IPv4Address(host)
    except (ipaddress.AddressValueError, ValueError) as exc:
        raise InvalidAddress("invalid IPv4 address %r: %s" % (host, exc)) from None

    if isinstance(port, str):
        if not port.isdigit():
            raise InvalidAddress("invalid port %r" % port)
        port = int(port)
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidAddress("port must be int, got %s" % type(port).__name__)
    if port < 1 or port > 65535:
        raise InvalidAddress("port must be 1-65535, got %d" % port)

    return str(ip), port


def load_config(path: str) -> dict:
    """Read a TOML config file and validate its keys.

    All keys are optional: ``address`` (str, ``"ip:port"``),
    ``timeout`` (int, seconds) and ``max_devices`` (int).  Keys that
    are absent are absent from the result too, so callers can layer
    command-line values on top.  Unknown keys are ignored.

    Raises:
        ValueError: If a key has the wrong type or an invalid value.

    Example:
        >>> cfg = load_config("sonos-discovery.toml")
        >>> cfg["address"]
        ('239.255.255.250', 1900)
    """
    with open(path, "rb") as f:
        raw = tomllib.load(f)

    result = {}

    if "address" in raw:
        if not isinstance(raw["address"], str):
            raise ValueError(
                "address must be str, got %s" % type(raw["address"]).__name__
            )
        result["address"] = parse_address(raw["address"])

    for key in ("timeout", "max_devices"):
        if key in raw:
            _require_positive_int(raw, key)
            result[key] = raw[key]

    return result


def _require_positive_int(raw: dict[str, object], key: str) -> None:
    """Validate that *key* in *raw* is an int greater than zero."""
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("%s must be int, got %s" % (key, type(value).__name__))
    if value < 1:
        raise ValueError("%s must be positive, got %d" % (key, value))
