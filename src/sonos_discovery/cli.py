"""Command-line entry point -- search for players and print their addresses.

Settings come from an optional TOML config file; command-line flags
override it.  Each address found is printed on its own line.

Example:
    Run from the command line::

        sonos-discover -t 3 -n 2
        sonos-discover -c ~/sonos.toml -v
"""

import argparse
import logging
import sys

from sonos_discovery.config import DEFAULT_TIMEOUT_S, load_config, parse_address
from sonos_discovery.discovery import discover
from sonos_discovery.errors import DiscoveryError
from sonos_discovery.paths import find_config, resolve_config

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``sonos-discover``."""
    parser = argparse.ArgumentParser(
        prog="sonos-discover",
        description="find Sonos players on the local network",
    )
    parser.add_argument("-c", "--config", help="path to TOML config file")
    parser.add_argument(
        "-a", "--address",
        help="search destination as ip:port (default 239.255.255.250:1900)",
    )
    parser.add_argument(
        "-t", "--timeout", type=int,
        help="seconds to wait for replies (default %d)" % DEFAULT_TIMEOUT_S,
    )
    parser.add_argument(
        "-n", "--count", type=int, dest="max_devices",
        help="stop after this many players are found",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging",
    )
    return parser


def load_settings(args: argparse.Namespace) -> dict:
    """Merge config-file values with command-line overrides.

    Raises:
        FileNotFoundError: If an explicit ``--config`` does not exist.
        ValueError: If the config file or a flag is invalid.
    """
    if args.config:
        path = resolve_config(args.config)
    else:
        path = find_config()

    settings = load_config(path) if path else {}
    if path:
        log.debug("loaded config %s", path)

    if args.address is not None:
        settings["address"] = parse_address(args.address)
    if args.timeout is not None:
        if args.timeout < 0:
            raise ValueError("timeout must not be negative")
        settings["timeout"] = args.timeout
    if args.max_devices is not None:
        if args.max_devices < 1:
            raise ValueError("count must be positive")
        settings["max_devices"] = args.max_devices

    return settings


def main(argv: list[str] | None = None) -> None:
    """CLI entry point -- parse args, run one search, print results.

    Exits with status 1 if the search cannot be run and 2 on bad
    arguments or config.  Finding nothing is not an error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=level,
    )

    try:
        settings = load_settings(args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    try:
        found = discover(
            timeout=settings.get("timeout"),
            max_devices=settings.get("max_devices"),
            address=settings.get("address"),
        )
    except DiscoveryError as exc:
        log.error("%s", exc)
        sys.exit(1)

    for addr in sorted(found):
        print(addr)


if __name__ == "__main__":
    main()
