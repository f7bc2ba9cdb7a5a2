"""Config file lookup.

Resolves the optional TOML config for the command-line tool:

  Dev:    ./sonos-discovery.toml
  User:   ~/.config/sonos-discovery/sonos-discovery.toml
  System: /etc/sonos-discovery/sonos-discovery.toml
"""

import os

CONFIG_NAME = "sonos-discovery.toml"
USER_DIR = os.path.join("~", ".config", "sonos-discovery")
ETC_DIR = "/etc/sonos-discovery"


def resolve_config(name: str) -> str:
    """Resolve a config file name to an absolute path.

    If *name* contains a ``/``, it is treated as an explicit path and
    returned as-is (made absolute) after verifying it exists.

    If *name* is a bare filename, the current directory is searched
    first, then the user config directory, then ``/etc/sonos-discovery/``.
    The first match is returned.

    Raises:
        FileNotFoundError: If the file cannot be found.
    """
    if "/" in name:
        path = os.path.abspath(os.path.expanduser(name))
        if not os.path.isfile(path):
            raise FileNotFoundError("config file not found: %s" % path)
        return path

    for directory in (os.curdir, os.path.expanduser(USER_DIR), ETC_DIR):
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate):
            return os.path.abspath(candidate)

    raise FileNotFoundError(
        "config file '%s' not found in ./, %s/ or %s/" % (name, USER_DIR, ETC_DIR)
    )


def find_config() -> str | None:
    """Return the default config file path, or None if there is none."""
    try:
        return resolve_config(CONFIG_NAME)
    except FileNotFoundError:
        return None
