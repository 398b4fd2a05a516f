"""User configuration directory lookup for uapi-config."""

import os
from collections.abc import Mapping
from pathlib import Path


def user_config_dir(environ: Mapping[str, str] | None = None) -> Path | None:
    """
    Resolve the per-user configuration directory.

    Uses $XDG_CONFIG_HOME if it is set and non-empty, otherwise
    $HOME/.config if $HOME is set and non-empty.

    Args:
        environ: Environment to read (defaults to os.environ)

    Returns:
        Path to the user configuration directory, or None if neither
        variable resolves
    """
    if environ is None:
        environ = os.environ

    xdg_config_home = environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home)

    home = environ.get("HOME")
    if home:
        return Path(home) / ".config"

    return None
