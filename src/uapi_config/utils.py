"""Shared utility functions for uapi-config."""

import os
from pathlib import Path

NameLike = str | bytes | os.PathLike


def to_bytes(name: NameLike) -> bytes:
    """
    Convert a name to its raw filesystem bytes.

    Args:
        name: A str, bytes or path-like name

    Returns:
        The name encoded with the filesystem encoding
    """
    return os.fsencode(name)


def to_str(name: NameLike) -> str:
    """Convert a name to a str usable with pathlib (surrogateescape for raw bytes)."""
    return os.fsdecode(name)


def has_suffix(file_name: NameLike, suffix: NameLike) -> bool:
    """
    Check whether a file name ends with the given suffix.

    The comparison is an exact byte-suffix match: no globbing, no case
    folding, no Unicode normalization.

    Args:
        file_name: Name of the directory entry
        suffix: Required suffix (e.g. ".conf"); empty matches everything

    Returns:
        True if the raw bytes of file_name end with the raw bytes of suffix
    """
    return to_bytes(file_name).endswith(to_bytes(suffix))


def dropin_directory(directory: NameLike, *names: NameLike) -> Path:
    """
    Build the drop-in directory "<directory>/<names...>.d".

    The names are appended to the raw bytes of directory, so an absolute
    name still ends up below directory instead of replacing it.

    Args:
        directory: Search directory
        names: Path components below it; the last one gets the ".d" suffix

    Returns:
        Path to the drop-in directory
    """
    # "/" itself would otherwise yield a "//"-rooted path
    path = to_bytes(directory).rstrip(b"/")
    for name in names:
        path += b"/" + to_bytes(name)
    return Path(to_str(path + b".d"))
