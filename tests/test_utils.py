"""Tests for utility functions."""

from pathlib import Path

import pytest

from uapi_config.utils import dropin_directory, has_suffix


@pytest.mark.parametrize(
    "name,suffix,expected",
    [
        ("a.conf", ".conf", True),
        ("a.conf", "conf", True),
        (".conf", ".conf", True),
        ("a.conf", "", True),  # Empty suffix matches everything
        ("a.conf.disabled", ".conf", False),
        ("a.CONF", ".conf", False),  # Case sensitive
        ("a.conf ", ".conf", False),
        ("conf", ".conf", False),
        ("a*.conf", "*.conf", True),  # No globbing
        ("ab.conf", "*.conf", False),
        (b"a.conf", b".conf", True),
        (b"\xff.conf", ".conf", True),
    ],
)
def test_has_suffix(name, suffix, expected):
    """Test byte-exact suffix matching."""
    assert has_suffix(name, suffix) == expected


@pytest.mark.parametrize(
    "directory,names,expected",
    [
        (Path("/etc"), ("foo",), Path("/etc/foo.d")),
        (Path("/etc"), ("foo.service",), Path("/etc/foo.service.d")),
        (Path("/etc"), (b"foo",), Path("/etc/foo.d")),
        (Path("/etc"), ("foo", "a.conf"), Path("/etc/foo/a.conf.d")),
        (Path("/"), ("foo",), Path("/foo.d")),
        # Absolute names stay below the directory
        (Path("/etc"), ("/x/foo",), Path("/etc/x/foo.d")),
        (Path("/etc"), ("/x", "/a.conf"), Path("/etc/x/a.conf.d")),
    ],
)
def test_dropin_directory(directory, names, expected):
    """Test the <dir>/<name>.d convention."""
    assert dropin_directory(directory, *names) == expected
