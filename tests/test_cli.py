"""Tests for CLI functionality."""

import io
from pathlib import Path
from tempfile import TemporaryDirectory

from rich.console import Console
from typer.testing import CliRunner

from uapi_config import cli
from uapi_config.cli import app

runner = CliRunner()

FIXTURES = (Path(__file__).parent / "fixtures").resolve()


def test_app_help():
    """Test that the main help command works."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "uapi-config" in result.output
    assert "Locate configuration files" in result.output


def test_find_help():
    """Test that find help command works."""
    result = runner.invoke(app, ["find", "--help"])
    assert result.exit_code == 0
    assert "List configuration files" in result.output
    assert "--project" in result.output
    assert "--suffix" in result.output


def test_no_args_shows_help():
    """Test that running with no args shows help."""
    result = runner.invoke(app, [])
    assert "uapi-config" in result.output or "Usage" in result.output


def test_dirs_default_preset():
    """Test that the modern preset is the default."""
    result = runner.invoke(app, ["dirs"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["/usr/etc", "/run", "/etc"]


def test_dirs_classic_with_root_and_chroot():
    """Test that extra roots are appended and chroot applies to all."""
    result = runner.invoke(
        app,
        ["dirs", "--preset", "classic", "--root", "/opt/etc", "--chroot", "/sysroot"],
    )
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "/sysroot/usr/lib",
        "/sysroot/var/run",
        "/sysroot/etc",
        "/sysroot/opt/etc",
    ]


def test_dirs_user_directory(monkeypatch):
    """Test that --user appends the user config directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", "/home/user/.config")
    result = runner.invoke(app, ["dirs", "--preset", "empty", "--user"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["/home/user/.config"]


def test_dirs_rejects_relative_root():
    """Test that a relative --root is reported as an error."""
    result = runner.invoke(app, ["dirs", "--root", "relative/etc"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_dirs_rejects_parent_dir_chroot():
    """Test that a chroot with '..' is reported as an error."""
    result = runner.invoke(app, ["dirs", "--chroot", "/sysroot/../etc"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_find_requires_project_or_file_name():
    """Test that find needs at least a project or a file name."""
    result = runner.invoke(app, ["find", "--suffix", ".conf"])
    assert result.exit_code == 1
    assert "Must specify --project and/or --file-name" in result.output


def test_find_project_requires_suffix():
    """Test that a project-only search needs a suffix."""
    result = runner.invoke(app, ["find", "--project", "foo"])
    assert result.exit_code == 1
    assert "--suffix is required" in result.output


def test_find_plain():
    """Test plain output lists files in application order."""
    base = FIXTURES / "only_file_name"
    result = runner.invoke(
        app,
        ["find", "-f", "foo.service", "-s", ".conf", "--chroot", str(base), "--plain"],
    )
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        str(base / "etc" / "foo.service"),
        str(base / "etc" / "foo.service.d" / "a.conf"),
        str(base / "usr" / "etc" / "foo.service.d" / "b.conf"),
        str(base / "run" / "foo.service.d" / "c.conf"),
        str(base / "etc" / "foo.service.d" / "d.conf"),
        str(base / "run" / "foo.service.d" / "e.conf"),
        str(base / "usr" / "etc" / "foo.service.d" / "f.conf"),
    ]


def test_find_reverse():
    """Test that --reverse lists the highest precedence file first."""
    base = FIXTURES / "search_directory_precedence"
    result = runner.invoke(
        app,
        [
            "find",
            "-p",
            "foo",
            "-f",
            "a.conf",
            "-s",
            ".conf",
            "--preset",
            "empty",
            "--root",
            str(base / "run"),
            "--reverse",
            "--plain",
        ],
    )
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        str(base / "run" / "foo" / "a.conf.d" / "b.conf"),
        str(base / "run" / "foo" / "a.conf"),
    ]


def test_find_nothing_found():
    """Test the table output when no files exist."""
    result = runner.invoke(
        app, ["find", "-p", "foo", "-s", ".conf", "--chroot", str(FIXTURES / "none")]
    )
    assert result.exit_code == 0
    assert "No configuration files found" in result.output


def test_find_table(monkeypatch):
    """Test the table output lists every file."""
    monkeypatch.setattr(cli, "console", Console(width=200))
    base = FIXTURES / "only_project" / "run"
    result = runner.invoke(
        app,
        [
            "find",
            "-p",
            "foo",
            "-s",
            ".conf",
            "--preset",
            "empty",
            "--root",
            str(base),
        ],
    )
    assert result.exit_code == 0
    assert str(base / "foo.d" / "c.conf") in result.output
    assert str(base / "foo.d" / "e.conf") in result.output


def test_cat():
    """Test that cat prints each file's content under a path header."""
    base = FIXTURES / "only_project"
    result = runner.invoke(
        app, ["cat", "-p", "foo", "-s", ".conf", "--chroot", str(base)]
    )
    assert result.exit_code == 0

    lines = result.output.splitlines()
    assert lines[0] == f"# {base / 'etc' / 'foo.d' / 'a.conf'}"
    assert lines[1] == "origin = only_project/etc/foo.d/a.conf"
    assert "origin = only_project/usr/etc/foo.d/a.conf" not in result.output
    assert "origin = only_project/usr/etc/foo.d/f.conf" in result.output
    assert lines.count("") == 5


def test_cat_copies_bytes_verbatim():
    """Test that cat does not re-encode content that is not valid UTF-8."""
    with TemporaryDirectory() as tmpdir:
        base = Path(tmpdir).resolve()
        (base / "etc").mkdir()
        (base / "etc" / "a.conf").write_bytes(b"k=\xff\n")

        result = runner.invoke(app, ["cat", "-f", "a.conf", "--chroot", str(base)])
        assert result.exit_code == 0
        assert result.stdout_bytes.endswith(b"\nk=\xff\n")
        assert b"\xef\xbf\xbd" not in result.stdout_bytes


class FailingRead(io.BytesIO):
    def read(self, *args):
        raise OSError("read failed")


def test_cat_read_error_closes_remaining_files(monkeypatch):
    """Test that a read failure closes every file cat has not printed yet."""
    real_take_all = cli.take_all
    remaining = []

    def take_all_failing_first(files, reverse):
        entries = real_take_all(files, reverse)
        entries[0][1].close()
        remaining.extend(file for _, file in entries[1:])
        return [(entries[0][0], FailingRead())] + entries[1:]

    monkeypatch.setattr(cli, "take_all", take_all_failing_first)

    base = FIXTURES / "only_project"
    result = runner.invoke(
        app, ["cat", "-p", "foo", "-s", ".conf", "--chroot", str(base)]
    )
    assert result.exit_code == 1
    assert "Error reading" in result.output
    assert len(remaining) == 5
    assert all(file.closed for file in remaining)
