"""Main file and drop-in discovery across search directories."""

import os
import stat
from collections import deque
from collections.abc import Iterator, Sequence
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO

from uapi_config.utils import NameLike, has_suffix, to_bytes, to_str

FileEntry = tuple[Path, BinaryIO]


def open_regular_file(path: Path) -> BinaryIO | None:
    """
    Open a file for reading if it exists and is a regular file.

    Args:
        path: Candidate file path

    Returns:
        Binary file handle, or None if the path does not exist or is not a
        regular file (directory, device, socket, ...)

    Raises:
        OSError: For any other failure (permission denied, symlink loop, ...)
    """
    try:
        file = open(path, "rb")
    except (FileNotFoundError, IsADirectoryError):
        return None

    try:
        is_regular = stat.S_ISREG(os.fstat(file.fileno()).st_mode)
    except OSError:
        file.close()
        raise

    if not is_regular:
        file.close()
        return None

    return file


def find_main_file(
    file_name: NameLike, search_directories: Sequence[Path]
) -> FileEntry | None:
    """
    Find the highest-priority regular file named file_name.

    Search directories are considered from last to first; the first one
    containing a regular file with the requested name wins and the rest
    are never looked at.

    Args:
        file_name: Name of the file to look for directly under each directory
        search_directories: Directories in ascending priority order

    Returns:
        (path, open file) of the winning file, or None if no directory has one

    Raises:
        OSError: If opening a candidate fails for a reason other than it
            not existing
    """
    name = to_str(file_name)

    for search_directory in reversed(search_directories):
        path = search_directory / name
        file = open_regular_file(path)
        if file is None:
            continue
        return path, file

    return None


def find_dropins(
    suffix: NameLike, dropin_directories: Sequence[Path]
) -> list[FileEntry]:
    """
    Collect drop-in files from a list of drop-in directories.

    Directories are scanned from last to first. A file name seen in a
    higher-priority directory shadows the same name in every lower-priority
    one; shadowed files are never opened. The result is sorted by the raw
    bytes of the file name, regardless of which directory supplied it.

    Args:
        suffix: Required file name suffix, matched byte for byte
        dropin_directories: Drop-in directories in ascending priority order

    Returns:
        List of (path, open file) pairs in yield order

    Raises:
        OSError: If listing a directory or opening an entry fails for a
            reason other than it not existing. Files already opened by
            this call are closed first.
    """
    found: dict[bytes, FileEntry] = {}

    with ExitStack() as cleanup:
        for dropin_directory in reversed(dropin_directories):
            try:
                with os.scandir(dropin_directory) as entries:
                    names = [entry.name for entry in entries]
            except FileNotFoundError:
                continue

            for name in names:
                if not has_suffix(name, suffix):
                    continue

                key = to_bytes(name)

                # Already supplied by a higher-priority directory
                if key in found:
                    continue

                path = dropin_directory / name
                file = open_regular_file(path)
                if file is None:
                    continue

                cleanup.enter_context(file)
                found[key] = (path, file)

        # Success: ownership of every handle moves to the caller
        cleanup.pop_all()

    return [found[key] for key in sorted(found)]


def collect_files(
    file_name: NameLike | None,
    main_file_directories: Sequence[Path],
    dropin_suffix: NameLike | None,
    dropin_directories: Sequence[Path],
) -> "Files":
    """
    Run main file and drop-in discovery and combine the results.

    Args:
        file_name: Main file name, or None to skip the main file step
        main_file_directories: Directories searched for the main file
        dropin_suffix: Drop-in suffix, or None to skip the drop-in step
        dropin_directories: Drop-in directories, parallel to the roots

    Returns:
        Files yielding the main file (if any) followed by the drop-ins
    """
    main_file = None
    if file_name is not None:
        main_file = find_main_file(file_name, main_file_directories)

    dropins: list[FileEntry] = []
    with ExitStack() as cleanup:
        if main_file is not None:
            cleanup.enter_context(main_file[1])
        if dropin_suffix is not None:
            dropins = find_dropins(dropin_suffix, dropin_directories)
        cleanup.pop_all()

    return Files(main_file, dropins)


class Files:
    """
    The configuration files found by a search, in yield order.

    Settings in files yielded later override settings in files yielded
    earlier. Items can be taken from the front with next() or from the
    back with next_back(). Every item is yielded at most once; once taken,
    the open file belongs to the caller, who is responsible for closing it.
    Files that are never taken are closed by close() or on leaving a
    ``with`` block.
    """

    def __init__(
        self, main_file: FileEntry | None = None, dropins: Sequence[FileEntry] = ()
    ):
        self._items: deque[FileEntry] = deque()
        if main_file is not None:
            self._items.append(main_file)
        self._items.extend(dropins)

    def __iter__(self) -> "Files":
        return self

    def __next__(self) -> FileEntry:
        if not self._items:
            raise StopIteration
        return self._items.popleft()

    def next_back(self) -> FileEntry:
        """Take the last remaining item; raises StopIteration when exhausted."""
        if not self._items:
            raise StopIteration
        return self._items.pop()

    def __reversed__(self) -> Iterator[FileEntry]:
        while self._items:
            yield self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def paths(self) -> list[Path]:
        """Return the paths of the remaining items without taking them."""
        return [path for path, _ in self._items]

    def close(self) -> None:
        """Close and discard every item that has not been taken yet."""
        while self._items:
            _, file = self._items.popleft()
            file.close()

    def __enter__(self) -> "Files":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Files({self.paths()!r})"
