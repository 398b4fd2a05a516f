"""Search directory lists and the staged configuration file lookup."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from uapi_config.config import user_config_dir
from uapi_config.discovery import Files, collect_files
from uapi_config.utils import NameLike, dropin_directory, to_str


class InvalidPathError(ValueError):
    """A search directory is not absolute or contains a '..' component."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Invalid search directory '{path}': "
            "must be absolute and must not contain '..'"
        )


class Preset(Enum):
    """Predefined search directory lists."""

    EMPTY = "empty"
    CLASSIC = "classic"
    MODERN = "modern"


def _as_path(path: NameLike) -> Path:
    return Path(to_str(path))


def is_valid_path(path: NameLike) -> bool:
    """
    Check if a path may be used as a search directory.

    A valid search directory:
    - Starts at the filesystem root
    - Has no '..' component

    Args:
        path: Path to check

    Returns:
        True if path is valid, False otherwise
    """
    path = _as_path(path)
    if not path.is_absolute():
        return False

    return ".." not in path.parts


def validate_path(path: NameLike) -> None:
    """
    Ensure a path may be used as a search directory.

    Raises:
        InvalidPathError: If the path is not absolute or contains '..'
    """
    if not is_valid_path(path):
        raise InvalidPathError(_as_path(path))


class SearchDirectories:
    """
    An ordered list of directories that config files are searched under.

    Directories are listed from lowest to highest priority: files in later
    directories override files in earlier ones.
    """

    def __init__(self, paths: Iterable[NameLike] = ()):
        self._paths: list[Path] = []
        for path in paths:
            self.push(path)

    @classmethod
    def empty(cls) -> "SearchDirectories":
        """Start with no search directories at all."""
        return cls()

    @classmethod
    def classic_system(cls) -> "SearchDirectories":
        """
        Search directories of a classic system.

        OS vendor configs in /usr/lib, ephemeral overrides in /var/run and
        sysadmin overrides in /etc.
        """
        return cls(["/usr/lib", "/var/run", "/etc"])

    @classmethod
    def modern_system(cls) -> "SearchDirectories":
        """
        Search directories of a modern system.

        OS vendor configs in /usr/etc, ephemeral overrides in /run and
        sysadmin overrides in /etc.
        """
        return cls(["/usr/etc", "/run", "/etc"])

    @classmethod
    def from_preset(cls, preset: Preset) -> "SearchDirectories":
        if preset == Preset.CLASSIC:
            return cls.classic_system()
        if preset == Preset.MODERN:
            return cls.modern_system()
        return cls.empty()

    @classmethod
    def from_paths(cls, paths: Iterable[NameLike]) -> "SearchDirectories":
        """
        Build a list from caller-supplied directories, lowest priority first.

        Raises:
            InvalidPathError: If any of the paths is invalid
        """
        return cls(paths)

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def push(self, path: NameLike) -> None:
        """
        Append a search directory with the highest priority so far.

        Args:
            path: Absolute directory path without '..' components

        Raises:
            InvalidPathError: If the path is invalid; the list is unchanged
        """
        validate_path(path)
        self._paths.append(_as_path(path))

    def with_user_directory(
        self, environ: Mapping[str, str] | None = None
    ) -> "SearchDirectories":
        """
        Append the user's config directory, ${XDG_CONFIG_HOME:-$HOME/.config}.

        Nothing is appended if neither variable is set or the result is not
        a valid search directory.

        Args:
            environ: Environment to read (defaults to os.environ)

        Returns:
            This list, for chaining
        """
        directory = user_config_dir(environ)
        if directory is not None and is_valid_path(directory):
            self._paths.append(directory)

        return self

    def chroot(self, root: NameLike) -> "SearchDirectories":
        """
        Rebase every search directory under root.

        For example /etc becomes <root>/etc.

        Args:
            root: New base directory; must itself be a valid search directory

        Returns:
            A new SearchDirectories with the rebased paths

        Raises:
            InvalidPathError: If root is invalid
        """
        validate_path(root)
        root = _as_path(root)

        rebased = SearchDirectories()
        # parts[0] is the root marker, which the new base replaces
        rebased._paths = [root.joinpath(*path.parts[1:]) for path in self._paths]
        return rebased

    def with_project(self, project: NameLike) -> "SearchDirectoriesForProject":
        """Search for the config files of the given project."""
        return SearchDirectoriesForProject(self.paths, project)

    def with_file_name(self, file_name: NameLike) -> "SearchDirectoriesForFileName":
        """Search for a config file with the given name."""
        return SearchDirectoriesForFileName(self.paths, file_name)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchDirectories):
            return NotImplemented
        return self._paths == other._paths

    def __repr__(self) -> str:
        return f"SearchDirectories({[str(path) for path in self._paths]!r})"


@dataclass(frozen=True)
class SearchDirectoriesForProject:
    """Search directories scoped to a project, <dir>/<project>.d."""

    directories: tuple[Path, ...]
    project: NameLike

    def with_file_name(
        self, file_name: NameLike
    ) -> "SearchDirectoriesForProjectAndFileName":
        """Search for a config file with the given name under the project."""
        return SearchDirectoriesForProjectAndFileName(
            self.directories, self.project, file_name
        )

    def find_files(self, dropin_suffix: NameLike) -> Files:
        """
        Find all drop-in files of the project.

        Looks at <dir>/<project>.d/*<dropin_suffix> in every search
        directory. There is no main file.

        Args:
            dropin_suffix: Suffix that drop-in file names must end with

        Returns:
            The drop-in files in yield order

        Raises:
            TypeError: If dropin_suffix is None
            OSError: On any I/O error other than a missing file or directory
        """
        if dropin_suffix is None:
            raise TypeError(
                "A drop-in suffix is required when only a project is given"
            )

        dropin_directories = [
            dropin_directory(directory, self.project) for directory in self.directories
        ]
        return collect_files(None, (), dropin_suffix, dropin_directories)


@dataclass(frozen=True)
class SearchDirectoriesForFileName:
    """Search directories scoped to a file name, <dir>/<file_name>."""

    directories: tuple[Path, ...]
    file_name: NameLike

    def with_project(
        self, project: NameLike
    ) -> "SearchDirectoriesForProjectAndFileName":
        """Search for the config file under the given project."""
        return SearchDirectoriesForProjectAndFileName(
            self.directories, project, self.file_name
        )

    def find_files(self, dropin_suffix: NameLike | None = None) -> Files:
        """
        Find the main file <dir>/<file_name> and its drop-ins.

        Drop-ins are looked up in <dir>/<file_name>.d only when
        dropin_suffix is given.

        Args:
            dropin_suffix: Suffix that drop-in file names must end with,
                or None to skip drop-ins

        Returns:
            The main file (if found) followed by the drop-in files

        Raises:
            OSError: On any I/O error other than a missing file or directory
        """
        dropin_directories = [
            dropin_directory(directory, self.file_name)
            for directory in self.directories
        ]
        return collect_files(
            self.file_name, self.directories, dropin_suffix, dropin_directories
        )


@dataclass(frozen=True)
class SearchDirectoriesForProjectAndFileName:
    """Search directories scoped to a project and file name."""

    directories: tuple[Path, ...]
    project: NameLike
    file_name: NameLike

    def find_files(self, dropin_suffix: NameLike | None = None) -> Files:
        """
        Find the main file <dir>/<project>/<file_name> and its drop-ins.

        Drop-ins are looked up in <dir>/<project>/<file_name>.d only when
        dropin_suffix is given.

        Raises:
            OSError: On any I/O error other than a missing file or directory
        """
        project_directories = [
            directory / to_str(self.project) for directory in self.directories
        ]
        dropin_directories = [
            dropin_directory(directory, self.project, self.file_name)
            for directory in self.directories
        ]
        return collect_files(
            self.file_name, project_directories, dropin_suffix, dropin_directories
        )
