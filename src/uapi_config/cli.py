"""Main CLI entry point for uapi-config."""

from contextlib import ExitStack
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from uapi_config.discovery import FileEntry, Files
from uapi_config.search import InvalidPathError, Preset, SearchDirectories

app = typer.Typer(
    name="uapi-config",
    help="Locate configuration files following the UAPI configuration files spec",
    no_args_is_help=True,
)

console = Console()

PresetOption = Annotated[
    Preset,
    typer.Option(
        "--preset",
        "-P",
        help="Base list of search directories",
        case_sensitive=False,
    ),
]
UserOption = Annotated[
    bool,
    typer.Option(
        "--user/--no-user",
        help="Append ${XDG_CONFIG_HOME:-$HOME/.config} as the highest priority"
        " preset directory",
    ),
]
RootOption = Annotated[
    list[Path] | None,
    typer.Option(
        "--root",
        "-r",
        help="Additional absolute search directory, appended after the preset."
        " Can be specified multiple times.",
    ),
]
ChrootOption = Annotated[
    Path | None,
    typer.Option("--chroot", help="Rebase every search directory under this path"),
]
ProjectOption = Annotated[
    str | None,
    typer.Option("--project", "-p", help="Project name (e.g., foo)"),
]
FileNameOption = Annotated[
    str | None,
    typer.Option("--file-name", "-f", help="Main config file name (e.g., foo.conf)"),
]
SuffixOption = Annotated[
    str | None,
    typer.Option(
        "--suffix",
        "-s",
        help="Drop-in file suffix (e.g., .conf). Without it, only the main"
        " file is searched.",
    ),
]


def build_search_directories(
    preset: Preset,
    user: bool,
    roots: list[Path] | None,
    chroot: Path | None,
) -> SearchDirectories:
    """
    Build the search directory list from command line options.

    Raises:
        typer.Exit: If a root or the chroot is not a valid search directory
    """
    directories = SearchDirectories.from_preset(preset)
    if user:
        directories.with_user_directory()

    try:
        for root in roots or []:
            directories.push(root)
        if chroot is not None:
            directories = directories.chroot(chroot)
    except InvalidPathError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    return directories


def search_files(
    directories: SearchDirectories,
    project: str | None,
    file_name: str | None,
    suffix: str | None,
) -> Files:
    """
    Run the lookup selected by the project, file name and suffix options.

    Raises:
        typer.Exit: On invalid option combinations or I/O errors
    """
    if project is None and file_name is None:
        typer.echo("Error: Must specify --project and/or --file-name", err=True)
        raise typer.Exit(code=1)

    if file_name is None and suffix is None:
        typer.echo(
            "Error: --suffix is required when only --project is given", err=True
        )
        raise typer.Exit(code=1)

    try:
        if file_name is None:
            return directories.with_project(project).find_files(suffix)
        if project is None:
            return directories.with_file_name(file_name).find_files(suffix)
        return (
            directories.with_project(project)
            .with_file_name(file_name)
            .find_files(suffix)
        )
    except OSError as e:
        typer.echo(f"Error searching config files: {e}", err=True)
        raise typer.Exit(code=1) from e


def take_all(files: Files, reverse: bool) -> list[FileEntry]:
    with files:
        return list(reversed(files)) if reverse else list(files)


@app.command()
def dirs(
    preset: PresetOption = Preset.MODERN,
    user: UserOption = False,
    roots: RootOption = None,
    chroot: ChrootOption = None,
):
    """Show the search directories, lowest priority first."""
    directories = build_search_directories(preset, user, roots, chroot)
    for directory in directories:
        typer.echo(str(directory))


@app.command()
def find(
    project: ProjectOption = None,
    file_name: FileNameOption = None,
    suffix: SuffixOption = None,
    preset: PresetOption = Preset.MODERN,
    user: UserOption = False,
    roots: RootOption = None,
    chroot: ChrootOption = None,
    reverse: Annotated[
        bool, typer.Option("--reverse", help="List highest precedence first")
    ] = False,
    plain: Annotated[
        bool, typer.Option("--plain", help="Print one path per line, no table")
    ] = False,
):
    """List configuration files in the order they should be applied."""
    directories = build_search_directories(preset, user, roots, chroot)
    entries = take_all(search_files(directories, project, file_name, suffix), reverse)

    for _, file in entries:
        file.close()

    if plain:
        for path, _ in entries:
            typer.echo(str(path))
        return

    if not entries:
        console.print("[yellow]No configuration files found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Path", style="green")
    for i, (path, _) in enumerate(entries, 1):
        table.add_row(str(i), str(path))
    console.print(table)


@app.command()
def cat(
    project: ProjectOption = None,
    file_name: FileNameOption = None,
    suffix: SuffixOption = None,
    preset: PresetOption = Preset.MODERN,
    user: UserOption = False,
    roots: RootOption = None,
    chroot: ChrootOption = None,
):
    """Print the content of every configuration file in application order."""
    directories = build_search_directories(preset, user, roots, chroot)
    entries = take_all(search_files(directories, project, file_name, suffix), False)

    with ExitStack() as stack:
        for _, file in entries:
            stack.enter_context(file)

        for i, (path, file) in enumerate(entries):
            try:
                content = file.read()
            except OSError as e:
                typer.echo(f"Error reading {path}: {e}", err=True)
                raise typer.Exit(code=1) from e
            file.close()

            if i > 0:
                typer.echo("")
            typer.echo(f"# {path}")
            # Raw bytes, written verbatim
            typer.echo(content, nl=not content.endswith(b"\n"))


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
