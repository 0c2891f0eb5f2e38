"""Main CLI application for GitHub Issue Backup."""

from pathlib import Path
from typing import Annotated

import typer

from github_backup import __version__
from github_backup.cli import backup as backup_cmd
from github_backup.cli.common import console
from github_backup.config import get_settings
from github_backup.logging import setup_logging

app = typer.Typer(
    name="ghbackup",
    help="Incremental backup of GitHub issues and pull requests to JSON files.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Eager --version handler."""
    if value:
        console.print(f"ghbackup version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Print the version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log at DEBUG level, including HTTP requests.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log warnings and errors.",
        ),
    ] = False,
) -> None:
    """GitHub Issue Backup - mirror issues and pull requests as JSON files."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.command("backup")(backup_cmd.backup)
app.command("status")(backup_cmd.status)


if __name__ == "__main__":
    app()
