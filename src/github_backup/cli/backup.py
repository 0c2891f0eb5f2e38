"""Backup and status commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from github_backup.config import get_settings
from github_backup.exceptions import BackupError, DirectoryCreationError
from github_backup.github import (
    Pager,
    RateBudget,
    RateLimitedTransport,
    RateLimitMonitor,
    RateLimitStatus,
)
from github_backup.logging import get_logger
from github_backup.schemas import ITEM_KINDS, RepositoryRef
from github_backup.store import RecordStore, SyncStateStore
from github_backup.sync import SyncEngine, SyncRunResult

from .common import (
    EXIT_CODES,
    DestinationOption,
    ExitCode,
    OutputFormat,
    OutputFormatOption,
    console,
    run_async_command,
)

logger = get_logger(__name__)


def resolve_token(token: str | None, token_file: Path | None) -> str | None:
    """Pick the access token: literal, then file contents, then GITHUB_TOKEN.

    Raises:
        typer.Exit: With NO_TOKEN if the token file cannot be read
    """
    if token:
        logger.info("Using the GitHub token given on the command line")
        return token.strip()
    if token_file is not None:
        logger.info("Reading the GitHub token from '{}'", token_file)
        try:
            return token_file.read_text(encoding="utf-8").strip() or None
        except OSError as e:
            console.print(f"[red]Error:[/red] Could not read token file '{token_file}': {e}")
            raise typer.Exit(ExitCode.NO_TOKEN) from None
    return get_settings().github_token.strip() or None


def _warn_on_degradation(budget: RateBudget, status: RateLimitStatus) -> None:
    console.print(
        f"[yellow]Warning:[/yellow] GitHub rate limit {status.value} "
        f"({budget.remaining}/{budget.limit} left, resets at "
        f"{budget.reset_at.strftime('%H:%M:%S UTC')})"
    )


def _exit_code(result: SyncRunResult) -> ExitCode:
    error = result.first_error
    if error is None:
        return ExitCode.SUCCESS
    if isinstance(error, DirectoryCreationError):
        return ExitCode.CREATING_DIRS
    return EXIT_CODES[error.kind]


def _print_summary(result: SyncRunResult) -> None:
    table = Table(title=f"Backup of {result.owner}/{result.repo}")
    table.add_column("Type", style="cyan")
    table.add_column("Mode")
    table.add_column("Pages", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Unchanged", justify="right")
    table.add_column("Cursor")

    for item in result.items:
        cursor = item.new_cursor or item.previous_cursor
        table.add_row(
            item.item_type.value,
            "full" if item.full_backup else "incremental",
            str(item.pages),
            str(item.created),
            str(item.updated),
            str(item.unchanged),
            cursor.isoformat() if cursor else "-",
            style=None if item.success else "red",
        )
    if result.items:
        console.print(table)

    error = result.first_error
    if error is not None:
        console.print(f"[red]Error ({error.kind.value}):[/red] {error}")
    elif result.written == 0:
        console.print("No updated issues or pull requests to save.")
    else:
        console.print(f"[green]Backup complete:[/green] {result.written} record(s) written")


def backup(
    repo: Annotated[
        str,
        typer.Option("--repo", "-r", help="Repository name, or owner/name when --owner is omitted"),
    ],
    destination: DestinationOption,
    token: Annotated[
        str | None,
        typer.Option("--token", "-t", help="GitHub personal access token"),
    ] = None,
    token_file: Annotated[
        Path | None,
        typer.Option(
            "--token-file",
            help="File containing the GitHub personal access token",
            dir_okay=False,
        ),
    ] = None,
    owner: Annotated[
        str | None,
        typer.Option("--owner", "-o", help="Owner of the repository"),
    ] = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Back up issues and pull requests of a repository.

    The first run fetches everything; later runs only fetch items
    modified since the last completed run.

    Examples:
        ghbackup backup -o octocat -r Hello-World -d ./backup --token-file ~/.gh-token
        ghbackup -v backup -r octocat/Hello-World -d ./backup  # GITHUB_TOKEN, debug logging
    """
    if token and token_file:
        console.print("[red]Error:[/red] Use either --token or --token-file, not both")
        raise typer.Exit(ExitCode.NO_TOKEN)

    try:
        if owner is None:
            repository = RepositoryRef.from_full_name(repo)
        else:
            repository = RepositoryRef(owner=owner, name=repo)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--repo") from None

    resolved = resolve_token(token, token_file)
    if not resolved:
        console.print("[red]Error:[/red] No GitHub token (use --token, --token-file or GITHUB_TOKEN)")
        raise typer.Exit(ExitCode.NO_TOKEN)

    async def _backup() -> SyncRunResult:
        monitor = RateLimitMonitor()
        monitor.on_threshold_crossed(_warn_on_degradation)
        async with RateLimitedTransport(resolved, monitor=monitor) as transport:
            engine = SyncEngine(
                pager=Pager(transport, repository.owner, repository.name),
                records=RecordStore(destination),
                state_store=SyncStateStore(destination),
                owner=repository.owner,
                repo=repository.name,
            )
            return await engine.run()

    result = run_async_command(_backup(), error_prefix="Backup failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _print_summary(result)

    code = _exit_code(result)
    if code is not ExitCode.SUCCESS:
        raise typer.Exit(code)


def status(
    destination: DestinationOption,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show the stored sync cursors of a backup without contacting GitHub.

    Examples:
        ghbackup status -d ./backup
        ghbackup status -d ./backup --format json
    """
    store = SyncStateStore(destination)
    try:
        state = store.load()
    except BackupError as e:
        console.print(f"[red]Error ({e.kind.value}):[/red] {e}")
        raise typer.Exit(EXIT_CODES[e.kind]) from None

    records = RecordStore(destination)
    rows = []
    for kind in ITEM_KINDS:
        directory = records.directory(kind.item_type)
        count = len(list(directory.glob("*.json"))) if directory.is_dir() else 0
        cursor = state.cursor_for(kind.item_type) if state else None
        completed = state.completed_at.get(kind.item_type.value) if state else None
        rows.append(
            {
                "item_type": kind.item_type.value,
                "records": count,
                "cursor": cursor.isoformat() if cursor else None,
                "completed_at": completed.isoformat() if completed else None,
            }
        )

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps({"state_file": str(store.path), "item_types": rows}))
        return

    if state is None:
        console.print(f"No sync state at {store.path}; the next backup will be a full backup.")
    table = Table(title=f"Backup at {destination}")
    table.add_column("Type", style="cyan")
    table.add_column("Records", justify="right")
    table.add_column("Cursor")
    table.add_column("Last completed")
    for row in rows:
        table.add_row(
            str(row["item_type"]),
            str(row["records"]),
            str(row["cursor"] or "-"),
            str(row["completed_at"] or "-"),
        )
    console.print(table)
