"""Shared pieces of the ghbackup commands: console, exit codes, options."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from enum import Enum, IntEnum
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from rich.console import Console

from github_backup.exceptions import SyncErrorKind

console = Console()

T = TypeVar("T")


class ExitCode(IntEnum):
    """Process exit codes of the ghbackup command."""

    SUCCESS = 0
    CREATING_DIRS = 1
    STATE_CORRUPT = 2
    API_ERROR = 3
    NO_TOKEN = 4
    INTERNAL_ERROR = 5
    WRITE_ERROR = 6


EXIT_CODES: dict[SyncErrorKind, ExitCode] = {
    SyncErrorKind.TRANSPORT: ExitCode.API_ERROR,
    SyncErrorKind.RATE_LIMITED: ExitCode.API_ERROR,
    SyncErrorKind.PARSE: ExitCode.API_ERROR,
    SyncErrorKind.IO: ExitCode.WRITE_ERROR,
    SyncErrorKind.STATE_CORRUPT: ExitCode.STATE_CORRUPT,
}
"""Exit code for every error kind; must cover all SyncErrorKind members."""


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Run ``coro`` to completion from a synchronous command.

    Backup failures are reported through the run result, so anything
    raised here is unexpected: it is printed after ``error_prefix`` and
    the command exits with INTERNAL_ERROR.
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(ExitCode.INTERNAL_ERROR) from None


OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="text (tables) or json",
    ),
]
"""Output format option type for CLI commands.

Usage:
    def command(output_format: OutputFormatOption = OutputFormat.TEXT):
"""

DestinationOption = Annotated[
    Path,
    typer.Option(
        "--destination",
        "-d",
        help="Directory the backup is written to",
        resolve_path=True,
    ),
]
"""Required backup destination directory option."""
