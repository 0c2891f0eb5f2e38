"""Error taxonomy for backup runs.

Every failure a run can report belongs to exactly one ``SyncErrorKind``.
The set is closed: callers dispatch on ``error.kind`` exhaustively, so a
new kind is a deliberate change to this module and to every dispatch site.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import ClassVar


class SyncErrorKind(StrEnum):
    """Kinds of failure a backup run can surface."""

    TRANSPORT = "transport"
    """Network/HTTP failure that survived the bounded retries."""

    RATE_LIMITED = "rate_limited"
    """Rate limit still exhausted after waiting for the reset once."""

    PARSE = "parse"
    """Malformed API response body."""

    IO = "io"
    """Destination unwritable (permissions, disk full, ...)."""

    STATE_CORRUPT = "state_corrupt"
    """Sync state file present but unreadable."""


class BackupError(Exception):
    """Base exception for all backup errors.

    Carries enough context (item type, endpoint, underlying cause) to
    diagnose a failure without re-running at a higher verbosity.
    """

    kind: ClassVar[SyncErrorKind]

    def __init__(
        self,
        message: str,
        *,
        item_type: str | None = None,
        endpoint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.item_type = item_type
        self.endpoint = endpoint
        self.cause = cause

    def with_context(
        self,
        *,
        item_type: str | None = None,
        endpoint: str | None = None,
    ) -> BackupError:
        """Fill in context fields that are still unset and return self."""
        if self.item_type is None:
            self.item_type = item_type
        if self.endpoint is None:
            self.endpoint = endpoint
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.item_type:
            parts.append(f"item_type={self.item_type}")
        if self.endpoint:
            parts.append(f"endpoint={self.endpoint}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)


class TransportError(BackupError):
    """Raised when a request fails after bounded retries."""

    kind = SyncErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        item_type: str | None = None,
        endpoint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, item_type=item_type, endpoint=endpoint, cause=cause)
        self.status_code = status_code


class GitHubAuthenticationError(TransportError):
    """Raised when GitHub refuses the token or the repository (401/403/404)."""


class RateLimitedError(BackupError):
    """Raised when the budget is still exhausted after one wait for reset."""

    kind = SyncErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        reset_at: datetime | None = None,
        *,
        item_type: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, item_type=item_type, endpoint=endpoint)
        self.reset_at = reset_at


class ParseError(BackupError):
    """Raised when a page body cannot be parsed into items."""

    kind = SyncErrorKind.PARSE


class DestinationIOError(BackupError):
    """Raised when the destination cannot be written."""

    kind = SyncErrorKind.IO


class DirectoryCreationError(DestinationIOError):
    """Raised when the per-type directories of the destination cannot be created."""


class StateCorruptError(BackupError):
    """Raised when the sync state file exists but cannot be used."""

    kind = SyncErrorKind.STATE_CORRUPT
