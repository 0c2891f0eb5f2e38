"""Result objects for backup runs.

Structured results provide consistent interfaces for logging,
error reporting, and CLI output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from github_backup.exceptions import BackupError, SyncErrorKind
from github_backup.schemas import ItemType
from github_backup.store import UpsertOutcome


@dataclass
class ItemTypeResult:
    """Outcome of walking one item type.

    ``completed`` is True only when the walk finished and the advanced
    cursor was saved; otherwise ``error`` says why it stopped and the
    stored cursor is still ``previous_cursor``.
    """

    item_type: ItemType
    previous_cursor: datetime | None = None
    new_cursor: datetime | None = None
    pages: int = 0
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    completed: bool = False
    error: BackupError | None = None

    @property
    def success(self) -> bool:
        """Check if the walk completed without errors."""
        return self.completed and self.error is None

    @property
    def full_backup(self) -> bool:
        """Whether the walk started without a cursor."""
        return self.previous_cursor is None

    @property
    def written(self) -> int:
        """Record files created or rewritten."""
        return self.created + self.updated

    def record(self, outcome: UpsertOutcome) -> None:
        """Count one upsert."""
        self.fetched += 1
        if outcome is UpsertOutcome.CREATED:
            self.created += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "item_type": self.item_type.value,
            "success": self.success,
            "mode": "full" if self.full_backup else "incremental",
            "previous_cursor": self.previous_cursor.isoformat() if self.previous_cursor else None,
            "cursor": self.new_cursor.isoformat() if self.new_cursor else None,
            "pages": self.pages,
            "fetched": self.fetched,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
        }
        if self.error:
            result["error"] = str(self.error)
            result["error_kind"] = self.error.kind.value
        return result


@dataclass
class SyncRunResult:
    """Outcome of one backup run over every item type."""

    owner: str
    repo: str
    items: list[ItemTypeResult] = field(default_factory=list)
    error: BackupError | None = None
    """Failure before any item type was attempted (state, directories)."""

    @property
    def first_error(self) -> BackupError | None:
        """The error that decides the run's exit status, if any."""
        if self.error is not None:
            return self.error
        for item in self.items:
            if item.error is not None:
                return item.error
        return None

    @property
    def error_kind(self) -> SyncErrorKind | None:
        """Kind of ``first_error`` (None on success)."""
        error = self.first_error
        return error.kind if error is not None else None

    @property
    def success(self) -> bool:
        """Whether every item type completed."""
        return self.first_error is None

    @property
    def written(self) -> int:
        """Record files created or rewritten across all item types."""
        return sum(item.written for item in self.items)

    def get(self, item_type: ItemType) -> ItemTypeResult | None:
        """Result for one item type (None if it was not attempted)."""
        for item in self.items:
            if item.item_type is item_type:
                return item
        return None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "repository": f"{self.owner}/{self.repo}",
            "success": self.success,
            "written": self.written,
            "item_types": [item.to_dict() for item in self.items],
        }
        error = self.first_error
        if error is not None:
            result["error"] = str(error)
            result["error_kind"] = error.kind.value
        return result
