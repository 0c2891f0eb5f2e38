"""Persisted sync cursors.

A single JSON document at ``<destination>/state.json`` records, per item
type, the latest last-modified timestamp seen by the most recent walk of
that type that completed without error. Which items exist on disk is not
tracked here; the record files themselves are the source of truth.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError

from github_backup.config import get_settings
from github_backup.exceptions import DestinationIOError, StateCorruptError
from github_backup.logging import get_logger
from github_backup.schemas import ItemType

from .atomic import dump_json, read_bytes, write_atomic

logger = get_logger(__name__)

STATE_VERSION = 3
"""Current document version. Versions 1 and 2 are migrated on load."""

_LEGACY_VERSIONS = (1, 2)
_LEGACY_FAILED_KEYS = {ItemType.ISSUES: "failed_issues", ItemType.PULLS: "failed_pulls"}


class SyncState(BaseModel):
    """Per-type cursors plus a version marker.

    Unknown fields (from newer releases) are kept and written back.
    """

    model_config = ConfigDict(extra="allow")

    version: int = Field(default=STATE_VERSION, description="Document format version")
    cursors: dict[str, AwareDatetime] = Field(
        default_factory=dict,
        description="Item type -> fetch items with updated_at >= this instant",
    )
    completed_at: dict[str, AwareDatetime] = Field(
        default_factory=dict,
        description="Item type -> wall-clock time of the walk that last moved its cursor",
    )

    def cursor_for(self, item_type: ItemType) -> datetime | None:
        """Stored cursor for ``item_type`` (None means full backup)."""
        return self.cursors.get(item_type.value)

    def advance(
        self,
        item_type: ItemType,
        cursor: datetime | None,
        completed_at: datetime | None = None,
    ) -> SyncState:
        """Return a copy with ``item_type``'s cursor moved forward.

        The cursor never moves backwards; ``None`` (no items seen) keeps
        the previous value. ``completed_at`` is only recorded when the
        cursor moves or the type has never completed, so a run without
        upstream changes leaves the document byte-identical.
        """
        cursors = dict(self.cursors)
        done = dict(self.completed_at)
        previous = cursors.get(item_type.value)
        moved = cursor is not None and (previous is None or cursor > previous)
        if moved:
            cursors[item_type.value] = cursor
        if moved or item_type.value not in done:
            done[item_type.value] = completed_at or datetime.now(UTC)
        return self.model_copy(update={"cursors": cursors, "completed_at": done, "version": STATE_VERSION})


def _migrate_legacy(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a version 1/2 document (single ``last_backup``) to the current layout.

    ``last_backup`` seeds every type's cursor, except types that had
    failed items: those get no cursor so the next walk re-fetches them.
    """
    migrated = {
        key: value
        for key, value in data.items()
        if key not in ("last_backup", "version", *_LEGACY_FAILED_KEYS.values())
    }
    migrated["version"] = STATE_VERSION
    cursors: dict[str, Any] = {}
    last_backup = data.get("last_backup")
    for item_type, failed_key in _LEGACY_FAILED_KEYS.items():
        if data.get(failed_key):
            logger.warning(
                "Legacy state lists failed {}; doing a full walk of {}",
                failed_key.removeprefix("failed_"),
                item_type.value,
            )
            continue
        if last_backup is not None:
            cursors[item_type.value] = last_backup
    migrated["cursors"] = cursors
    return migrated


class SyncStateStore:
    """Loads and saves the sync state document under a destination root."""

    def __init__(self, root: Path, file_name: str | None = None) -> None:
        self._path = Path(root) / (file_name or get_settings().backup.state_file_name)

    @property
    def path(self) -> Path:
        """Location of the state document."""
        return self._path

    def load(self) -> SyncState | None:
        """Read the state document.

        Returns:
            The state, or None if no document exists yet (first run)

        Raises:
            StateCorruptError: If the document exists but cannot be used
            DestinationIOError: If the document cannot be read
        """
        try:
            content = read_bytes(self._path)
        except OSError as e:
            raise DestinationIOError(f"Could not read {self._path}", cause=e) from e
        if content is None:
            logger.info("No sync state at {}, doing a full backup", self._path)
            return None

        try:
            data = json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise self._corrupt("is not valid JSON", e) from e
        if not isinstance(data, dict):
            raise self._corrupt("does not hold a JSON object")

        version = data.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise self._corrupt("has no integer 'version' field")
        if version > STATE_VERSION:
            raise self._corrupt(
                f"has version {version}, newer than supported version {STATE_VERSION}"
            )
        if version in _LEGACY_VERSIONS:
            logger.info("Migrating sync state from version {} to {}", version, STATE_VERSION)
            data = _migrate_legacy(data)
        elif version != STATE_VERSION:
            raise self._corrupt(f"has unknown version {version}")

        try:
            state = SyncState.model_validate(data)
        except ValidationError as e:
            raise self._corrupt("has invalid fields", e) from e

        logger.info(
            "Loaded sync state: {}",
            ", ".join(f"{k}>={v.isoformat()}" for k, v in sorted(state.cursors.items())) or "no cursors",
        )
        return state

    def save(self, state: SyncState) -> None:
        """Write the state document atomically.

        Raises:
            DestinationIOError: If the document cannot be written
        """
        content = dump_json(state.model_dump(mode="json"))
        try:
            write_atomic(self._path, content)
        except OSError as e:
            raise DestinationIOError(f"Could not write {self._path}", cause=e) from e
        logger.info("Written sync state to {}", self._path)

    def _corrupt(self, problem: str, cause: BaseException | None = None) -> StateCorruptError:
        return StateCorruptError(
            f"Sync state {self._path} {problem}; delete it to force a full backup",
            cause=cause,
        )
