"""Per-item JSON record files.

Layout: ``<destination>/<item-type>/<number>.json``, one file per issue
or pull request, holding the item's API representation.
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any

from github_backup.exceptions import DestinationIOError, DirectoryCreationError
from github_backup.logging import get_logger
from github_backup.schemas import Item, ItemType

from .atomic import dump_json, read_bytes, write_atomic

logger = get_logger(__name__)

# Records written by earlier releases wrap the API body with its sub-collections
_LEGACY_BODY_KEYS = ("issue", "pull")


def is_legacy_record(data: dict[str, Any]) -> bool:
    """Whether ``data`` is an enveloped ``{"type", "issue"|"pull", "events", ...}`` record."""
    return "type" in data and "number" not in data and any(key in data for key in _LEGACY_BODY_KEYS)


class UpsertOutcome(StrEnum):
    """What an upsert did to the record file."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class RecordStore:
    """Reads and writes one JSON file per item under a destination root.

    The store performs no locking: one backup run at a time may own a
    destination. Callers that might start concurrent runs must guard the
    destination themselves.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Destination root directory."""
        return self._root

    def directory(self, item_type: ItemType) -> Path:
        """Subdirectory holding records of ``item_type``."""
        return self._root / item_type.value

    def path_for(self, item_type: ItemType, number: int) -> Path:
        """Deterministic record path for an item."""
        return self.directory(item_type) / f"{number}.json"

    def ensure_directories(self, item_types: list[ItemType] | tuple[ItemType, ...]) -> None:
        """Create the per-type subdirectories if absent.

        Raises:
            DestinationIOError: If a directory cannot be created
        """
        for item_type in item_types:
            directory = self.directory(item_type)
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(
                    f"Could not create directory {directory}",
                    item_type=item_type.value,
                    cause=e,
                ) from e

    def exists(self, item_type: ItemType, number: int) -> bool:
        """Whether a record file exists for the item."""
        return self.path_for(item_type, number).is_file()

    def read(self, item_type: ItemType, number: int) -> dict[str, Any] | None:
        """Load a stored record (None if absent).

        Raises:
            DestinationIOError: If the file exists but cannot be read or parsed
        """
        return self._load(item_type, self.path_for(item_type, number))[1]

    def _load(self, item_type: ItemType, path: Path) -> tuple[bytes | None, dict[str, Any] | None]:
        try:
            content = read_bytes(path)
            if content is None:
                return None, None
            data = json.loads(content)
        except (OSError, ValueError) as e:
            raise DestinationIOError(
                f"Could not read record {path}",
                item_type=item_type.value,
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise DestinationIOError(
                f"Record {path} does not hold a JSON object",
                item_type=item_type.value,
            )
        return content, data

    def upsert(self, item_type: ItemType, item: Item) -> UpsertOutcome:
        """Merge ``item`` into its record file.

        Top-level keys of the fetched item replace those on disk; keys only
        present on disk are kept. A record in the enveloped layout of earlier
        releases is replaced by the fetched item rather than merged. The merged document is written only when
        its canonical bytes differ from the file, so re-writing an
        unchanged item leaves the file untouched.

        Raises:
            DestinationIOError: If the record cannot be read or written
        """
        path = self.path_for(item_type, item.number)
        current, existing = self._load(item_type, path)
        if existing is not None and is_legacy_record(existing):
            logger.info("Replacing legacy record {}", path)
            merged = dict(item.body)
        elif existing is not None:
            merged = {**existing, **item.body}
        else:
            merged = dict(item.body)
        content = dump_json(merged)
        if current == content:
            return UpsertOutcome.UNCHANGED

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_atomic(path, content)
        except OSError as e:
            raise DestinationIOError(
                f"Could not write record {path}",
                item_type=item_type.value,
                cause=e,
            ) from e

        logger.debug("Written {}", path)
        return UpsertOutcome.CREATED if existing is None else UpsertOutcome.UPDATED
