"""Incremental synchronization engine.

For each item type, in order, the engine runs one walk:

    DETERMINE_CURSOR -> PAGE_AND_STORE -> ADVANCE_CURSOR

The cursor of a type is advanced and saved only after its whole walk
succeeded. An interrupted walk (rate limit escalation, transport or
parse failure, process termination) leaves the previous cursor in
place, so the next run re-fetches everything modified since the last
successful walk and no item is ever skipped.

Concurrent runs against one destination are not supported: the engine
takes no lock on the destination or the state document.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import aclosing
from datetime import UTC, datetime

from github_backup.exceptions import BackupError, SyncErrorKind
from github_backup.github.pager import Pager, format_cursor
from github_backup.logging import bind_item_type, bind_repo
from github_backup.schemas import ITEM_KINDS, ItemKind
from github_backup.store import RecordStore, SyncState, SyncStateStore

from .results import ItemTypeResult, SyncRunResult


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncEngine:
    """Mirrors issues and pull requests of one repository into a directory.

    Usage:
        async with RateLimitedTransport(token) as transport:
            engine = SyncEngine(
                pager=Pager(transport, "octocat", "hello"),
                records=RecordStore(destination),
                state_store=SyncStateStore(destination),
                owner="octocat",
                repo="hello",
            )
            result = await engine.run()
    """

    def __init__(
        self,
        pager: Pager,
        records: RecordStore,
        state_store: SyncStateStore,
        *,
        owner: str,
        repo: str,
        kinds: Sequence[ItemKind] = ITEM_KINDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._pager = pager
        self._records = records
        self._state_store = state_store
        self._owner = owner
        self._repo = repo
        self._kinds = tuple(kinds)
        self._clock = clock
        self._state = SyncState()
        self._log = bind_repo(owner, repo)

    @property
    def state(self) -> SyncState:
        """State as of the last successful checkpoint of this run."""
        return self._state

    async def run(self) -> SyncRunResult:
        """Run one backup over every item type.

        Returns:
            SyncRunResult; never raises for the failure kinds of
            SyncErrorKind, which are reported in the result instead.
        """
        result = SyncRunResult(owner=self._owner, repo=self._repo)
        self._log.info(
            "Starting backup of {}/{} to {}",
            self._owner,
            self._repo,
            self._records.root,
        )

        try:
            self._records.ensure_directories([kind.item_type for kind in self._kinds])
            self._state = self._state_store.load() or SyncState()
        except BackupError as e:
            self._log.error("Backup aborted before fetching: {}", e)
            result.error = e
            return result

        for kind in self._kinds:
            item_result = await self.sync_item_type(kind)
            result.items.append(item_result)
            if item_result.error is None:
                continue

            match item_result.error.kind:
                case SyncErrorKind.RATE_LIMITED:
                    reset_at = getattr(item_result.error, "reset_at", None)
                    if reset_at is not None and reset_at > self._clock():
                        self._log.warning(
                            "GitHub rate limit exhausted until {}; skipping the remaining item types",
                            format_cursor(reset_at),
                        )
                        break
                    self._log.warning(
                        "Giving up on {} for this run; continuing with the next item type",
                        kind.item_type.value,
                    )
                case (
                    SyncErrorKind.TRANSPORT
                    | SyncErrorKind.PARSE
                    | SyncErrorKind.IO
                    | SyncErrorKind.STATE_CORRUPT
                ):
                    self._log.error("Stopping backup after {} failed", kind.item_type.value)
                    break

        if result.success and result.written == 0:
            self._log.info("No updated issues or pull requests to save")
        return result

    async def sync_item_type(self, kind: ItemKind) -> ItemTypeResult:
        """Walk one item type and checkpoint its cursor on success."""
        item_type = kind.item_type
        log = bind_item_type(self._owner, self._repo, item_type.value)

        cursor = self._state.cursor_for(item_type)
        result = ItemTypeResult(item_type=item_type, previous_cursor=cursor)
        if cursor is None:
            log.info("Full backup of {}", item_type.value)
        else:
            log.info("Incremental backup of {} modified since {}", item_type.value, format_cursor(cursor))

        newest: datetime | None = None
        try:
            async with aclosing(self._pager.iter_pages(kind, cursor)) as pages:
                async for page in pages:
                    result.pages += 1
                    for item in page.items:
                        result.record(self._records.upsert(item_type, item))
                        if newest is None or item.updated_at > newest:
                            newest = item.updated_at
                    log.debug(
                        "Stored page {} of {} ({} items so far)",
                        page.number,
                        item_type.value,
                        result.fetched,
                    )

            advanced = self._state.advance(item_type, newest, completed_at=self._clock())
            self._state_store.save(advanced)
        except BackupError as e:
            result.error = e.with_context(
                item_type=item_type.value,
                endpoint=kind.path_for(self._owner, self._repo),
            )
            log.error(
                "Backup of {} failed after {} pages ({} items stored): {}",
                item_type.value,
                result.pages,
                result.fetched,
                result.error,
            )
            return result

        self._state = advanced
        result.new_cursor = advanced.cursor_for(item_type)
        result.completed = True
        log.info(
            "Backed up {} {} ({} new, {} updated, {} unchanged); cursor now {}",
            result.fetched,
            item_type.value,
            result.created,
            result.updated,
            result.unchanged,
            format_cursor(result.new_cursor) if result.new_cursor else "unset",
        )
        return result
