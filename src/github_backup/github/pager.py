"""Lazy pagination over GitHub list endpoints.

A walk starts at page 1 of an item kind's endpoint and follows the
``rel="next"`` link of each response until there is none or a page is
empty. Pages are requested one at a time as the consumer iterates, so a
rate limit suspension in the transport pauses the whole pipeline.
"""

from __future__ import annotations

import json
import re
from collections.abc import AsyncGenerator
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from github_backup.config import get_settings
from github_backup.exceptions import ParseError
from github_backup.logging import get_logger
from github_backup.schemas import Item, ItemKind

from .transport import ApiResponse, RateLimitedTransport

logger = get_logger(__name__)

NEXT_LINK_PATTERN = re.compile(r'<([^<>]+)>;\s*rel="next"')


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the next-page URL from a Link header (None if absent)."""
    if not link_header:
        return None
    match = NEXT_LINK_PATTERN.search(link_header)
    return match.group(1) if match else None


def format_cursor(cursor: datetime) -> str:
    """Render a cursor as the ISO-8601 UTC string GitHub expects for ``since``."""
    return cursor.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Page:
    """One fetched page, after filtering."""

    number: int
    """1-based position in the walk."""

    items: list[Item] = field(default_factory=list)
    """Items kept after filtering (wrong type, older than the cursor)."""

    raw_count: int = 0
    """Entries the API returned on this page before filtering."""

    next_url: str | None = None
    """The rel="next" link, None on the last page."""


class Pager:
    """Turns "list items of kind K modified since C" into a lazy item stream.

    Each call starts a fresh walk from page 1; a walk cannot be resumed
    mid-sequence.
    """

    def __init__(
        self,
        transport: RateLimitedTransport,
        owner: str,
        repo: str,
        *,
        per_page: int | None = None,
    ) -> None:
        self._transport = transport
        self._owner = owner
        self._repo = repo
        self._per_page = per_page or get_settings().transport.per_page

    async def iter_pages(
        self,
        kind: ItemKind,
        since: datetime | None = None,
    ) -> AsyncGenerator[Page, None]:
        """Yield filtered pages of ``kind`` modified at or after ``since``.

        Args:
            kind: Item kind whose endpoint to walk
            since: Cursor; None walks every item (full backup)

        Yields:
            Page objects in pagination order

        Raises:
            ParseError: If a page body is malformed (the walk stops there)
            TransportError, RateLimitedError: Propagated from the transport
        """
        url: str | None = kind.path_for(self._owner, self._repo)
        params: dict[str, Any] | None = {**kind.params, "per_page": self._per_page}
        if since is not None and kind.supports_since:
            params["since"] = format_cursor(since)

        number = 0
        while url is not None:
            number += 1
            response = await self._transport.get(url, params)
            entries = self._decode(response, kind)
            parsed = self._parse_items(entries, response, kind)
            items = self._filter(parsed, kind, since)
            next_url = parse_next_link(response.headers.get("link"))

            logger.debug(
                "Fetched {} page {} ({} entries, {} kept)",
                kind.item_type.value,
                number,
                len(entries),
                len(items),
            )
            yield Page(number=number, items=items, raw_count=len(entries), next_url=next_url)

            if not entries:
                break
            if kind.newest_first and since is not None and any(i.updated_at < since for i in parsed):
                logger.debug("Reached the {} cursor on page {}", kind.item_type.value, number)
                break
            # The next link already carries every query parameter
            url, params = next_url, None

    async def page_through(
        self,
        kind: ItemKind,
        since: datetime | None = None,
    ) -> AsyncGenerator[Item, None]:
        """Yield items of ``kind`` modified at or after ``since``, lazily."""
        async with aclosing(self.iter_pages(kind, since)) as pages:
            async for page in pages:
                for item in page.items:
                    yield item

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------
    @staticmethod
    def _decode(response: ApiResponse, kind: ItemKind) -> list[Any]:
        try:
            data = json.loads(response.content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(
                "Response body is not valid JSON",
                item_type=kind.item_type.value,
                endpoint=response.url,
                cause=e,
            ) from e
        if not isinstance(data, list):
            raise ParseError(
                f"Expected a JSON array, got {type(data).__name__}",
                item_type=kind.item_type.value,
                endpoint=response.url,
            )
        return data

    @staticmethod
    def _parse_items(entries: list[Any], response: ApiResponse, kind: ItemKind) -> list[Item]:
        items: list[Item] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ParseError(
                    f"Entry {index} is {type(entry).__name__}, expected an object",
                    item_type=kind.item_type.value,
                    endpoint=response.url,
                )
            try:
                items.append(Item.from_api(entry))
            except ValidationError as e:
                raise ParseError(
                    f"Entry {index} is missing required fields",
                    item_type=kind.item_type.value,
                    endpoint=response.url,
                    cause=e,
                ) from e
        return items

    @staticmethod
    def _filter(items: list[Item], kind: ItemKind, since: datetime | None) -> list[Item]:
        kept = []
        for item in items:
            if kind.skip_pull_requests and item.is_pull_request:
                continue
            # Coarse server-side filtering can still return stale entries
            if since is not None and item.updated_at < since:
                continue
            kept.append(item)
        return kept
