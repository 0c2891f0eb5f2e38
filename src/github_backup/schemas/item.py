"""Pydantic schemas for backed-up GitHub items.

An item is one issue or one pull request. Only the identifier and the
last-modified timestamp are interpreted; the rest of the API body is kept
verbatim so the on-disk record is the full API representation.
See: https://docs.github.com/en/rest/issues/issues#list-repository-issues
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class ItemType(StrEnum):
    """Item types mirrored by a backup run (also the storage subdirectory)."""

    ISSUES = "issues"
    PULLS = "pulls"


@dataclass(frozen=True)
class ItemKind:
    """Capabilities the generic walk/store/checkpoint algorithm needs per type."""

    item_type: ItemType
    """Type tag, used as the cursor key in the sync state."""

    endpoint: str
    """REST path template, formatted with ``owner`` and ``repo``."""

    supports_since: bool
    """Whether the endpoint filters server-side by the ``since`` parameter."""

    skip_pull_requests: bool = False
    """Drop entries carrying a ``pull_request`` key (issues listing includes PRs)."""

    newest_first: bool = False
    """Listing is ordered by ``updated_at`` descending; a walk with a cursor
    stops after the first page reaching items older than the cursor."""

    params: dict[str, str] = field(default_factory=dict, hash=False)
    """Extra query parameters sent with the first page request."""

    @property
    def subdirectory(self) -> str:
        """Directory under the destination root holding this type's records."""
        return self.item_type.value

    def path_for(self, owner: str, repo: str) -> str:
        """Render the endpoint path for a repository."""
        return self.endpoint.format(owner=owner, repo=repo)


ISSUES = ItemKind(
    item_type=ItemType.ISSUES,
    endpoint="/repos/{owner}/{repo}/issues",
    supports_since=True,
    skip_pull_requests=True,
    params={"state": "all", "sort": "updated", "direction": "asc"},
)

# The pulls listing has no `since` filter; newest first lets an incremental
# walk stop at the cursor instead of paging through every pull request.
PULLS = ItemKind(
    item_type=ItemType.PULLS,
    endpoint="/repos/{owner}/{repo}/pulls",
    supports_since=False,
    newest_first=True,
    params={"state": "all", "sort": "updated", "direction": "desc"},
)

ITEM_KINDS: tuple[ItemKind, ...] = (ISSUES, PULLS)
"""Item kinds in the order a run processes them."""


class ItemHeader(BaseModel):
    """The fields of an API item the sync engine relies on."""

    model_config = ConfigDict(extra="ignore")

    number: int = Field(ge=1, description="Issue/PR number, stable within the repository")
    updated_at: AwareDatetime = Field(description="Last-modified timestamp (UTC)")


class Item(BaseModel):
    """One issue or pull request as returned by the API."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(description="Issue/PR number")
    updated_at: datetime = Field(description="Last-modified timestamp (UTC)")
    body: dict[str, Any] = Field(description="Full API representation")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Item:
        """Build an item from a raw API object.

        Raises:
            pydantic.ValidationError: If ``number`` or ``updated_at`` is
                missing or malformed.
        """
        header = ItemHeader.model_validate(data)
        return cls(
            number=header.number,
            updated_at=header.updated_at.astimezone(UTC),
            body=data,
        )

    @property
    def is_pull_request(self) -> bool:
        """Whether this entry describes a pull request."""
        return "pull_request" in self.body
