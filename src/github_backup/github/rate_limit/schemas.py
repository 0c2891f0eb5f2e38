"""Rate budget model.

GitHub reports the caller's remaining request budget on every REST
response through the ``x-ratelimit-*`` headers. ``RateBudget`` is the
parsed, per-pool snapshot of those headers.
See: https://docs.github.com/en/rest/using-the-rest-api/rate-limits-for-the-rest-api
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, Field, computed_field

_DEFAULT_LIMIT = 5000


class RateLimitPool(StrEnum):
    """Resource pools with independent quotas (``x-ratelimit-resource``).

    Listing issues and pull requests draws from ``core``.
    """

    CORE = "core"
    SEARCH = "search"
    GRAPHQL = "graphql"


class RateLimitStatus(StrEnum):
    """Health of a budget, ordered from best to worst.

    The boundaries between healthy, warning and critical are percentages
    of the limit taken from RateLimitConfig; exhausted means nothing left.
    """

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    EXHAUSTED = "exhausted"


class RateBudget(BaseModel):
    """Requests left in the current window of one pool, and when it resets.

    Never persisted: every response replaces the previous snapshot.
    """

    pool: RateLimitPool = Field(description="Pool the budget belongs to")
    limit: int = Field(ge=0, description="Requests allowed per window")
    remaining: int = Field(ge=0, description="Requests left in this window")
    used: int = Field(ge=0, description="Requests spent in this window")
    reset_at: datetime = Field(description="UTC instant the window resets")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_percent(self) -> float:
        """Share of the limit still available, 0.0 to 100.0."""
        return 100.0 * self.remaining / self.limit if self.limit else 0.0

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0

    def seconds_until_reset(self, now: datetime | None = None) -> float:
        """Seconds left in the window, never negative."""
        return max(0.0, (self.reset_at - (now or datetime.now(UTC))).total_seconds())

    def get_status(
        self,
        healthy_threshold: float = 50.0,
        warning_threshold: float = 20.0,
        critical_threshold: float = 5.0,
    ) -> RateLimitStatus:
        """Classify the budget against percentage thresholds.

        A budget at or above ``healthy_threshold`` percent is HEALTHY, at or
        above ``warning_threshold`` WARNING, any other non-zero budget
        CRITICAL. ``critical_threshold`` only matters to callers that
        want to act before the budget runs out completely.
        """
        if self.is_exhausted:
            return RateLimitStatus.EXHAUSTED
        percent = self.remaining_percent
        if percent >= healthy_threshold:
            return RateLimitStatus.HEALTHY
        if percent >= warning_threshold:
            return RateLimitStatus.WARNING
        return RateLimitStatus.CRITICAL

    @classmethod
    def from_response_headers(
        cls,
        headers: dict[str, str],
        default_pool: RateLimitPool = RateLimitPool.CORE,
    ) -> Self | None:
        """Build a budget from lower-cased response headers.

        Missing ``limit``/``used``/``reset``/``resource`` headers get
        defaults; a response without ``x-ratelimit-remaining`` (or with
        non-numeric values) carries no usable budget and yields None.
        """
        if "x-ratelimit-remaining" not in headers:
            return None

        try:
            remaining = int(headers["x-ratelimit-remaining"])
            limit = int(headers.get("x-ratelimit-limit", _DEFAULT_LIMIT))
            used = int(headers.get("x-ratelimit-used", max(0, limit - remaining)))
            reset_epoch = int(headers.get("x-ratelimit-reset", 0))
        except ValueError:
            return None

        try:
            pool = RateLimitPool(headers.get("x-ratelimit-resource", default_pool))
        except ValueError:
            pool = default_pool

        return cls(
            pool=pool,
            limit=limit,
            remaining=remaining,
            used=used,
            reset_at=datetime.fromtimestamp(reset_epoch, tz=UTC) if reset_epoch > 0 else datetime.now(UTC),
        )
