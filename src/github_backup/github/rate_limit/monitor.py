"""Rate limit monitoring for GitHub API.

The monitor owns the Rate Budget of one transport. It is updated
passively from response headers (zero API cost) and answers whether the
next request may go out or must wait for the window to reset. Each
transport creates its own monitor, so several engines (e.g. in tests)
never share budget state.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from github_backup.config import RateLimitConfig, get_settings
from github_backup.logging import get_logger

from .schemas import RateBudget, RateLimitPool, RateLimitStatus

logger = get_logger(__name__)

# Called with the budget and its new (worse) status
ThresholdCallback = Callable[[RateBudget, RateLimitStatus], None]

_STATUS_ORDER = (
    RateLimitStatus.HEALTHY,
    RateLimitStatus.WARNING,
    RateLimitStatus.CRITICAL,
    RateLimitStatus.EXHAUSTED,
)


class RateLimitMonitor:
    """Tracks the rate budget reported by GitHub response headers.

    Usage:
        monitor = RateLimitMonitor()
        monitor.update_from_headers(response_headers)
        if monitor.is_exhausted():
            await asyncio.sleep(monitor.seconds_until_reset())
    """

    def __init__(self, config: RateLimitConfig | None = None) -> None:
        """Initialize the rate limit monitor.

        Args:
            config: Optional rate limit configuration (uses settings if not provided)
        """
        self._config = config or get_settings().rate_limit
        self._budgets: dict[RateLimitPool, RateBudget] = {}
        self._previous_status: dict[RateLimitPool, RateLimitStatus] = {}
        self._threshold_callbacks: list[ThresholdCallback] = []

    # -------------------------------------------------------------------------
    # Passive Tracking (from Response Headers)
    # -------------------------------------------------------------------------
    def update_from_headers(
        self,
        headers: dict[str, str],
        pool: RateLimitPool = RateLimitPool.CORE,
    ) -> RateBudget | None:
        """Update rate limit state from response headers.

        Call this after every API response, including error responses
        (they still count against the budget).

        Args:
            headers: HTTP response headers dict (lower-case keys)
            pool: Default pool if not specified in headers

        Returns:
            The parsed budget, or None if the headers carried none
        """
        if not self._config.track_from_headers:
            return None

        budget = RateBudget.from_response_headers(headers, pool)
        if budget is None:
            return None

        self._budgets[budget.pool] = budget
        self._check_threshold(budget)
        return budget

    def _check_threshold(self, budget: RateBudget) -> None:
        """Log and notify callbacks when a pool's status degrades."""
        current = self._status_of(budget)
        previous = self._previous_status.get(budget.pool, RateLimitStatus.HEALTHY)
        self._previous_status[budget.pool] = current

        if _STATUS_ORDER.index(current) <= _STATUS_ORDER.index(previous):
            return

        logger.warning(
            "Rate limit {} for pool {} ({}/{} remaining, resets at {})",
            current.value,
            budget.pool.value,
            budget.remaining,
            budget.limit,
            budget.reset_at.isoformat(),
        )
        for callback in self._threshold_callbacks:
            try:
                callback(budget, current)
            except Exception as e:
                # Observers never break the request path
                logger.error("Threshold callback failed for pool {}: {}", budget.pool.value, e)

    def _status_of(self, budget: RateBudget) -> RateLimitStatus:
        return budget.get_status(
            self._config.healthy_threshold_pct,
            self._config.warning_threshold_pct,
            self._config.critical_threshold_pct,
        )

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------
    def get_budget(self, pool: RateLimitPool = RateLimitPool.CORE) -> RateBudget | None:
        """Get the latest budget for a pool (None if never seen)."""
        return self._budgets.get(pool)

    def get_status(self, pool: RateLimitPool = RateLimitPool.CORE) -> RateLimitStatus:
        """Get health status for a pool (HEALTHY if unknown)."""
        budget = self.get_budget(pool)
        if budget is None:
            return RateLimitStatus.HEALTHY
        return self._status_of(budget)

    def is_exhausted(
        self,
        pool: RateLimitPool = RateLimitPool.CORE,
        now: datetime | None = None,
    ) -> bool:
        """Whether the pool has no requests left and has not reset yet."""
        budget = self.get_budget(pool)
        if budget is None or not budget.is_exhausted:
            return False
        return budget.reset_at > (now or datetime.now(UTC))

    def seconds_until_reset(
        self,
        pool: RateLimitPool = RateLimitPool.CORE,
        now: datetime | None = None,
    ) -> float:
        """Seconds until the pool resets (0 if unknown or already reset)."""
        budget = self.get_budget(pool)
        if budget is None:
            return 0.0
        return budget.seconds_until_reset(now)

    # -------------------------------------------------------------------------
    # Callbacks & Observability
    # -------------------------------------------------------------------------
    def on_threshold_crossed(self, callback: ThresholdCallback) -> None:
        """Register a callback for status degradations.

        The callback receives the RateBudget and new RateLimitStatus
        when status degrades (e.g., HEALTHY -> WARNING). It is not
        fired on improvement.
        """
        self._threshold_callbacks.append(callback)

    def to_dict(self) -> dict[str, Any]:
        """Export current state as dictionary (for logging/CLI output)."""
        return {
            pool.value: {
                "limit": budget.limit,
                "remaining": budget.remaining,
                "used": budget.used,
                "remaining_percent": round(budget.remaining_percent, 2),
                "reset_at": budget.reset_at.isoformat(),
                "status": self._status_of(budget).value,
            }
            for pool, budget in self._budgets.items()
        }
