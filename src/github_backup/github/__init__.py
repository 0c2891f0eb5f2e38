"""GitHub API access: rate-limited transport, pagination, rate budget.

Usage:
    from github_backup.github import Pager, RateLimitedTransport

    async with RateLimitedTransport(token) as transport:
        pager = Pager(transport, "octocat", "Hello-World")
        async for item in pager.page_through(ISSUES, since=None):
            print(item.number)
"""

from .pager import Page, Pager, format_cursor, parse_next_link
from .rate_limit import (
    RateBudget,
    RateLimitMonitor,
    RateLimitPool,
    RateLimitStatus,
)
from .transport import ApiResponse, RateLimitedTransport

__all__ = [
    # Transport
    "ApiResponse",
    "RateLimitedTransport",
    # Pagination
    "Page",
    "Pager",
    "format_cursor",
    "parse_next_link",
    # Rate limiting
    "RateBudget",
    "RateLimitMonitor",
    "RateLimitPool",
    "RateLimitStatus",
]
