"""Test fixtures for GitHub Issue Backup."""

from .rate_limit_responses import (
    HEADERS_CRITICAL,
    HEADERS_EXHAUSTED,
    HEADERS_HEALTHY,
    HEADERS_PARTIAL,
    HEADERS_SEARCH_POOL,
    HEADERS_WARNING,
    HEADERS_ZERO_LIMIT,
    make_rate_limit_headers,
)

__all__ = [
    "HEADERS_CRITICAL",
    "HEADERS_EXHAUSTED",
    "HEADERS_HEALTHY",
    "HEADERS_PARTIAL",
    "HEADERS_SEARCH_POOL",
    "HEADERS_WARNING",
    "HEADERS_ZERO_LIMIT",
    "make_rate_limit_headers",
]
