"""Rate limit monitoring for GitHub API.

Tracks the rate budget reported by response headers so the transport
can suspend until the window resets instead of failing the run.
"""

from .monitor import RateLimitMonitor, ThresholdCallback
from .schemas import RateBudget, RateLimitPool, RateLimitStatus

__all__ = [
    "RateBudget",
    "RateLimitMonitor",
    "RateLimitPool",
    "RateLimitStatus",
    "ThresholdCallback",
]
