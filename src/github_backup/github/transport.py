"""Rate-limited GitHub REST transport built on githubkit.

Issues authenticated GET requests, tracks the rate budget from every
response, and suspends the caller until the window resets when GitHub
reports the budget exhausted. Transient failures (timeouts, connection
errors, 5xx) are retried with bounded exponential backoff.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed, RequestTimeout

from github_backup.config import TransportConfig, get_settings
from github_backup.exceptions import (
    GitHubAuthenticationError,
    RateLimitedError,
    TransportError,
)
from github_backup.logging import get_logger

from .rate_limit import RateLimitMonitor

logger = get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]

# Used when a rate-limit response carries neither retry-after nor a reset instant
_DEFAULT_RATE_LIMIT_WAIT = timedelta(seconds=60)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _header_dict(response: Any) -> dict[str, str]:
    """Lower-cased header dict from a githubkit/httpx response."""
    headers = getattr(response, "headers", None)
    if headers is None:
        return {}
    return {str(key).lower(): str(value) for key, value in headers.items()}


@dataclass(frozen=True)
class ApiResponse:
    """A successful API response, body not yet parsed."""

    url: str
    status_code: int
    headers: dict[str, str]
    content: bytes


class _RateLimitSignal(Exception):
    """Internal: the server refused the request for rate limit reasons."""

    def __init__(self, reset_at: datetime) -> None:
        super().__init__(reset_at.isoformat())
        self.reset_at = reset_at


class RateLimitedTransport:
    """Authenticated GET transport with rate limit suspension.

    Usage:
        async with RateLimitedTransport(token) as transport:
            response = await transport.get("/repos/octocat/hello/issues")

    A call that hits an exhausted budget sleeps until the reset instant
    and is retried once. If the retry is refused again the call raises
    RateLimitedError instead of looping.
    """

    def __init__(
        self,
        token: str,
        *,
        config: TransportConfig | None = None,
        monitor: RateLimitMonitor | None = None,
        base_url: str | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize the transport.

        Args:
            token: GitHub token attached as bearer auth to every request.
            config: Retry/backoff configuration (uses settings if not provided).
            monitor: Rate budget owner; a fresh one is created if omitted.
            base_url: REST API root (uses settings if not provided).
            sleep: Awaitable sleep, replaceable in tests.
            clock: UTC clock, replaceable in tests.

        Raises:
            GitHubAuthenticationError: If the token is empty.
        """
        if not token:
            raise GitHubAuthenticationError("GitHub token required")
        settings = get_settings()
        self._token = token
        self._config = config or settings.transport
        self._base_url = base_url or settings.github_api_url
        self._monitor = monitor or RateLimitMonitor()
        self._sleep = sleep
        self._clock = clock
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            # Rate limit waits are handled here, not by githubkit
            self._client = GitHub(
                self._token,
                base_url=self._base_url,
                timeout=self._config.request_timeout_seconds,
                auto_retry=False,
            )
        return self._client

    @property
    def monitor(self) -> RateLimitMonitor:
        """The rate budget owned by this transport."""
        return self._monitor

    async def close(self) -> None:
        """Release the underlying HTTP client."""
        self._client = None

    async def __aenter__(self) -> RateLimitedTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Rate Limit Suspension
    # -------------------------------------------------------------------------
    async def wait_until_allowed(self) -> bool:
        """Suspend until the tracked budget allows another request.

        Returns:
            True if the call had to wait for the window to reset
        """
        if not self._monitor.is_exhausted(now=self._clock()):
            return False
        budget = self._monitor.get_budget()
        if budget is None:
            return False
        return await self._sleep_until(budget.reset_at)

    async def _sleep_until(self, reset_at: datetime) -> bool:
        delay = (reset_at - self._clock()).total_seconds() + self._config.reset_margin_seconds
        if delay <= 0:
            return False
        logger.info(
            "GitHub rate limit exhausted, waiting {:.0f}s until {}",
            delay,
            reset_at.isoformat(),
        )
        await self._sleep(delay)
        logger.info("GitHub rate limit has reset")
        return True

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------
    async def get(self, url: str, params: dict[str, Any] | None = None) -> ApiResponse:
        """Execute a GET request.

        Args:
            url: API path (e.g. "/repos/o/r/issues") or absolute next-page URL
            params: Query parameters

        Returns:
            The successful response

        Raises:
            RateLimitedError: If still rate limited after one wait for reset
            GitHubAuthenticationError: On 401/403/404 refusals
            TransportError: When transient failures outlast the retry budget
        """
        # A wait for the tracked budget counts as the one allowed wait
        if not await self.wait_until_allowed():
            try:
                return await self._get_with_retries(url, params)
            except _RateLimitSignal as signal:
                await self._sleep_until(signal.reset_at)

        try:
            return await self._get_with_retries(url, params)
        except _RateLimitSignal as signal:
            raise RateLimitedError(
                "GitHub rate limit still exhausted after waiting for reset",
                reset_at=signal.reset_at,
                endpoint=url,
            ) from None

    async def _get_with_retries(
        self,
        url: str,
        params: dict[str, Any] | None,
    ) -> ApiResponse:
        attempts = self._config.max_attempts
        last_error: TransportError | None = None

        for attempt in range(1, attempts + 1):
            try:
                resp = await self._github.arequest("GET", url, params=params)
            except RequestFailed as e:
                last_error = self._handle_failed(e, url)
            except (RequestTimeout, RequestError) as e:
                last_error = TransportError(
                    f"Network error ({type(e).__name__})",
                    endpoint=url,
                    cause=e,
                )
            else:
                headers = _header_dict(resp)
                self._monitor.update_from_headers(headers)
                return ApiResponse(
                    url=url,
                    status_code=resp.status_code,
                    headers=headers,
                    content=resp.content,
                )

            if attempt < attempts:
                delay = self._config.backoff_base_seconds * (2 ** (attempt - 1))
                logger.warning(
                    "Request to {} failed ({}), retrying in {:.1f}s ({}/{})",
                    url,
                    last_error.message,
                    delay,
                    attempt,
                    attempts,
                )
                await self._sleep(delay)

        assert last_error is not None
        raise last_error

    def _handle_failed(self, error: RequestFailed, url: str) -> TransportError:
        """Classify an HTTP error response.

        Rate limit refusals raise _RateLimitSignal; non-retryable refusals
        raise directly; retryable (5xx) failures are returned.
        """
        headers = _header_dict(error.response)
        self._monitor.update_from_headers(headers)
        status = error.response.status_code

        if self._is_rate_limited(status, headers):
            raise _RateLimitSignal(self._reset_instant(headers)) from None
        if status >= 500:
            return TransportError(
                f"GitHub server error ({status})",
                status_code=status,
                endpoint=url,
                cause=error,
            )
        if status in (401, 403, 404):
            raise GitHubAuthenticationError(
                f"GitHub refused access ({status}); check the token and repository",
                status_code=status,
                endpoint=url,
                cause=error,
            ) from error
        raise TransportError(
            f"GitHub API error ({status})",
            status_code=status,
            endpoint=url,
            cause=error,
        ) from error

    @staticmethod
    def _is_rate_limited(status: int, headers: dict[str, str]) -> bool:
        if status == 429:
            return True
        if status != 403:
            return False
        return headers.get("x-ratelimit-remaining") == "0" or "retry-after" in headers

    def _reset_instant(self, headers: dict[str, str]) -> datetime:
        """When a refused request may be retried (retry-after wins over reset)."""
        retry_after = headers.get("retry-after")
        if retry_after is not None and retry_after.isdigit():
            return self._clock() + timedelta(seconds=int(retry_after))
        reset = headers.get("x-ratelimit-reset")
        if reset is not None and reset.isdigit() and int(reset) > 0:
            return datetime.fromtimestamp(int(reset), tz=UTC)
        return self._clock() + _DEFAULT_RATE_LIMIT_WAIT
