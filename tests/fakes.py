"""In-memory stand-in for the GitHub list endpoints.

``FakeGitHubAPI`` exposes the same ``get(url, params)`` coroutine as
RateLimitedTransport, serving issues and pull requests from dicts with
real Link-header pagination:

- the issues listing also returns pull requests (with a ``pull_request`` key)
  and honours ``since``
- the pulls listing ignores ``since``
- both are sorted by ``updated_at``, ascending unless ``direction=desc``

Failures can be injected by request ordinal via ``fail_at``.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit

from github_backup.github.transport import ApiResponse
from tests.factories import as_issue_entry, make_issue, make_pull

API_ROOT = "https://api.github.com"


def _parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class FakeGitHubAPI:
    """Serves paginated issue/pull listings of a single repository."""

    def __init__(self, owner: str = "octocat", repo: str = "hello-world") -> None:
        self.owner = owner
        self.repo = repo
        self.issues: dict[int, dict[str, Any]] = {}
        self.pulls: dict[int, dict[str, Any]] = {}
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.fail_at: dict[int, BaseException] = {}
        self.body_override: dict[int, bytes] = {}

    # -------------------------------------------------------------------------
    # Data setup
    # -------------------------------------------------------------------------
    def put_issue(self, number: int, updated_at: str | datetime, **fields: Any) -> dict[str, Any]:
        """Create or replace an issue."""
        self.issues[number] = make_issue(number=number, updated_at=updated_at, **fields)
        return self.issues[number]

    def put_pull(self, number: int, updated_at: str | datetime, **fields: Any) -> dict[str, Any]:
        """Create or replace a pull request."""
        self.pulls[number] = make_pull(number=number, updated_at=updated_at, **fields)
        return self.pulls[number]

    def clone(self) -> FakeGitHubAPI:
        """A fresh API serving copies of the same items, with no requests or failures."""
        other = FakeGitHubAPI(self.owner, self.repo)
        other.issues = {n: dict(d) for n, d in self.issues.items()}
        other.pulls = {n: dict(d) for n, d in self.pulls.items()}
        return other

    def requests_to(self, kind: str) -> list[tuple[str, dict[str, Any]]]:
        """Requests made against the ``issues`` or ``pulls`` listing."""
        return [r for r in self.requests if urlsplit(r[0]).path.endswith(f"/{kind}")]

    # -------------------------------------------------------------------------
    # Transport interface
    # -------------------------------------------------------------------------
    async def __aenter__(self) -> FakeGitHubAPI:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def get(self, url: str, params: dict[str, Any] | None = None) -> ApiResponse:
        parts = urlsplit(url)
        query: dict[str, Any] = dict(parse_qsl(parts.query))
        query.update(params or {})
        self.requests.append((url, dict(query)))

        ordinal = len(self.requests)
        if ordinal in self.fail_at:
            raise self.fail_at.pop(ordinal)

        path = parts.path
        entries = self._listing(path, query.get("since"), descending=query.get("direction") == "desc")
        per_page = int(query.get("per_page", 30))
        page = int(query.get("page", 1))
        chunk = entries[(page - 1) * per_page : page * per_page]

        headers = {"content-type": "application/json; charset=utf-8"}
        if page * per_page < len(entries):
            next_query = urlencode({**query, "page": page + 1})
            headers["link"] = f'<{API_ROOT}{path}?{next_query}>; rel="next"'

        content = self.body_override.pop(ordinal, None)
        if content is None:
            content = json.dumps(chunk).encode("utf-8")
        return ApiResponse(url=url, status_code=200, headers=headers, content=content)

    def _listing(self, path: str, since: str | None, *, descending: bool = False) -> list[dict[str, Any]]:
        prefix = f"/repos/{self.owner}/{self.repo}/"
        if path == prefix + "issues":
            entries = list(self.issues.values()) + [as_issue_entry(p) for p in self.pulls.values()]
            if since is not None:
                cutoff = _parse_time(since)
                entries = [e for e in entries if _parse_time(e["updated_at"]) >= cutoff]
        elif path == prefix + "pulls":
            entries = list(self.pulls.values())
        else:
            raise AssertionError(f"Unexpected request path {path}")
        return sorted(
            entries,
            key=lambda e: (_parse_time(e["updated_at"]), e["number"]),
            reverse=descending,
        )
