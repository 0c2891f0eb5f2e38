"""Factories for GitHub API item payloads.

Return plain dicts shaped like the REST list responses for issues and
pull requests. Only ``number`` and ``updated_at`` matter to the backup;
the other fields make stored records look like real ones.

Usage:
    from tests.factories import make_issue, make_pull

    issue = make_issue(number=7, updated_at=JAN_12_ISO, title="Crash on start")
"""

from datetime import datetime
from typing import Any

REPO_API_URL = "https://api.github.com/repos/octocat/hello-world"
REPO_HTML_URL = "https://github.com/octocat/hello-world"


def _iso(value: str | datetime) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return value


def make_user(login: str = "octocat", user_id: int = 1) -> dict[str, Any]:
    """Create a minimal GitHub user object."""
    return {
        "login": login,
        "id": user_id,
        "type": "User",
        "html_url": f"https://github.com/{login}",
    }


def make_issue(
    number: int = 1,
    updated_at: str | datetime = "2024-01-10T09:00:00Z",
    **overrides: Any,
) -> dict[str, Any]:
    """Create an issue as returned by GET /repos/{owner}/{repo}/issues."""
    data: dict[str, Any] = {
        "id": 1000 + number,
        "node_id": f"I_kwDO{number:06d}",
        "number": number,
        "title": f"Issue {number}",
        "body": f"Description of issue {number}",
        "state": "open",
        "locked": False,
        "user": make_user(),
        "labels": [],
        "assignees": [],
        "comments": 0,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": _iso(updated_at),
        "closed_at": None,
        "url": f"{REPO_API_URL}/issues/{number}",
        "html_url": f"{REPO_HTML_URL}/issues/{number}",
    }
    data.update(overrides)
    return data


def make_pull(
    number: int = 1,
    updated_at: str | datetime = "2024-01-10T09:00:00Z",
    **overrides: Any,
) -> dict[str, Any]:
    """Create a pull request as returned by GET /repos/{owner}/{repo}/pulls."""
    data: dict[str, Any] = {
        "id": 5000 + number,
        "node_id": f"PR_kwDO{number:06d}",
        "number": number,
        "title": f"Pull request {number}",
        "body": f"Changes for pull request {number}",
        "state": "open",
        "draft": False,
        "user": make_user("hubot", 2),
        "labels": [],
        "head": {"ref": f"feature-{number}", "sha": f"{number:040x}"},
        "base": {"ref": "main", "sha": "0" * 40},
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": _iso(updated_at),
        "closed_at": None,
        "merged_at": None,
        "url": f"{REPO_API_URL}/pulls/{number}",
        "html_url": f"{REPO_HTML_URL}/pull/{number}",
    }
    data.update(overrides)
    return data


def as_issue_entry(pull: dict[str, Any]) -> dict[str, Any]:
    """Render a pull request the way the issues listing returns it."""
    return make_issue(
        number=pull["number"],
        updated_at=pull["updated_at"],
        title=pull["title"],
        pull_request={
            "url": f"{REPO_API_URL}/pulls/{pull['number']}",
            "html_url": f"{REPO_HTML_URL}/pull/{pull['number']}",
        },
    )


def make_legacy_record(body: dict[str, Any], *, pull: bool = False) -> dict[str, Any]:
    """Create a record in the enveloped layout of earlier releases."""
    if pull:
        return {"type": "pull", "pull": body, "events": [], "comments": []}
    return {"type": "issue", "issue": body, "events": []}
