"""GitHub API client for pull request files and comments."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

PER_PAGE = 100


class GitHubAPIError(Exception):
    """GitHub API related errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code: int | None = status_code


@dataclass
class PullRequestContext:
    """Pull request a workflow run was triggered for."""

    number: int
    head_sha: str


def load_pull_request_context(event_path: Path) -> PullRequestContext | None:
    """Read the PR number and head commit from a GitHub Actions event payload.

    Returns None when the event is not a pull request event.
    """
    try:
        with event_path.open(encoding="utf-8") as f:
            event: dict[str, Any] = json.load(f)
    except (OSError, json.JSONDecodeError):
        return None

    pull_request: dict[str, Any] | None = event.get("pull_request")
    if not pull_request or "number" not in pull_request:
        return None

    return PullRequestContext(
        number=int(pull_request["number"]),
        head_sha=(pull_request.get("head") or {}).get("sha", ""),
    )


class GitHubClient:
    """Minimal GitHub REST client scoped to one repository."""

    def __init__(
        self,
        token: str,
        repository: str,
        api_url: str = "https://api.github.com",
        session: requests.Session | None = None,
    ):
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.session: requests.Session = session or self._create_session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "argodiff",
            }
        )

    @staticmethod
    def _create_session() -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "DELETE"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f"{self.api_url}/repos/{self.repository}/{endpoint.lstrip('/')}"
        try:
            response: requests.Response = self.session.request(
                method, url, timeout=30, **kwargs
            )
        except requests.RequestException as e:
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise GitHubAPIError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def _paginate(self, endpoint: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            response = self._request(
                "GET", endpoint, params={"per_page": PER_PAGE, "page": page}
            )
            batch: list[dict[str, Any]] = response.json()
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1

    def list_pull_request_files(self, pr_number: int) -> list[str]:
        """Paths of all files changed by a pull request."""
        return [f["filename"] for f in self._paginate(f"pulls/{pr_number}/files")]

    def list_comments(self, pr_number: int) -> list[dict[str, Any]]:
        return self._paginate(f"issues/{pr_number}/comments")

    def create_comment(self, pr_number: int, body: str) -> dict[str, Any]:
        response = self._request("POST", f"issues/{pr_number}/comments", json={"body": body})
        return response.json()

    def delete_comment(self, comment_id: int) -> None:
        self._request("DELETE", f"issues/comments/{comment_id}")

    def delete_stale_reports(self, pr_number: int, marker: str) -> int:
        """Delete earlier comments containing marker; returns how many were deleted."""
        deleted = 0
        for comment in self.list_comments(pr_number):
            if marker in (comment.get("body") or ""):
                self.delete_comment(comment["id"])
                deleted += 1
        return deleted
