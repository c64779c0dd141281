from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, call

import pytest
import requests

from argodiff.github import (
    PER_PAGE,
    GitHubAPIError,
    GitHubClient,
    PullRequestContext,
    load_pull_request_context,
)


def _response(payload=None, status_code: int = 200, text: str = "") -> MagicMock:
    response = MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def client(session: MagicMock) -> GitHubClient:
    return GitHubClient("ghp_token", "owner/repo", "https://api.github.com/", session=session)


class TestLoadPullRequestContext:
    def test_pull_request_event(self, tmp_path: Path):
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps({"pull_request": {"number": 42, "head": {"sha": "abc123"}}}))

        assert load_pull_request_context(event_path) == PullRequestContext(number=42, head_sha="abc123")

    def test_push_event(self, tmp_path: Path):
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps({"ref": "refs/heads/main"}))

        assert load_pull_request_context(event_path) is None

    def test_missing_file(self, tmp_path: Path):
        assert load_pull_request_context(tmp_path / "missing.json") is None

    def test_invalid_json(self, tmp_path: Path):
        event_path = tmp_path / "event.json"
        event_path.write_text("{not json")

        assert load_pull_request_context(event_path) is None

    def test_missing_head(self, tmp_path: Path):
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps({"pull_request": {"number": "7"}}))

        assert load_pull_request_context(event_path) == PullRequestContext(number=7, head_sha="")


class TestGitHubClient:
    def test_headers(self, client: GitHubClient, session: MagicMock):
        assert session.headers["Authorization"] == "Bearer ghp_token"
        assert session.headers["Accept"] == "application/vnd.github+json"
        assert client.api_url == "https://api.github.com"

    def test_list_pull_request_files_paginates(self, client: GitHubClient, session: MagicMock):
        first_page = [{"filename": f"apps/file{i}.yaml"} for i in range(PER_PAGE)]
        second_page = [{"filename": "README.md"}]
        session.request.side_effect = [_response(first_page), _response(second_page)]

        files = client.list_pull_request_files(42)

        assert len(files) == PER_PAGE + 1
        assert files[-1] == "README.md"
        url = "https://api.github.com/repos/owner/repo/pulls/42/files"
        assert session.request.call_args_list == [
            call("GET", url, timeout=30, params={"per_page": PER_PAGE, "page": 1}),
            call("GET", url, timeout=30, params={"per_page": PER_PAGE, "page": 2}),
        ]

    def test_create_comment(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response({"id": 1, "body": "hello"})

        comment = client.create_comment(42, "hello")

        assert comment["id"] == 1
        session.request.assert_called_once_with(
            "POST",
            "https://api.github.com/repos/owner/repo/issues/42/comments",
            timeout=30,
            json={"body": "hello"},
        )

    def test_delete_comment(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(status_code=204)

        client.delete_comment(99)

        session.request.assert_called_once_with(
            "DELETE",
            "https://api.github.com/repos/owner/repo/issues/comments/99",
            timeout=30,
        )

    def test_delete_stale_reports(self, client: GitHubClient, session: MagicMock):
        comments = [
            {"id": 1, "body": "<!-- marker -->\n## old report"},
            {"id": 2, "body": "LGTM"},
            {"id": 3, "body": None},
            {"id": 4, "body": "<!-- marker -->\ncontinued"},
        ]
        session.request.side_effect = [
            _response(comments),
            _response(status_code=204),
            _response(status_code=204),
        ]

        deleted = client.delete_stale_reports(42, "<!-- marker -->")

        assert deleted == 2
        deleted_urls = [c.args[1] for c in session.request.call_args_list if c.args[0] == "DELETE"]
        assert deleted_urls == [
            "https://api.github.com/repos/owner/repo/issues/comments/1",
            "https://api.github.com/repos/owner/repo/issues/comments/4",
        ]

    def test_error_status(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(status_code=403, text="Resource not accessible")

        with pytest.raises(GitHubAPIError, match="403") as exc_info:
            client.create_comment(42, "hello")

        assert exc_info.value.status_code == 403

    def test_connection_error(self, client: GitHubClient, session: MagicMock):
        session.request.side_effect = requests.ConnectionError("reset")

        with pytest.raises(GitHubAPIError, match="failed"):
            client.list_comments(42)
