from __future__ import annotations

import json

import httpx
import pytest

from perfbot.config import GitHubSettings
from perfbot.errors import GitHubError
from perfbot.github import GitHubClient


def _client(handler) -> GitHubClient:
    settings = GitHubSettings(api_url="https://github.example.com/api/v3/", token_var="GH_TEST_TOKEN")
    return GitHubClient(settings, transport=httpx.MockTransport(handler))


def test_fetch_pull_request_head_sha(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GH_TEST_TOKEN", "ghp_test")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"number": 42, "head": {"sha": "abc123", "ref": "feature"}})

    assert _client(handler).fetch_pull_request_head_sha("acme/engine", 42) == "abc123"
    assert seen[0].url.path == "/api/v3/repos/acme/engine/pulls/42"
    assert seen[0].headers["Authorization"] == "Bearer ghp_test"


def test_fetch_head_sha_of_missing_pull_request_raises() -> None:
    with pytest.raises(GitHubError, match="404"):
        _client(lambda request: httpx.Response(404, json={"message": "Not Found"})).fetch_pull_request_head_sha(
            "acme/engine", 1
        )


def test_fetch_head_sha_without_head_raises() -> None:
    with pytest.raises(GitHubError, match="no head commit"):
        _client(lambda request: httpx.Response(200, json={"number": 1})).fetch_pull_request_head_sha("acme/engine", 1)


def test_fetch_head_sha_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GitHubError) as excinfo:
        _client(handler).fetch_pull_request_head_sha("acme/engine", 1)

    assert isinstance(excinfo.value.cause, httpx.ReadTimeout)


def test_post_comment() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 1})

    _client(handler).post_comment("acme/engine", 42, "**SUCCESS**: Job 7 scheduled to run")

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/v3/repos/acme/engine/issues/42/comments"
    assert json.loads(seen[0].content) == {"body": "**SUCCESS**: Job 7 scheduled to run"}
