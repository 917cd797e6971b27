from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from perfbot.config import JenkinsSettings
from perfbot.dispatch import JenkinsJobDispatcher, job_path, queue_item_id
from perfbot.errors import DispatchError


def _dispatcher(handler, **settings: object) -> JenkinsJobDispatcher:
    base = {"url": "https://jenkins.example.com/", "user": "bot", "token_var": "JENKINS_TEST_TOKEN"}
    base.update(settings)
    return JenkinsJobDispatcher(JenkinsSettings(**base), transport=httpx.MockTransport(handler))


def test_submit_posts_parameters_and_returns_queue_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JENKINS_TEST_TOKEN", "s3cret")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, headers={"Location": "https://jenkins.example.com/queue/item/314/"})

    handle = _dispatcher(handler).submit("acme/engine", "startup bench", {"PR": "42", "mode": "fast path"})

    assert handle == "314"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.raw_path.decode() == "/job/startup%20bench/buildWithParameters"
    assert parse_qs(request.content.decode()) == {"PR": ["42"], "mode": ["fast path"]}
    assert request.headers["Authorization"].startswith("Basic ")


def test_submit_without_token_sends_no_auth(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JENKINS_TEST_TOKEN", raising=False)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201)

    assert _dispatcher(handler).submit("acme/engine", "bench", {}) == "queued"
    assert "Authorization" not in seen[0].headers


def test_submit_rejected_by_jenkins_raises_dispatch_error() -> None:
    with pytest.raises(DispatchError, match="403"):
        _dispatcher(lambda request: httpx.Response(403, text="No valid crumb")).submit("acme/engine", "bench", {})


def test_submit_transport_error_keeps_cause() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DispatchError) as excinfo:
        _dispatcher(handler).submit("acme/engine", "bench", {"a": "1"})

    assert isinstance(excinfo.value.cause, httpx.ConnectError)


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        ("https://jenkins/queue/item/7/", "7"),
        ("https://jenkins/queue/item/8", "8"),
        ("https://jenkins/job/x/12/", "https://jenkins/job/x/12/"),
        (None, "queued"),
    ],
)
def test_queue_item_id(location: str | None, expected: str) -> None:
    assert queue_item_id(location) == expected


def test_submit_reaches_job_inside_folder() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, headers={"Location": "https://jenkins.example.com/queue/item/5/"})

    assert _dispatcher(handler).submit("acme/engine", "perf team/bench", {}) == "5"
    assert seen[0].url.raw_path.decode() == "/job/perf%20team/job/bench/buildWithParameters"


@pytest.mark.parametrize(
    ("job_name", "expected"),
    [
        ("bench", "/job/bench"),
        ("team/bench", "/job/team/job/bench"),
        ("/team//bench/", "/job/team/job/bench"),
    ],
)
def test_job_path(job_name: str, expected: str) -> None:
    assert job_path(job_name) == expected


def test_job_path_rejects_empty_name() -> None:
    with pytest.raises(DispatchError):
        job_path("/")
