from __future__ import annotations

from perfbot.actions import IssueCommentEvent, UnsupportedEvent, parse_event


def _payload(**overrides: object) -> dict:
    payload = {
        "action": "created",
        "issue": {"number": 42, "pull_request": {"url": "https://api.github.com/repos/acme/engine/pulls/42"}},
        "comment": {"body": "@perfbot run bench", "user": {"login": "octocat"}},
        "repository": {"full_name": "acme/engine"},
    }
    payload.update(overrides)
    return payload


def test_created_comment_on_pull_request() -> None:
    event = parse_event("issue_comment", _payload())

    assert event == IssueCommentEvent(
        repo_full_name="acme/engine",
        issue_number=42,
        comment_body="@perfbot run bench",
        is_pull_request=True,
        author="octocat",
    )
    assert event.kind == "issue_comment"


def test_comment_on_plain_issue() -> None:
    event = parse_event("issue_comment", _payload(issue={"number": 3}))

    assert isinstance(event, IssueCommentEvent)
    assert not event.is_pull_request


def test_other_event_kinds_are_unsupported() -> None:
    event = parse_event("push", {"ref": "refs/heads/main"})

    assert isinstance(event, UnsupportedEvent)
    assert event.kind == "push"


def test_edited_comments_are_unsupported() -> None:
    event = parse_event("issue_comment", _payload(action="edited"))

    assert isinstance(event, UnsupportedEvent)
    assert "edited" in event.reason


def test_payload_without_repository_is_unsupported() -> None:
    event = parse_event("issue_comment", _payload(repository={}))

    assert isinstance(event, UnsupportedEvent)


def test_missing_comment_body_becomes_empty_string() -> None:
    event = parse_event("issue_comment", _payload(comment={"user": None}))

    assert isinstance(event, IssueCommentEvent)
    assert event.comment_body == ""
    assert event.author is None
