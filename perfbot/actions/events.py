"""Webhook events the bot understands, as a closed set of variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

ISSUE_COMMENT_EVENT = "issue_comment"
SUPPORTED_COMMENT_ACTIONS = frozenset({"created"})


@dataclass(frozen=True, slots=True)
class IssueCommentEvent:
    """A newly created comment on an issue or pull-request thread."""

    repo_full_name: str
    issue_number: int
    comment_body: str
    is_pull_request: bool = False
    author: str | None = None

    @property
    def kind(self) -> str:
        return ISSUE_COMMENT_EVENT


@dataclass(frozen=True, slots=True)
class UnsupportedEvent:
    kind: str
    reason: str = ""


Event = Union[IssueCommentEvent, UnsupportedEvent]


def parse_event(kind: str, payload: Mapping[str, Any]) -> Event:
    """Map a webhook delivery (``X-GitHub-Event`` name and JSON body) to an event variant."""
    if kind != ISSUE_COMMENT_EVENT:
        return UnsupportedEvent(kind=kind, reason=f"event '{kind}' is not handled")

    action = payload.get("action")
    if action not in SUPPORTED_COMMENT_ACTIONS:
        return UnsupportedEvent(kind=kind, reason=f"comment action '{action}' is not handled")

    comment = payload.get("comment") or {}
    issue = payload.get("issue") or {}
    repository = payload.get("repository") or {}
    repo_full_name = repository.get("full_name")
    number = issue.get("number")
    if not isinstance(repo_full_name, str) or not isinstance(number, int) or isinstance(number, bool):
        return UnsupportedEvent(kind=kind, reason="payload is missing the repository or issue number")

    user = comment.get("user") or {}
    return IssueCommentEvent(
        repo_full_name=repo_full_name,
        issue_number=number,
        comment_body=str(comment.get("body") or ""),
        is_pull_request=issue.get("pull_request") is not None,
        author=user.get("login"),
    )


__all__ = ["Event", "IssueCommentEvent", "UnsupportedEvent", "parse_event"]
