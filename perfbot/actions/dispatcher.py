"""Route bot comments to the action named by their second token."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from perfbot.commands import split_command
from perfbot.config import BotConfigSchema
from perfbot.errors import EventNotSupportedError, GitHubError, UnknownActionError
from perfbot.github import GitHubClient

from .context import ActionContext, format_status_comment
from .events import Event, IssueCommentEvent

logger = logging.getLogger(__name__)


class Action(Protocol):
    name: str

    def proceed(self, ctx: ActionContext) -> None: ...


class ActionDispatcher:
    """Handle one event at a time; holds no state between events."""

    def __init__(
        self,
        config: BotConfigSchema,
        actions: Iterable[Action],
        *,
        github: GitHubClient | None = None,
    ) -> None:
        self.config = config
        self.github = github
        self._actions: dict[str, Action] = {}
        for action in actions:
            if action.name in self._actions:
                raise ValueError(f"Action '{action.name}' registered twice.")
            self._actions[action.name] = action

    @property
    def action_names(self) -> list[str]:
        return sorted(self._actions)

    def handle(self, event: Event, *, report: bool = False) -> ActionContext | None:
        """Run the addressed action and return its context, or ``None`` when the comment is not for the bot."""
        ctx = ActionContext(event=event, config=self.config)
        if not isinstance(event, IssueCommentEvent):
            message = f"Event {event.kind} not supported"
            if event.reason:
                message = f"{message}: {event.reason}"
            error = EventNotSupportedError(message)
            logger.info("%s", error)
            return ctx.fail("Event not supported", error)

        tokens = split_command(event.comment_body) if event.comment_body.strip() else None
        if tokens is None or tokens.prompt != self.config.prompt:
            logger.debug(
                "Ignoring comment on %s#%d not addressed to %s",
                event.repo_full_name,
                event.issue_number,
                self.config.prompt,
            )
            return None

        action = self._actions.get(tokens.action or "")
        if action is None:
            error = UnknownActionError(
                f"Unknown action '{tokens.action or ''}', expected one of: {', '.join(self.action_names)}"
            )
            logger.warning("%s (%s#%d)", error, event.repo_full_name, event.issue_number)
            ctx.fail("Unknown action", error)
        else:
            logger.info(
                "Running action '%s' for %s#%d requested by %s",
                action.name,
                event.repo_full_name,
                event.issue_number,
                event.author or "unknown user",
            )
            action.proceed(ctx)
            if ctx.status is None:
                raise RuntimeError(f"Action '{action.name}' returned without setting a status.")

        if report:
            self._report(event, ctx)
        return ctx

    def _report(self, event: IssueCommentEvent, ctx: ActionContext) -> None:
        if self.github is None:
            logger.warning(
                "No GitHub client configured; status for %s#%d not posted", event.repo_full_name, event.issue_number
            )
            return
        try:
            self.github.post_comment(event.repo_full_name, event.issue_number, format_status_comment(ctx))
        except GitHubError as exc:
            logger.error("Failed to post status on %s#%d: %s", event.repo_full_name, event.issue_number, exc)


__all__ = ["Action", "ActionDispatcher"]
