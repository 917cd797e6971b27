"""``run`` action: trigger a benchmark job from a pull-request comment."""

from __future__ import annotations

import logging

from perfbot.commands import HeadShaFetcher, RequestContext, resolve_command
from perfbot.dispatch import JobDispatcher
from perfbot.errors import (
    CommandSyntaxError,
    ContextRetrievalError,
    DispatchError,
    EventNotSupportedError,
    PerfBotError,
)

from .context import ActionContext
from .events import IssueCommentEvent

logger = logging.getLogger(__name__)


class RunAction:
    """Resolve the job named in the comment and submit it to the job backend.

    Every failure ends as a FAILED status on the context; nothing is raised to the caller.
    """

    name = "run"

    def __init__(self, dispatcher: JobDispatcher, *, fetch_head_sha: HeadShaFetcher | None = None) -> None:
        self.dispatcher = dispatcher
        self.fetch_head_sha = fetch_head_sha

    def proceed(self, ctx: ActionContext) -> None:
        event = ctx.event
        if not isinstance(event, IssueCommentEvent):
            error = EventNotSupportedError(f"Event {event.kind} not supported for {type(self).__name__}")
            logger.warning("%s", error)
            ctx.fail("Event not supported", error)
            return

        try:
            project = ctx.config.get_project(event.repo_full_name)
            command = resolve_command(
                event.comment_body,
                project,
                RequestContext(
                    repo_full_name=event.repo_full_name,
                    pull_request_number=event.issue_number,
                    fetch_head_sha=self.fetch_head_sha,
                    is_pull_request=event.is_pull_request,
                ),
            )
        except PerfBotError as exc:
            logger.error("Cannot resolve command on %s#%d: %s", event.repo_full_name, event.issue_number, exc)
            ctx.fail(_failure_message(exc), exc)
            return

        try:
            handle = self.dispatcher.submit(event.repo_full_name, command.job_name, command.parameters)
        except DispatchError as exc:
            logger.error("Failed to build job %s: %s", command.job_name, exc)
            ctx.fail("Failed to execute the job", exc)
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to build job %s", command.job_name)
            ctx.fail("Failed to execute the job", DispatchError("Failed to execute the job", exc))
            return

        logger.info("Job %s scheduled to run", handle)
        ctx.succeed(f"Job {handle} scheduled to run")


def _failure_message(exc: PerfBotError) -> str:
    if isinstance(exc, ContextRetrievalError):
        return "Failed to execute the job: unable to retrieve pull request HEAD commit"
    if isinstance(exc, CommandSyntaxError):
        return f"Invalid command: {exc.message}"
    return exc.message


__all__ = ["RunAction"]
