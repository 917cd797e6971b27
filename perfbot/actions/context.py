"""Per-request action context carrying the outcome reported back to the thread."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from perfbot.config import BotConfigSchema
from perfbot.errors import PerfBotError

from .events import Event


class ActionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(slots=True)
class ActionContext:
    """Event being handled plus its status, which is set exactly once."""

    event: Event
    config: BotConfigSchema
    status: ActionStatus | None = None
    message: str | None = None
    error: PerfBotError | None = None

    def set_status(
        self,
        status: ActionStatus,
        message: str,
        error: PerfBotError | None = None,
    ) -> "ActionContext":
        if self.status is not None:
            raise RuntimeError(f"Action status already set to {self.status.value}: {self.message}")
        self.status = status
        self.message = message
        self.error = error
        return self

    def succeed(self, message: str) -> "ActionContext":
        return self.set_status(ActionStatus.SUCCESS, message)

    def fail(self, message: str, error: PerfBotError) -> "ActionContext":
        return self.set_status(ActionStatus.FAILED, message, error)

    @property
    def succeeded(self) -> bool:
        return self.status is ActionStatus.SUCCESS


def format_status_comment(ctx: ActionContext) -> str:
    """Markdown body posted back to the triggering thread."""
    status = ctx.status.value if ctx.status is not None else "UNKNOWN"
    lines = [f"**{status}**: {ctx.message or ''}".rstrip()]
    if ctx.error is not None:
        lines.extend(["", "```", str(ctx.error), "```"])
    return "\n".join(lines)


__all__ = ["ActionContext", "ActionStatus", "format_status_comment"]
