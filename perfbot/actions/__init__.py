"""Event handling: webhook event variants, action context and the action dispatcher."""

from .context import ActionContext, ActionStatus, format_status_comment
from .dispatcher import Action, ActionDispatcher
from .events import Event, IssueCommentEvent, UnsupportedEvent, parse_event
from .run import RunAction

__all__ = [
    "Action",
    "ActionContext",
    "ActionDispatcher",
    "ActionStatus",
    "Event",
    "IssueCommentEvent",
    "RunAction",
    "UnsupportedEvent",
    "format_status_comment",
    "parse_event",
]
