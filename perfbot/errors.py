"""Error taxonomy shared by the command path and the query path."""

from __future__ import annotations


class PerfBotError(Exception):
    """Base class for every error raised by perfbot.

    ``cause`` keeps the underlying exception reachable for callers that only
    look at the error object attached to an action status.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class ConfigFormatError(PerfBotError, ValueError):
    """Raised when a configuration file cannot be interpreted."""


class ProjectNotFoundError(PerfBotError):
    """Raised when no project configuration exists for a repository."""


class CommandSyntaxError(PerfBotError):
    """Raised when a comment does not have the ``<prompt> <action> <job>`` shape."""


class JobNotFoundError(PerfBotError):
    """Raised when the requested job is not defined for the repository."""


class ContextRetrievalError(PerfBotError):
    """Raised when a value injected from the request context cannot be fetched."""


class DispatchError(PerfBotError):
    """Raised when the job backend rejects or fails a submission."""


class EventNotSupportedError(PerfBotError):
    """Raised when an action receives an event kind it cannot handle."""


class UnknownActionError(PerfBotError):
    """Raised when a comment addresses an action that is not registered."""


class GitHubError(PerfBotError):
    """Raised when the code-review API call fails."""


class InvalidRunIdError(PerfBotError):
    """Raised when a run identifier is neither numeric nor ``latest``."""


class RunNotFoundError(PerfBotError):
    """Raised when the datastore has no usable run for an explicit id."""


class NoRunsFoundError(PerfBotError):
    """Raised when ``latest`` is requested for a test without runs."""


class DatastoreError(PerfBotError):
    """Raised when the datastore is unavailable or answers with a server error."""


__all__ = [
    "CommandSyntaxError",
    "ConfigFormatError",
    "ContextRetrievalError",
    "DatastoreError",
    "DispatchError",
    "EventNotSupportedError",
    "GitHubError",
    "InvalidRunIdError",
    "JobNotFoundError",
    "NoRunsFoundError",
    "PerfBotError",
    "ProjectNotFoundError",
    "RunNotFoundError",
    "UnknownActionError",
]
