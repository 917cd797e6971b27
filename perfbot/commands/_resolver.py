"""Resolve a bot comment into a job name and the parameters to dispatch it with."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from perfbot.config import JobDefinitionSchema, ProjectConfigSchema
from perfbot.errors import ContextRetrievalError, JobNotFoundError

from ._grammar import iter_parameter_pairs, parse_job_name

logger = logging.getLogger(__name__)

HeadShaFetcher = Callable[[str, int], str]


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Values the bot may inject into job parameters for the triggering thread."""

    repo_full_name: str
    pull_request_number: int
    fetch_head_sha: HeadShaFetcher | None = None
    is_pull_request: bool = True


@dataclass(slots=True)
class ParsedCommand:
    """Job selected by a comment together with its final parameter mapping."""

    job_name: str
    parameters: dict[str, str] = field(default_factory=dict)


def resolve_command(
    comment_body: str,
    project: ProjectConfigSchema,
    context: RequestContext,
) -> ParsedCommand:
    """Parse ``comment_body`` against the job registry of ``project``.

    System bindings are written first; configurable ``key=value`` pairs from the
    comment then overwrite them. Pairs naming a non-configurable parameter are
    dropped with a warning.
    """
    job_name = parse_job_name(comment_body)
    job = project.jobs.get(job_name)
    if job is None:
        logger.error("Cannot find job %s", job_name)
        raise JobNotFoundError(f"Job {job_name} not found for {project.repo_full_name}")

    parameters = _bound_parameters(job, context)

    for key, value in iter_parameter_pairs(comment_body):
        if job.is_configurable(key):
            parameters[key] = value
        else:
            logger.warning("Parameter not configurable: %s", key)

    return ParsedCommand(job_name=job_name, parameters=parameters)


def _bound_parameters(job: JobDefinitionSchema, context: RequestContext) -> dict[str, str]:
    parameters: dict[str, str] = {}
    if job.pull_request_number_param:
        parameters[job.pull_request_number_param] = str(context.pull_request_number)
    if job.repo_full_name_param:
        parameters[job.repo_full_name_param] = context.repo_full_name
    if job.repo_commit_param:
        parameters[job.repo_commit_param] = _fetch_head_sha(context)
    return parameters


def _fetch_head_sha(context: RequestContext) -> str:
    if not context.is_pull_request:
        raise ContextRetrievalError(
            f"Unable to retrieve pull request HEAD commit: {context.repo_full_name}#{context.pull_request_number} "
            "is not a pull request"
        )
    if context.fetch_head_sha is None:
        raise ContextRetrievalError("Unable to retrieve pull request HEAD commit: no lookup configured")
    try:
        return context.fetch_head_sha(context.repo_full_name, context.pull_request_number)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Unable to retrieve HEAD commit of %s#%d: %s",
            context.repo_full_name,
            context.pull_request_number,
            exc,
        )
        raise ContextRetrievalError("Unable to retrieve pull request HEAD commit", exc) from exc


__all__ = ["HeadShaFetcher", "ParsedCommand", "RequestContext", "resolve_command"]
