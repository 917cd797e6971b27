"""Comment grammar and the command & parameter resolver."""

from ._grammar import CommandTokens, iter_parameter_pairs, parse_job_name, split_command
from ._resolver import HeadShaFetcher, ParsedCommand, RequestContext, resolve_command

__all__ = [
    "CommandTokens",
    "HeadShaFetcher",
    "ParsedCommand",
    "RequestContext",
    "iter_parameter_pairs",
    "parse_job_name",
    "resolve_command",
    "split_command",
]
