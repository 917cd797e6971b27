"""Comment grammar: ``<prompt> <action> <job> key=value,key="quoted, value" ...``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from perfbot.errors import CommandSyntaxError

# Unquoted values run up to the next comma; quote a value to keep its commas.
PARAMETER_PATTERN = re.compile(r'(\w+)=("[^"]*"|[^,]*)', re.ASCII)

PROMPT_INDEX = 0
ACTION_INDEX = 1
JOB_NAME_INDEX = 2


@dataclass(frozen=True, slots=True)
class CommandTokens:
    """Leading whitespace-delimited tokens of a bot comment."""

    prompt: str
    action: str | None
    arguments: tuple[str, ...]

    @property
    def job_name(self) -> str | None:
        return self.arguments[0] if self.arguments else None


def split_command(comment_body: str) -> CommandTokens:
    """Split a comment into prompt, action and positional arguments."""
    tokens = comment_body.split()
    if not tokens:
        raise CommandSyntaxError("Empty comment")
    action = tokens[ACTION_INDEX] if len(tokens) > ACTION_INDEX else None
    return CommandTokens(prompt=tokens[PROMPT_INDEX], action=action, arguments=tuple(tokens[JOB_NAME_INDEX:]))


def parse_job_name(comment_body: str) -> str:
    """Return the third whitespace-delimited token of the comment."""
    tokens = comment_body.split()
    if len(tokens) <= JOB_NAME_INDEX:
        raise CommandSyntaxError(
            f"Expected '<prompt> <action> <job> [key=value,...]', got {len(tokens)} token(s)"
        )
    return tokens[JOB_NAME_INDEX]


def _unquote(raw_value: str) -> str:
    if len(raw_value) >= 2 and raw_value.startswith('"') and raw_value.endswith('"'):
        return raw_value[1:-1]
    return raw_value


def iter_parameter_pairs(text: str) -> Iterator[tuple[str, str]]:
    """Yield every ``key=value`` pair found anywhere in ``text``, in order of appearance."""
    for match in PARAMETER_PATTERN.finditer(text):
        yield match.group(1), _unquote(match.group(2))


__all__ = ["CommandTokens", "PARAMETER_PATTERN", "iter_parameter_pairs", "parse_job_name", "split_command"]
