"""Text renderings of label values and comparison outcomes."""

from __future__ import annotations

import json
from typing import Any, Iterable, Literal, Mapping

import yaml

from .models import ExperimentOutcome

LabelValueFormat = Literal["json", "yaml"]


def format_outcome(outcome: ExperimentOutcome) -> str:
    line = f"{outcome.name}: {outcome.verdict}"
    if outcome.description:
        line = f"{line} - {outcome.description}"
    return line


def render_report(outcomes: Iterable[ExperimentOutcome]) -> str:
    """One line per outcome, in datastore order; no outcomes renders as an empty string."""
    return "\n".join(format_outcome(outcome) for outcome in outcomes)


def render_label_values(values: Mapping[str, Any], fmt: LabelValueFormat = "json") -> str:
    if fmt == "yaml":
        return yaml.safe_dump(dict(values), sort_keys=False, allow_unicode=True).rstrip("\n")
    if fmt == "json":
        return json.dumps(values, indent=2, default=str)
    raise ValueError(f"Unsupported label value format '{fmt}'.")


__all__ = ["format_outcome", "render_label_values", "render_report"]
