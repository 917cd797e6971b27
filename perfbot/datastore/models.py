"""Records parsed from Horreum responses.

Horreum payloads differ slightly between server versions, so the parsers below
only look at the fields the bot relies on and tolerate missing or renamed ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

UNKNOWN_VERDICT = "UNKNOWN"
# Most severe verdict first; an experiment reports its worst comparison.
VERDICT_SEVERITY = ("WORSE", "BETTER", "SAME")


@dataclass(frozen=True, slots=True)
class RunSummary:
    run_id: int
    test_id: int | None = None
    dataset_ids: tuple[int, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RunSummary":
        run_id = _first_int(payload, "id", "runId")
        if run_id is None:
            raise ValueError("Run summary has no id.")
        return cls(
            run_id=run_id,
            test_id=_first_int(payload, "testid", "testId"),
            dataset_ids=tuple(_dataset_ids(payload.get("datasets"))),
        )


@dataclass(slots=True)
class ResolvedRun:
    """Run actually used for a request, with the dataset selected from it."""

    run_id: int
    dataset_id: int
    label_values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ExperimentOutcome:
    name: str
    verdict: str
    description: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExperimentOutcome":
        profile = payload.get("profile")
        name = None
        if isinstance(profile, Mapping):
            name = profile.get("name") or (f"profile {profile['id']}" if profile.get("id") is not None else None)
        comparisons = list(_iter_comparisons(payload.get("results")))
        verdicts = [verdict for _, verdict, _ in comparisons]
        details = [f"{variable}: {text}" if variable else text for variable, _, text in comparisons if text]
        return cls(
            name=str(name or "experiment"),
            verdict=_worst_verdict(verdicts),
            description="; ".join(details),
        )


def _first_int(payload: Mapping[str, Any], *keys: str) -> int | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
    return None


def _dataset_ids(value: Any) -> list[int]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return []
    ids: list[int] = []
    for item in value:
        if isinstance(item, Mapping):
            dataset_id = _first_int(item, "id", "datasetId")
        elif isinstance(item, int) and not isinstance(item, bool):
            dataset_id = item
        else:
            dataset_id = None
        if dataset_id is not None:
            ids.append(dataset_id)
    return ids


def _iter_comparisons(results: Any):
    """Yield ``(variable, verdict, text)`` for each comparison in an experiment result."""
    if isinstance(results, Mapping):
        items = [(str(key), value) for key, value in results.items()]
    elif isinstance(results, Sequence) and not isinstance(results, (str, bytes)):
        items = [(None, value) for value in results]
    else:
        return
    for key, value in items:
        if not isinstance(value, Mapping):
            continue
        variable = key
        comparison = value.get("comparison") or value.get("experimentComparison")
        if isinstance(comparison, Mapping):
            variable = comparison.get("variableName") or comparison.get("variable") or variable
        variable = variable or value.get("variableName") or value.get("variable")
        verdict = str(value.get("overall") or UNKNOWN_VERDICT).upper()
        text = str(value.get("result") or "").strip()
        yield variable, verdict, text


def _worst_verdict(verdicts: list[str]) -> str:
    for candidate in VERDICT_SEVERITY:
        if candidate in verdicts:
            return candidate
    return verdicts[0] if verdicts else UNKNOWN_VERDICT


__all__ = ["ExperimentOutcome", "ResolvedRun", "RunSummary", "UNKNOWN_VERDICT"]
