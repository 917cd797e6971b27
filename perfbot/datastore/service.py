"""Run resolution and baseline comparison on top of the Horreum gateway."""

from __future__ import annotations

import logging
from typing import Any, Callable

from perfbot.config import BotConfigSchema, ProjectConfigSchema
from perfbot.errors import InvalidRunIdError, NoRunsFoundError, RunNotFoundError

from .formatting import render_report
from .horreum import HorreumClient, open_horreum_client
from .models import ExperimentOutcome, ResolvedRun, RunSummary

logger = logging.getLogger(__name__)

LATEST_RUN = "latest"

ClientFactory = Callable[[BotConfigSchema, ProjectConfigSchema], HorreumClient]


def _default_client_factory(config: BotConfigSchema, project: ProjectConfigSchema) -> HorreumClient:
    return open_horreum_client(config.datastore, project)


def parse_run_identifier(run_identifier: str | int) -> int | None:
    """Return the numeric run id, or ``None`` for the ``latest`` sentinel."""
    if isinstance(run_identifier, int) and not isinstance(run_identifier, bool):
        if run_identifier < 0:
            raise InvalidRunIdError(f"Invalid run id '{run_identifier}'")
        return run_identifier
    value = str(run_identifier).strip()
    if value == LATEST_RUN:
        return None
    if not (value.isascii() and value.isdigit()):
        raise InvalidRunIdError(f"Invalid run id '{run_identifier}': expected a number or '{LATEST_RUN}'")
    return int(value)


class DatastoreService:
    """Resolve runs by id or ``latest`` and compare them against the configured baseline.

    A Horreum client is opened for each call and closed before it returns.
    Runs are assumed to carry a single dataset; the first one is always used.
    """

    def __init__(self, config: BotConfigSchema, *, client_factory: ClientFactory | None = None) -> None:
        self.config = config
        self._client_factory = client_factory or _default_client_factory

    def resolve_run(self, repo: str, run_identifier: str | int) -> ResolvedRun:
        """Resolve the run and return it together with its label values."""
        project = self.config.get_project(repo)
        run_id = parse_run_identifier(run_identifier)
        with self._client_factory(self.config, project) as client:
            summary = _resolve_summary(client, project, run_id)
            dataset_id = _select_dataset(summary)
            entries = client.fetch_run_label_values(summary.run_id)
        return ResolvedRun(
            run_id=summary.run_id,
            dataset_id=dataset_id,
            label_values=_select_label_values(entries, summary.run_id, dataset_id),
        )

    def get_run(self, repo: str, run_identifier: str | int) -> dict[str, Any]:
        return self.resolve_run(repo, run_identifier).label_values

    def compare(self, repo: str, run_identifier: str | int) -> str:
        """Run the datastore experiments for the resolved run and render their outcomes."""
        project = self.config.get_project(repo)
        run_id = parse_run_identifier(run_identifier)
        with self._client_factory(self.config, project) as client:
            summary = _resolve_summary(client, project, run_id)
            dataset_id = _select_dataset(summary)
            logger.info("Comparing run %d (dataset %d)", summary.run_id, dataset_id)
            results = client.run_experiments(dataset_id)
        outcomes = [ExperimentOutcome.from_payload(result) for result in results]
        if not outcomes:
            logger.info("No experiment outcomes for run %d", summary.run_id)
        return render_report(outcomes)


def _resolve_summary(client: HorreumClient, project: ProjectConfigSchema, run_id: int | None) -> RunSummary:
    if run_id is None:
        # TODO: narrow "latest" to runs of the triggering pull request once runs carry its number as a label.
        summary = client.fetch_latest_run(project.horreum_test_id)
        if summary is None:
            raise NoRunsFoundError(f"No runs found for test {project.horreum_test_id} of {project.repo_full_name}")
        logger.info("Resolved latest run of test %d to %d", project.horreum_test_id, summary.run_id)
        return summary
    summary = client.fetch_run_by_id(run_id)
    if summary is None:
        raise RunNotFoundError(f"Run {run_id} not found")
    if summary.test_id is not None and summary.test_id != project.horreum_test_id:
        logger.warning(
            "Run %d belongs to test %d, not to test %d configured for %s",
            run_id,
            summary.test_id,
            project.horreum_test_id,
            project.repo_full_name,
        )
    return summary


def _select_dataset(summary: RunSummary) -> int:
    if not summary.dataset_ids:
        raise RunNotFoundError(f"Run {summary.run_id} has no datasets")
    if len(summary.dataset_ids) > 1:
        logger.warning(
            "Run %d has %d datasets; using dataset %d",
            summary.run_id,
            len(summary.dataset_ids),
            summary.dataset_ids[0],
        )
    return summary.dataset_ids[0]


def _select_label_values(entries: list[dict[str, Any]], run_id: int, dataset_id: int) -> dict[str, Any]:
    if not entries:
        logger.warning("Run %d returned no label values", run_id)
        return {}
    selected = next((entry for entry in entries if entry.get("datasetId") == dataset_id), entries[0])
    values = selected.get("values")
    if not isinstance(values, dict):
        logger.warning("Run %d label values are not a mapping; returning an empty set", run_id)
        return {}
    return values


__all__ = ["DatastoreService", "LATEST_RUN", "parse_run_identifier"]
