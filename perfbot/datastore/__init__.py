"""Horreum gateway and the run resolution & comparison engine."""

from .formatting import format_outcome, render_label_values, render_report
from .horreum import HorreumClient, open_horreum_client
from .models import ExperimentOutcome, ResolvedRun, RunSummary
from .service import LATEST_RUN, DatastoreService, parse_run_identifier

__all__ = [
    "DatastoreService",
    "ExperimentOutcome",
    "HorreumClient",
    "LATEST_RUN",
    "ResolvedRun",
    "RunSummary",
    "format_outcome",
    "open_horreum_client",
    "parse_run_identifier",
    "render_label_values",
    "render_report",
]
