"""Small shared constants for CLI modules."""

from __future__ import annotations

from pathlib import Path

COMMAND = "perfbot"
HANDLE_EVENT_COMMAND = "handle-event"
GET_RUN_COMMAND = "get-run"
COMPARE_COMMAND = "compare"
JOBS_COMMAND = "jobs"

DEFAULT_CONFIG_PATH = Path("perfbot.yaml")
DEFAULT_LOG_LEVEL = "INFO"
