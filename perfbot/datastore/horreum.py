"""Horreum REST gateway; the only module talking to the performance datastore."""

from __future__ import annotations

import logging
import ssl
from pathlib import Path
from typing import Any

import httpx

from perfbot.config import DatastoreSettings, ProjectConfigSchema
from perfbot.errors import ConfigFormatError, DatastoreError
from perfbot.utils import build_timeout, describe_response

from .models import RunSummary

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Horreum-API-Key"
LABEL_VALUES_LIMIT = 1000


class HorreumClient:
    """Scoped Horreum session, opened and closed around a single operation.

    Use as a context manager::

        with HorreumClient(url, api_key) as client:
            run = client.fetch_latest_run(test_id)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = 30.0,
        verify: bool | ssl.SSLContext = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=build_timeout(timeout),
            verify=verify,
            transport=transport,
        )

    def __enter__(self) -> "HorreumClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _get(self, path: str, *, params: dict[str, Any] | None = None, allow_missing: bool = False) -> Any:
        try:
            response = self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise DatastoreError(f"Horreum request GET {path} failed", exc) from exc
        if allow_missing and response.status_code == 404:
            return None
        if response.is_error:
            raise DatastoreError(f"Horreum request failed ({describe_response(response)})")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DatastoreError(f"Horreum returned invalid JSON for GET {path}", exc) from exc

    def fetch_latest_run(self, test_id: int) -> RunSummary | None:
        """Most recently created run of ``test_id`` (highest id), or ``None`` when the test has no runs."""
        payload = self._get(
            f"/api/run/list/{test_id}",
            params={
                "trashed": "false",
                "limit": 1,
                "page": 1,
                "sort": "id",
                "direction": "Descending",
            },
        )
        runs = payload.get("runs") if isinstance(payload, dict) else payload
        if not isinstance(runs, list) or not runs:
            return None
        return _parse_summary(runs[0])

    def fetch_run_by_id(self, run_id: int) -> RunSummary | None:
        payload = self._get(f"/api/run/{run_id}/summary", allow_missing=True)
        if not isinstance(payload, dict) or not payload:
            return None
        return _parse_summary(payload)

    def fetch_run_label_values(self, run_id: int) -> list[dict[str, Any]]:
        payload = self._get(
            f"/api/run/{run_id}/labelValues",
            params={"limit": LABEL_VALUES_LIMIT, "page": 0},
        )
        if not isinstance(payload, list):
            return []
        return [entry for entry in payload if isinstance(entry, dict)]

    def run_experiments(self, dataset_id: int) -> list[dict[str, Any]]:
        payload = self._get("/api/experiment/run", params={"datasetId": dataset_id})
        if not isinstance(payload, list):
            return []
        return [entry for entry in payload if isinstance(entry, dict)]


def _parse_summary(payload: Any) -> RunSummary:
    if not isinstance(payload, dict):
        raise DatastoreError(f"Unexpected run payload from Horreum: {payload!r}")
    try:
        return RunSummary.from_payload(payload)
    except ValueError as exc:
        raise DatastoreError("Unexpected run payload from Horreum", exc) from exc


def open_horreum_client(
    settings: DatastoreSettings,
    project: ProjectConfigSchema,
    *,
    transport: httpx.BaseTransport | None = None,
) -> HorreumClient:
    """Create a client authenticated with the project's Horreum key."""
    api_key = project.resolve_horreum_key()
    if api_key is None:
        logger.warning("No Horreum API key configured for %s; using anonymous access", project.repo_full_name)
    return HorreumClient(
        settings.url,
        api_key,
        timeout=settings.timeout,
        verify=_tls_verify(settings.verify),
        transport=transport,
    )


def _tls_verify(verify: bool | str) -> bool | ssl.SSLContext:
    """Translate the configured ``verify`` value into what ``httpx`` expects."""
    if isinstance(verify, bool):
        if not verify:
            logger.warning("TLS certificate verification is disabled for Horreum")
        return verify
    ca_bundle = Path(verify).expanduser()
    try:
        return ssl.create_default_context(cafile=str(ca_bundle))
    except OSError as exc:
        raise ConfigFormatError(f"Cannot load Horreum CA bundle '{ca_bundle}'", exc) from exc


__all__ = ["HorreumClient", "open_horreum_client"]
