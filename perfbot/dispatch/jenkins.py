"""Job dispatcher boundary and its Jenkins implementation."""

from __future__ import annotations

import logging
import re
from typing import Mapping, Protocol
from urllib.parse import quote

import httpx

from perfbot.config import JenkinsSettings
from perfbot.errors import DispatchError
from perfbot.utils import build_timeout, describe_response, read_env_secret

logger = logging.getLogger(__name__)

_QUEUE_ITEM_PATTERN = re.compile(r"/queue/item/(\d+)/?$")


class JobDispatcher(Protocol):
    def submit(self, repo_full_name: str, job_name: str, parameters: Mapping[str, str]) -> str:
        """Schedule ``job_name`` and return an opaque handle used in status messages."""
        ...


class JenkinsJobDispatcher:
    """Trigger parameterized Jenkins jobs through ``buildWithParameters``."""

    def __init__(self, settings: JenkinsSettings, *, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.Client:
        auth = None
        token = read_env_secret(self.settings.token_var)
        if self.settings.user and token:
            auth = httpx.BasicAuth(self.settings.user, token)
        return httpx.Client(
            base_url=self.settings.url.rstrip("/"),
            auth=auth,
            timeout=build_timeout(self.settings.timeout),
            transport=self._transport,
        )

    def submit(self, repo_full_name: str, job_name: str, parameters: Mapping[str, str]) -> str:
        path = f"{job_path(job_name)}/buildWithParameters"
        logger.info("Submitting job %s for %s with %d parameter(s)", job_name, repo_full_name, len(parameters))
        try:
            with self._client() as client:
                response = client.post(path, data=dict(parameters))
        except httpx.HTTPError as exc:
            raise DispatchError(f"Failed to submit job {job_name}", exc) from exc
        if response.is_error:
            raise DispatchError(f"Failed to submit job {job_name} ({describe_response(response)})")
        return queue_item_id(response.headers.get("Location"))


def job_path(job_name: str) -> str:
    """Jenkins URL path of ``job_name``; ``team/bench`` is job ``bench`` inside folder ``team``."""
    segments = [segment for segment in job_name.strip("/").split("/") if segment]
    if not segments:
        raise DispatchError(f"Invalid job name '{job_name}'")
    return "".join(f"/job/{quote(segment, safe='')}" for segment in segments)


def queue_item_id(location: str | None) -> str:
    """Extract the queue item id from a Jenkins ``Location`` header."""
    if not location:
        return "queued"
    match = _QUEUE_ITEM_PATTERN.search(location)
    return match.group(1) if match else location


__all__ = ["JenkinsJobDispatcher", "JobDispatcher", "job_path", "queue_item_id"]
