"""GitHub REST calls the bot needs: pull-request head lookup and thread comments."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from perfbot.config import GitHubSettings
from perfbot.errors import GitHubError
from perfbot.utils import build_timeout, describe_response, read_env_secret

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """Thin GitHub client; each call opens and closes its own HTTP session."""

    def __init__(self, settings: GitHubSettings, *, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Accept": GITHUB_ACCEPT, "X-GitHub-Api-Version": GITHUB_API_VERSION}
        token = read_env_secret(self.settings.token_var)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return httpx.Client(
            base_url=self.settings.api_url.rstrip("/"),
            headers=headers,
            timeout=build_timeout(self.settings.timeout),
            transport=self._transport,
        )

    def _request(self, method: str, path: str, *, json: Any | None = None) -> Any:
        try:
            with self._client() as client:
                response = client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise GitHubError(f"GitHub request {method} {path} failed", exc) from exc
        if response.is_error:
            raise GitHubError(f"GitHub request failed ({describe_response(response)})")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(f"GitHub returned invalid JSON for {method} {path}", exc) from exc

    def fetch_pull_request_head_sha(self, repo_full_name: str, number: int) -> str:
        """Return the SHA of the current head commit of pull request ``number``."""
        payload = self._request("GET", f"/repos/{repo_full_name}/pulls/{number}")
        sha = (payload or {}).get("head", {}).get("sha")
        if not isinstance(sha, str) or not sha:
            raise GitHubError(f"Pull request {repo_full_name}#{number} has no head commit")
        return sha

    def post_comment(self, repo_full_name: str, number: int, body: str) -> None:
        self._request("POST", f"/repos/{repo_full_name}/issues/{number}/comments", json={"body": body})
        logger.info("Posted status comment on %s#%d", repo_full_name, number)


__all__ = ["GitHubClient"]
