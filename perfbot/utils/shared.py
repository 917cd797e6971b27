"""Shared helper utilities for the bot clients and the CLI."""

from __future__ import annotations

import logging
import os

import httpx

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_CONNECT_TIMEOUT = 5.0
_LOGGING_INITIALIZED = False


def ensure_root_logging(level: str) -> None:
    """Configure root logging once while allowing level updates."""
    global _LOGGING_INITIALIZED
    root_logger = logging.getLogger()
    if not _LOGGING_INITIALIZED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(handler)
        _LOGGING_INITIALIZED = True
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def read_env_secret(var_name: str | None) -> str | None:
    """Return the value of ``var_name`` from the environment, treating blanks as unset."""
    if not var_name:
        return None
    value = os.environ.get(var_name, "").strip()
    return value or None


def build_timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds, connect=min(seconds, DEFAULT_CONNECT_TIMEOUT))


def describe_response(response: httpx.Response) -> str:
    """One-line description of an HTTP response for error messages."""
    body = response.text.strip()
    if len(body) > 200:
        body = body[:200] + "..."
    summary = f"{response.request.method} {response.request.url} -> HTTP {response.status_code}"
    return f"{summary}: {body}" if body else summary
