"""Code-review collaborator used by the command path."""

from .client import GitHubClient

__all__ = ["GitHubClient"]
