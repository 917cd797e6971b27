"""Pydantic schemas for the bot configuration and per-repository projects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from perfbot.errors import ProjectNotFoundError
from perfbot.utils import read_env_secret

DEFAULT_PROMPT = "@perfbot"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITHUB_TOKEN_VAR = "GITHUB_TOKEN"
DEFAULT_JENKINS_TOKEN_VAR = "JENKINS_TOKEN"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class JobDefinitionSchema(BaseModel):
    """Parameters a job accepts from comments and the names bound from the request context."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    configurable_params: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Parameter names a commenter may set with key=value pairs.",
    )
    pull_request_number_param: str | None = None
    repo_full_name_param: str | None = None
    repo_commit_param: str | None = None

    @field_validator("configurable_params", mode="before")
    @classmethod
    def normalize_configurable_params(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if isinstance(value, dict):
            # Mapping form documents each parameter; only the names matter here.
            value = list(value.keys())
        if not isinstance(value, (list, tuple)):
            raise ValueError("configurable_params must be a list of names or a mapping.")
        names: list[str] = []
        for entry in value:
            if not isinstance(entry, str) or not entry.strip():
                raise ValueError("configurable_params entries must be non-empty strings.")
            name = entry.strip()
            if name not in names:
                names.append(name)
        return tuple(names)

    @field_validator("pull_request_number_param", "repo_full_name_param", "repo_commit_param", mode="before")
    @classmethod
    def blank_binding_is_absent(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def is_configurable(self, name: str) -> bool:
        return name in self.configurable_params


class ProjectConfigSchema(BaseModel):
    """Configuration of one repository: its Horreum test and its job registry."""

    model_config = ConfigDict(frozen=True)

    repo_full_name: str
    horreum_test_id: int = Field(..., ge=0)
    horreum_key: str | None = None
    horreum_key_var: str | None = None
    jobs: dict[str, JobDefinitionSchema] = Field(default_factory=dict)

    @field_validator("repo_full_name")
    @classmethod
    def validate_repo_full_name(cls, value: str) -> str:
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"repo_full_name must look like 'owner/name', got '{value}'.")
        return f"{owner}/{name}"

    @field_validator("jobs", mode="before")
    @classmethod
    def normalize_jobs(cls, value: Any) -> dict[str, Any]:
        if value is None:
            return {}
        if isinstance(value, list):
            jobs: dict[str, Any] = {}
            for index, entry in enumerate(value):
                if not isinstance(entry, dict) or not entry.get("id"):
                    raise ValueError(f"jobs[{index}] must be a mapping with an 'id'.")
                if entry["id"] in jobs:
                    raise ValueError(f"Duplicate job id '{entry['id']}' in configuration.")
                jobs[str(entry["id"])] = entry
            return jobs
        if not isinstance(value, dict):
            raise ValueError("jobs must be a mapping of job name to definition or a list.")
        normalized: dict[str, Any] = {}
        for name, entry in value.items():
            entry = {} if entry is None else entry
            if isinstance(entry, dict):
                entry = dict(entry)
                entry.setdefault("id", str(name))
            normalized[str(name)] = entry
        return normalized

    def resolve_horreum_key(self) -> str | None:
        """Return the Horreum API key, reading ``horreum_key_var`` from the environment when set."""
        if self.horreum_key:
            return self.horreum_key
        if self.horreum_key_var:
            return read_env_secret(self.horreum_key_var)
        return None


class DatastoreSettings(BaseModel):
    url: str = Field(..., min_length=1)
    timeout: float = Field(30.0, gt=0)
    # False disables certificate checks; a string is the path of a CA bundle to trust.
    verify: bool | str = True

    @field_validator("verify")
    @classmethod
    def validate_verify(cls, value: bool | str) -> bool | str:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("verify must be a boolean or the path of a CA bundle.")
        return value


class JenkinsSettings(BaseModel):
    url: str = Field(..., min_length=1)
    user: str | None = None
    token_var: str = DEFAULT_JENKINS_TOKEN_VAR
    timeout: float = Field(30.0, gt=0)


class GitHubSettings(BaseModel):
    api_url: str = DEFAULT_GITHUB_API_URL
    token_var: str = DEFAULT_GITHUB_TOKEN_VAR
    timeout: float = Field(30.0, gt=0)


class BotConfigSchema(BaseModel):
    """Top-level bot configuration; read-only for the lifetime of a request."""

    model_config = ConfigDict(frozen=True)

    prompt: str = DEFAULT_PROMPT
    datastore: DatastoreSettings
    jenkins: JenkinsSettings | None = None
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    projects: dict[str, ProjectConfigSchema] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def key_projects_by_repo(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        projects = data.get("projects")
        if not isinstance(projects, dict):
            return data
        keyed: dict[str, Any] = {}
        for key, entry in projects.items():
            if isinstance(entry, dict):
                entry = dict(entry)
                entry.setdefault("repo_full_name", str(key))
            keyed[str(key)] = entry
        merged = dict(data)
        merged["projects"] = keyed
        return merged

    @model_validator(mode="after")
    def check_project_keys(self) -> "BotConfigSchema":
        for key, project in self.projects.items():
            if key != project.repo_full_name:
                raise ValueError(f"projects['{key}'] declares repo_full_name '{project.repo_full_name}'.")
        return self

    def get_project(self, repo_full_name: str) -> ProjectConfigSchema:
        project = self.projects.get(repo_full_name)
        if project is None:
            raise ProjectNotFoundError(f"No configuration found for repository {repo_full_name}")
        return project


__all__ = [
    "BotConfigSchema",
    "DatastoreSettings",
    "GitHubSettings",
    "JenkinsSettings",
    "JobDefinitionSchema",
    "ProjectConfigSchema",
]
